from __future__ import annotations

import atexit
import sys
from pathlib import Path
from typing import Iterable, Optional

from .baselib import create_default_environment
from .config import ApiDemoConfig
from .environment import LuaEnvironment
from .errors import LuaError
from .events import format_operation_event
from .module import ApiDemo
from .script import ParserError, ScriptRunner
from .values import display

try:  # pragma: no cover - platform specific
    import readline  # type: ignore
except ImportError:  # pragma: no cover - Windows fallback
    readline = None  # type: ignore


_HISTORY_FILE = Path.home() / ".haifa_capi_history"


class ReplSession:
    MAIN_PROMPT = "> "

    def __init__(
        self,
        *,
        env: Optional[LuaEnvironment] = None,
        config: Optional[ApiDemoConfig] = None,
        show_events: bool = False,
        enable_readline: bool = True,
    ) -> None:
        self.env = env if env is not None else create_default_environment()
        self.api = ApiDemo(self.env, config)
        self.api.setup_globals()
        self.runner = ScriptRunner(self.env)
        self.show_events = show_events
        self._enable_readline = enable_readline
        self._configure_readline()

    # ------------------------------------------------------------------ public API
    def run(self) -> None:
        while True:
            try:
                line = self._read_line(self.MAIN_PROMPT)
            except EOFError:
                print()
                break
            except KeyboardInterrupt:
                print()
                continue
            result = self.process_line(line)
            if result is True:
                break

    def process_line(self, line: str) -> Optional[bool]:
        command_result = self._try_command(line)
        if command_result is not None:
            return command_result
        source = self.normalize_source(line)
        try:
            results = self.runner.run_source(source)
        except ParserError as exc:
            print(f"<repl>: {exc}", file=sys.stderr)
            return None
        except LuaError as exc:
            print(f"<repl>: {exc}", file=sys.stderr)
            self._print_events()
            return None
        if results:
            self.print_results(results)
        self._print_events()
        return None

    def normalize_source(self, line: str) -> str:
        stripped = line.lstrip()
        if not stripped.startswith("="):
            return line
        prefix = line[: len(line) - len(stripped)]
        expression = stripped[1:].lstrip()
        return f"{prefix}return {expression}"

    def print_results(self, values: Iterable[object]) -> None:
        print("\t".join(display(value) for value in values))

    # ------------------------------------------------------------------ helpers
    def _print_events(self) -> None:
        events = self.api.dispatcher.drain_events()
        if not events or not self.show_events:
            return
        print("Operation events:")
        for event in events:
            print(f"  - {format_operation_event(event)}")

    def _try_command(self, line: str) -> Optional[bool]:
        stripped = line.strip()
        if not stripped.startswith(":"):
            return None
        parts = stripped[1:].split()
        if not parts:
            return None
        command, *args = parts
        if command in {"quit", "q"}:
            return True
        if command == "help":
            self._print_help()
            return None
        if command == "api":
            self.api.help()
            return None
        if command == "events":
            self._handle_events_command(args)
            return None
        if command == "env":
            self._print_environment()
            return None
        print(f"Unknown command: :{command}")
        return None

    def _handle_events_command(self, args: list[str]) -> None:
        if not args:
            print(f"Operation events: {'on' if self.show_events else 'off'}")
            return
        value = args[0].lower()
        if value not in {"on", "off"}:
            print(f"Invalid events setting '{value}'. Available: off, on")
            return
        self.show_events = value == "on"
        print(f"Operation events {value}")

    def _print_environment(self) -> None:
        snapshot = self.env.snapshot()
        keys = sorted(key for key in snapshot.keys() if isinstance(key, str))
        print("Globals:")
        for key in keys:
            print(f"  {key}")

    def _print_help(self) -> None:
        print("Commands:")
        print("  :help             Show this help message")
        print("  :api              Show the simulated C API reference")
        print("  :quit / :q        Exit the REPL")
        print("  :events on|off    Print dispatcher events after each input")
        print("  :env              List global environment keys")
        print("Start with 'L = luaL_newstate()'; lines prefixed with '=' print their values.")

    def _configure_readline(self) -> None:
        if not self._enable_readline or readline is None:
            return
        if not sys.stdin.isatty():  # pragma: no cover - interactive only
            return
        try:
            readline.parse_and_bind("tab: complete")
            readline.set_completer(self._complete)
            if _HISTORY_FILE.exists():
                readline.read_history_file(str(_HISTORY_FILE))
        except OSError:  # pragma: no cover - unreadable history file
            return
        atexit.register(self._save_history)

    def _complete(self, text: str, state: int) -> Optional[str]:
        candidates = sorted(key for key in self.env.snapshot() if key.startswith(text))
        if state < len(candidates):
            return candidates[state]
        return None

    def _save_history(self) -> None:  # pragma: no cover - interactive only
        if readline is None:
            return
        try:
            readline.write_history_file(str(_HISTORY_FILE))
        except OSError:
            pass

    def _read_line(self, prompt: str) -> str:
        return input(prompt)


__all__ = ["ReplSession"]
