from __future__ import annotations

import argparse
import pathlib
import sys
from typing import Optional

from .baselib import create_default_environment
from .config import SUPPORTED_VERSIONS, ApiDemoConfig
from .errors import LuaError
from .events import format_operation_event
from .help import HELP_TEXT
from .module import ApiDemo
from .repl import ReplSession
from .script import ParserError, ScriptRunner
from .values import display


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="haifa-capi",
        description="Drive a simulated Lua C API and watch its stack",
    )
    parser.add_argument("script", nargs="?", help="Path to a script of API calls")
    parser.add_argument("-e", "--execute", dest="inline", help="Execute API calls from a string")
    parser.add_argument("--repl", action="store_true", help="Start an interactive REPL session")
    parser.add_argument("--help-api", action="store_true", help="Print the simulated API reference")
    parser.add_argument(
        "--lua-version",
        type=int,
        default=ApiDemoConfig().lua_version,
        choices=SUPPORTED_VERSIONS,
        help="Lua version whose API variant is simulated",
    )
    parser.add_argument("--detect-cycles", action="store_true", help="Render self-referencing tables as {...}")
    parser.add_argument("--events", action="store_true", help="Print dispatcher events after the run")
    args = parser.parse_args(argv)

    if args.help_api:
        print(HELP_TEXT)
        return 0
    if args.inline and args.script:
        parser.error("cannot use script path and --execute together")
        return 1
    if args.repl and (args.inline or args.script):
        parser.error("--repl cannot be combined with script or --execute")
        return 1

    config = ApiDemoConfig(lua_version=args.lua_version, detect_cycles=args.detect_cycles)
    if args.repl or (not args.inline and not args.script and sys.stdin.isatty()):
        session = ReplSession(config=config, show_events=args.events)
        session.run()
        return 0

    if args.inline:
        source = args.inline
        source_name = "<inline>"
    elif args.script:
        source_name = args.script
        source = pathlib.Path(args.script).read_text(encoding="utf-8")
    else:
        source_name = "<stdin>"
        source = sys.stdin.read()

    env = create_default_environment()
    api = ApiDemo(env, config)
    api.setup_globals()
    try:
        results = ScriptRunner(env).run_source(source)
    except (ParserError, LuaError) as exc:
        print(f"{source_name}: {exc}", file=sys.stderr)
        return 1
    finally:
        if args.events:
            _print_events(api)
    if results:
        print("\t".join(display(value) for value in results))
    return 0


def _print_events(api: ApiDemo) -> None:
    events = api.dispatcher.drain_events()
    if not events:
        return
    print("Operation events:")
    for event in events:
        print(f"  - {format_operation_event(event)}")


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
