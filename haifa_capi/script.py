"""A tiny call language for driving the simulated API from text.

Programs are sequences of statements::

    L = luaL_newstate()
    lua_pushnumber(L, 10); lua_pushstring(L, "hi")
    return lua_gettop(L)

Expressions are literals (numbers, quoted strings, ``true``, ``false``,
``nil``), global names and calls of global functions. Assignments set globals,
just like Lua's own global assignment.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Union

from .environment import LuaEnvironment
from .stack import LuaStack

KEYWORDS = {"true", "false", "nil", "return"}

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "a": "\a", "b": "\b", "f": "\f", "v": "\v", "0": "\0"}


class ParserError(SyntaxError):
    pass


@dataclass
class Token:
    kind: str
    value: str
    line: int
    column: int

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"Token({self.kind!r}, {self.value!r}, {self.line}:{self.column})"


class ScriptLexer:
    def __init__(self, source: str):
        self.source = source
        self.length = len(source)
        self.pos = 0
        self.line = 1
        self.column = 1

    def tokenize(self) -> List[Token]:
        tokens: List[Token] = []
        while True:
            token = self._next_token()
            if token is None:
                break
            tokens.append(token)
        tokens.append(Token("EOF", "", self.line, self.column))
        return tokens

    # ------------------------------- internals ---------------------------- #
    def _peek(self, offset: int = 0) -> str:
        idx = self.pos + offset
        if idx >= self.length:
            return "\0"
        return self.source[idx]

    def _advance(self, count: int = 1) -> str:
        ch = ""
        for _ in range(count):
            if self.pos >= self.length:
                return "\0"
            ch = self.source[self.pos]
            self.pos += 1
            if ch == "\n":
                self.line += 1
                self.column = 1
            else:
                self.column += 1
        return ch

    def _next_token(self) -> Optional[Token]:
        while True:
            ch = self._peek()
            if ch in " \t\r\n":
                self._advance()
                continue
            if ch == "-" and self._peek(1) == "-":
                self._advance(2)
                while self._peek() not in {"\n", "\0"}:
                    self._advance()
                continue
            break

        start_line, start_col = self.line, self.column
        ch = self._peek()
        if ch == "\0":
            return None
        if ch.isdigit() or (ch == "." and self._peek(1).isdigit()):
            return self._number(start_line, start_col)
        if ch == '"' or ch == "'":
            return self._string(start_line, start_col)
        if ch.isalpha() or ch == "_":
            return self._identifier(start_line, start_col)
        if ch in "(),;=-":
            self._advance()
            return Token(ch, ch, start_line, start_col)

        raise ParserError(f"unexpected character {ch!r} at {start_line}:{start_col}")

    def _number(self, line: int, col: int) -> Token:
        start = self.pos
        if self._peek() == "0" and self._peek(1) in "xX":
            self._advance(2)
            while self._peek().isdigit() or self._peek().lower() in "abcdef":
                self._advance()
            return Token("NUMBER", self.source[start:self.pos], line, col)
        while self._peek().isdigit() or self._peek() == ".":
            self._advance()
        if self._peek() in "eE":
            self._advance()
            if self._peek() in "+-":
                self._advance()
            while self._peek().isdigit():
                self._advance()
        return Token("NUMBER", self.source[start:self.pos], line, col)

    def _string(self, line: int, col: int) -> Token:
        quote = self._advance()
        chars: List[str] = []
        while True:
            ch = self._peek()
            if ch == "\0" or ch == "\n":
                raise ParserError(f"unfinished string at {line}:{col}")
            if ch == quote:
                break
            if ch == "\\":
                self._advance()
                escaped = self._advance()
                chars.append(_ESCAPES.get(escaped, escaped))
                continue
            chars.append(self._advance())
        self._advance()  # closing quote
        return Token("STRING", "".join(chars), line, col)

    def _identifier(self, line: int, col: int) -> Token:
        start = self.pos
        while True:
            ch = self._peek()
            if not (ch.isalnum() or ch == "_"):
                break
            self._advance()
        value = self.source[start:self.pos]
        kind = value if value in KEYWORDS else "IDENT"
        return Token(kind, value, line, col)


# --------------------------------------------------------------------- nodes
@dataclass
class Literal:
    value: Any


@dataclass
class Name:
    name: str


@dataclass
class Call:
    name: str
    args: List["Expr"]


Expr = Union[Literal, Name, Call]


@dataclass
class Assign:
    target: str
    value: Expr


@dataclass
class Return:
    values: List[Expr]


@dataclass
class CallStatement:
    call: Call


Statement = Union[Assign, Return, CallStatement]


class ScriptParser:
    def __init__(self, tokens: Sequence[Token]):
        self.tokens = list(tokens)
        self.pos = 0

    @classmethod
    def parse(cls, source: str) -> List[Statement]:
        return cls(ScriptLexer(source).tokenize()).parse_chunk()

    def parse_chunk(self) -> List[Statement]:
        statements: List[Statement] = []
        while self._peek().kind != "EOF":
            if self._match(";"):
                continue
            statements.append(self._statement())
        return statements

    # ------------------------------- internals ---------------------------- #
    def _peek(self, offset: int = 0) -> Token:
        idx = min(self.pos + offset, len(self.tokens) - 1)
        return self.tokens[idx]

    def _advance(self) -> Token:
        token = self.tokens[self.pos]
        if token.kind != "EOF":
            self.pos += 1
        return token

    def _match(self, kind: str) -> bool:
        if self._peek().kind == kind:
            self._advance()
            return True
        return False

    def _expect(self, kind: str, message: str) -> Token:
        token = self._peek()
        if token.kind != kind:
            found = "<eof>" if token.kind == "EOF" else repr(token.value)
            raise ParserError(f"{message} near {found} at {token.line}:{token.column}")
        return self._advance()

    def _statement(self) -> Statement:
        if self._match("return"):
            values: List[Expr] = []
            if self._peek().kind not in {"EOF", ";"}:
                values = self._expression_list()
            return Return(values)
        name = self._expect("IDENT", "statement expected").value
        if self._match("="):
            return Assign(name, self._expression())
        if self._peek().kind == "(":
            return CallStatement(self._call(name))
        raise ParserError(f"'=' or '(' expected after '{name}' at {self._peek().line}:{self._peek().column}")

    def _expression_list(self) -> List[Expr]:
        expressions = [self._expression()]
        while self._match(","):
            expressions.append(self._expression())
        return expressions

    def _expression(self) -> Expr:
        token = self._peek()
        if token.kind == "-":
            self._advance()
            number = self._expect("NUMBER", "number expected after '-'")
            return Literal(-_parse_number(number))
        if token.kind == "NUMBER":
            self._advance()
            return Literal(_parse_number(token))
        if token.kind == "STRING":
            self._advance()
            return Literal(token.value)
        if token.kind in {"true", "false"}:
            self._advance()
            return Literal(token.kind == "true")
        if token.kind == "nil":
            self._advance()
            return Literal(None)
        if token.kind == "IDENT":
            self._advance()
            if self._peek().kind == "(":
                return self._call(token.value)
            return Name(token.value)
        found = "<eof>" if token.kind == "EOF" else repr(token.value)
        raise ParserError(f"unexpected symbol near {found} at {token.line}:{token.column}")

    def _call(self, name: str) -> Call:
        self._expect("(", "'(' expected")
        args: List[Expr] = []
        if self._peek().kind != ")":
            args = self._expression_list()
        self._expect(")", "')' expected")
        return Call(name, args)


def _parse_number(token: Token) -> float:
    text = token.value
    try:
        if text.lower().startswith("0x"):
            return float(int(text, 16))
        return float(text)
    except ValueError:
        raise ParserError(f"malformed number near {text!r} at {token.line}:{token.column}") from None


class ScriptRunner:
    """Evaluates parsed statements against a host environment."""

    def __init__(self, env: LuaEnvironment):
        self.env = env

    def run_source(self, source: str) -> List[Any]:
        return self.run(ScriptParser.parse(source))

    def run(self, statements: Sequence[Statement]) -> List[Any]:
        """Execute statements; returns the values of the last ``return``."""
        returned: List[Any] = []
        for statement in statements:
            if isinstance(statement, Assign):
                values = self._evaluate(statement.value)
                self.env.register(statement.target, values[0] if values else None)
            elif isinstance(statement, CallStatement):
                self._evaluate(statement.call)
            else:
                returned = self._evaluate_list(statement.values)
        return returned

    def _evaluate(self, expr: Expr) -> List[Any]:
        if isinstance(expr, Literal):
            return [expr.value]
        if isinstance(expr, Name):
            return [self.env.global_table().raw_get(expr.name)]
        func = self.env.global_table().raw_get(expr.name)
        args = self._evaluate_list(expr.args)
        return LuaStack(self.env).call_value(func, args)

    def _evaluate_list(self, expressions: Sequence[Expr]) -> List[Any]:
        values: List[Any] = []
        for index, expr in enumerate(expressions):
            results = self._evaluate(expr)
            if index == len(expressions) - 1:
                values.extend(results)
            else:
                values.append(results[0] if results else None)
        return values


__all__ = [
    "ParserError",
    "ScriptLexer",
    "ScriptParser",
    "ScriptRunner",
    "Literal",
    "Name",
    "Call",
    "Assign",
    "Return",
    "CallStatement",
]
