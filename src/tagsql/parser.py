"""tagsql parser: builds an expression tree from the lexer's token stream."""

from __future__ import annotations

import logging
from collections.abc import Callable

from tagsql.ast import (
    Expression,
    GroupedColumns,
    Identity,
    InputSource,
    OutputTarget,
    PassThrough,
    SQLRoot,
)
from tagsql.errors import ParseError, ParseErrors
from tagsql.lexer import Lexer
from tagsql.tokens import Span, Token, TokenType

logger = logging.getLogger(__name__)

LOWEST = 0
HIGHEST = 1

# Kinds not listed bind at LOWEST, so nothing continues an expression
# unless it is raised here and has an infix handler.
_PRECEDENCE: dict[TokenType, int] = {
    TokenType.RPAREN: HIGHEST,
    TokenType.RBRACKET: HIGHEST,
    TokenType.PERIOD: HIGHEST,
}

# Tokens allowed after the '.' of an annotation or a member access.
_FIELD_TOKENS: frozenset[TokenType] = frozenset({TokenType.IDENTIFIER, TokenType.ASTERISK})
_MEMBER_TOKENS: frozenset[TokenType] = _FIELD_TOKENS | {TokenType.NUMBER}

PrefixFunc = Callable[[], Expression]
InfixFunc = Callable[[Expression], Expression]


class Parser:
    """Operator-precedence (Pratt) parser for annotated SQL.

    Each token kind has at most one prefix handler, used when the token
    starts an expression, and at most one infix handler, used when the
    token follows a complete expression and binds tighter than the
    caller's precedence.  Syntax errors are collected rather than raised,
    and parsing carries on after each one.
    """

    def __init__(self, lexer: Lexer) -> None:
        self._lexer = lexer
        self._source = lexer.source
        self._document = lexer.document
        self._errors: list[ParseError] = []

        self._prefix: dict[TokenType, PrefixFunc] = {
            tt: self._parse_identity for tt in TokenType if tt is not TokenType.EOF
        }
        self._prefix[TokenType.AMPERSAND] = self._parse_output_target
        self._prefix[TokenType.DOLLAR] = self._parse_input_source
        self._prefix[TokenType.LPAREN] = self._parse_group
        self._prefix[TokenType.STRING] = self._parse_string

        self._infix: dict[TokenType, InfixFunc] = {
            TokenType.PERIOD: self._parse_member,
        }

        # Prime the current and peek tokens
        self._current = lexer.next_token()
        self._peek = lexer.next_token()

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def _next_token(self) -> None:
        self._current = self._peek
        self._peek = self._lexer.next_token()

    def _at(self, *types: TokenType) -> bool:
        return self._current.type in types

    def _peek_is(self, *types: TokenType) -> bool:
        return self._peek.type in types

    def _precedence(self, tok: Token) -> int:
        return _PRECEDENCE.get(tok.type, LOWEST)

    def _error(self, message: str, span: Span | None = None) -> None:
        if span is None:
            span = self._current.span
        self._errors.append(ParseError(message, span, self._source, self._document))

    # ------------------------------------------------------------------
    # Statement level
    # ------------------------------------------------------------------

    def run(self) -> tuple[SQLRoot, list[ParseError]]:
        """Parse the whole statement.

        Returns the root expression together with every syntax error found.
        The root is returned even when errors were recorded, so callers can
        inspect whatever was recognised.
        """
        start = self._current.span.start
        children: list[Expression] = []

        if self._at(TokenType.EOF):
            self._error("empty statement")

        while not self._at(TokenType.EOF):
            exp = self._parse_expression(LOWEST)
            if exp is not None:
                children.append(exp)
            self._next_token()

        end = children[-1].span.end if children else start
        logger.debug(
            "parsed %d top-level expressions with %d errors", len(children), len(self._errors)
        )
        return SQLRoot(tuple(children), Span(start, end)), list(self._errors)

    def _parse_expression(self, precedence: int) -> Expression | None:
        prefix = self._prefix.get(self._current.type)
        if prefix is None:
            return None

        left = prefix()

        while precedence < self._precedence(self._peek):
            infix = self._infix.get(self._peek.type)
            if infix is None:
                return left
            self._next_token()
            left = infix(left)

        return left

    # ------------------------------------------------------------------
    # Prefix handlers
    # ------------------------------------------------------------------

    def _parse_identity(self) -> Identity:
        return Identity(self._current)

    def _parse_string(self) -> Identity:
        if not _is_terminated(self._current.value):
            self._error("unterminated string literal")
        return Identity(self._current)

    def _parse_output_target(self) -> OutputTarget | PassThrough:
        parts = self._parse_type_mapping("'&'")
        if len(parts) < 4:
            return _pass_through(parts)
        marker, name, _, field = parts
        return OutputTarget(marker.token, name, field)

    def _parse_input_source(self) -> InputSource | PassThrough:
        parts = self._parse_type_mapping("'$'")
        if len(parts) < 4:
            return _pass_through(parts)
        marker, name, _, field = parts
        return InputSource(marker.token, name, field)

    def _parse_type_mapping(self, marker_desc: str) -> list[Identity]:
        """Read ``<marker> Type . field`` starting at the marker.

        Returns the identities consumed.  Fewer than four means the
        annotation was malformed; an error has been recorded and the
        offending token is left for the next expression.
        """
        parts = [Identity(self._current)]

        if not self._peek_is(TokenType.IDENTIFIER):
            self._error(f"expected type name after {marker_desc}", self._peek.span)
            return parts
        self._next_token()
        parts.append(Identity(self._current))

        if not self._peek_is(TokenType.PERIOD):
            self._error(
                f"expected '.' after type name {self._current.value!r}", self._peek.span
            )
            return parts
        self._next_token()
        parts.append(Identity(self._current))

        if not self._peek_is(*_FIELD_TOKENS):
            self._error("expected field name or '*' after '.'", self._peek.span)
            return parts
        self._next_token()
        parts.append(Identity(self._current))
        return parts

    def _parse_group(self) -> GroupedColumns:
        """Parse ``( item , item ... )``.

        An item is usually a single column name; when it runs to several
        expressions (a sub-select, say) they are wrapped in a PassThrough.
        A malformed group is reported, the rest of it skipped, and the
        columns read so far returned.
        """
        open_tok = self._current
        columns: list[Expression] = []
        item: list[Expression] = []

        def flush() -> None:
            if item:
                columns.append(item[0] if len(item) == 1 else _pass_through(item))
                item.clear()

        def span() -> Span:
            return Span(open_tok.span.start, self._current.span.end)

        def group() -> GroupedColumns:
            return GroupedColumns(tuple(columns), span())

        self._next_token()  # consume LPAREN

        while True:
            if self._at(TokenType.EOF):
                self._error(
                    "expected ')' to close column group opened at "
                    f"line {open_tok.pos.line}, column {open_tok.pos.column}"
                )
                flush()
                return group()

            if self._at(TokenType.RPAREN):
                if not columns and not item:
                    self._error("empty column group", span())
                elif not item:
                    self._error("expected column after ',' in column group")
                flush()
                return group()

            if self._at(TokenType.COMMA):
                if not item:
                    if columns:
                        self._error("two consecutive commas in column group")
                    else:
                        self._error("expected column before ',' in column group")
                    self._skip_group()
                    return group()
                flush()
                self._next_token()
                continue

            exp = self._parse_expression(LOWEST)
            if exp is not None:
                item.append(exp)
            self._next_token()

    def _skip_group(self) -> None:
        """Advance to the ')' closing the current group, or to EOF."""
        depth = 0
        while not self._at(TokenType.EOF):
            if self._at(TokenType.LPAREN):
                depth += 1
            elif self._at(TokenType.RPAREN):
                if depth == 0:
                    return
                depth -= 1
            self._next_token()

    # ------------------------------------------------------------------
    # Infix handlers
    # ------------------------------------------------------------------

    def _parse_member(self, left: Expression) -> PassThrough:
        """Member access such as ``p.name`` or ``t.*``, kept verbatim."""
        parts: list[Expression] = [left, Identity(self._current)]
        if self._peek_is(*_MEMBER_TOKENS):
            self._next_token()
            parts.append(Identity(self._current))
        return _pass_through(parts)


def _is_terminated(literal: str) -> bool:
    """Whether a string literal ends in a closing quote rather than an escaped one."""
    body = literal[1:]
    trailing = len(body) - len(body.rstrip("'"))
    return trailing % 2 == 1


def _pass_through(parts: list[Expression] | list[Identity]) -> PassThrough:
    return PassThrough(tuple(parts), Span(parts[0].span.start, parts[-1].span.end))


def parse(source: str) -> SQLRoot:
    """Convenience function: parse statement text and return its root.

    Raises ParseErrors carrying every syntax error when any were found.
    """
    root, errors = Parser(Lexer(source)).run()
    if errors:
        raise ParseErrors(errors)
    return root
