"""tagsql lexer: reads annotated SQL text as a lazy stream of tokens."""

from __future__ import annotations

from collections.abc import Iterator

from tagsql.tokens import (
    PUNCTUATION,
    Position,
    Span,
    Token,
    TokenType,
    is_digit,
    is_ident_char,
    is_ident_start,
)


class Lexer:
    """Tokenize a statement on demand, one token per ``next_token`` call.

    The lexer never fails: unterminated strings and unrecognised characters
    come back as best-effort tokens for the parser to judge.  Once the input
    is exhausted every further call returns an EOF token.
    """

    def __init__(self, source: str) -> None:
        self._document = source
        self._source = source.strip()
        self._pos = 0
        self._line = 1
        self._col = 1

    @property
    def source(self) -> str:
        """The statement text being tokenized, with outer whitespace removed."""
        return self._source

    @property
    def document(self) -> str:
        """The text as given, including any outer whitespace."""
        return self._document

    def __iter__(self) -> Iterator[Token]:
        while True:
            tok = self.next_token()
            if tok.type == TokenType.EOF:
                return
            yield tok

    def next_token(self) -> Token:
        """Return the next token, skipping any whitespace before it."""
        self._skip_whitespace()
        start = self._current_pos()

        if self._at_end():
            return Token(TokenType.EOF, "", Span(start, start))

        ch = self._peek()

        punct = PUNCTUATION.get(ch)
        if punct is not None:
            self._advance()
            return self._make(punct, start)

        if is_digit(ch):
            self._lex_number()
            return self._make(TokenType.NUMBER, start)

        if is_ident_start(ch):
            self._lex_identifier()
            return self._make(TokenType.IDENTIFIER, start)

        if ch == "'":
            self._lex_string()
            return self._make(TokenType.STRING, start)

        self._advance()
        return self._make(TokenType.UNKNOWN, start)

    # ------------------------------------------------------------------
    # Position helpers
    # ------------------------------------------------------------------

    def _current_pos(self) -> Position:
        return Position(self._line, self._col, self._pos)

    def _at_end(self) -> bool:
        return self._pos >= len(self._source)

    def _peek(self, offset: int = 0) -> str:
        idx = self._pos + offset
        if idx < len(self._source):
            return self._source[idx]
        return ""

    def _advance(self) -> str:
        ch = self._source[self._pos]
        self._pos += 1
        if ch == "\n":
            self._line += 1
            self._col = 1
        else:
            self._col += 1
        return ch

    def _make(self, tt: TokenType, start: Position) -> Token:
        end = self._current_pos()
        return Token(tt, self._source[start.offset : end.offset], Span(start, end))

    def _skip_whitespace(self) -> None:
        while not self._at_end() and self._peek().isspace():
            self._advance()

    # ------------------------------------------------------------------
    # Complex tokens
    # ------------------------------------------------------------------

    def _lex_identifier(self) -> None:
        while not self._at_end() and is_ident_char(self._peek()):
            self._advance()

    def _lex_number(self) -> None:
        # A second '.' ends the number so that "1.2.3" reads as 1.2 . 3
        seen_point = False
        while not self._at_end():
            ch = self._peek()
            if ch == ".":
                if seen_point:
                    break
                seen_point = True
            elif not is_digit(ch):
                break
            self._advance()

    def _lex_string(self) -> None:
        self._advance()  # consume opening quote
        while not self._at_end():
            ch = self._advance()
            if ch != "'":
                continue
            if self._peek() == "'":
                self._advance()  # '' is an escaped quote
                continue
            return
        # Unterminated: the literal runs to end of input


def tokenize(source: str) -> list[Token]:
    """Convenience function: tokenize source text and return the token list.

    The list always ends with a single EOF token.
    """
    lexer = Lexer(source)
    tokens = list(lexer)
    tokens.append(lexer.next_token())
    return tokens
