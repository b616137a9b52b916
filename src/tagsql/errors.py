"""Error types with formatted source context."""

from __future__ import annotations

from collections.abc import Sequence

from tagsql.tokens import Span, relocate, statement_origin


class TagSQLError(Exception):
    """Base class for every error raised by tagsql."""


def format_snippet(message: str, span: Span, source: str, filename: str) -> str:
    """Render *message* with the offending source line and a caret underline."""
    lines = source.splitlines(keepends=True)
    line_idx = span.start.line - 1
    col = span.start.column

    if 0 <= line_idx < len(lines):
        source_line = lines[line_idx].rstrip("\n").rstrip("\r")
    else:
        source_line = ""

    # Underline the full span when on one line, otherwise to end of line
    if span.end.line == span.start.line:
        underline_len = max(1, span.end.column - col)
    else:
        underline_len = max(1, len(source_line) - col + 1)

    pad = " " * (col - 1)
    carets = "^" * underline_len

    line_num = str(span.start.line)
    gutter_width = len(line_num) + 1

    blank_gutter = " " * gutter_width + "|"
    line_gutter = f"{line_num:>{gutter_width - 1}} |"

    return (
        f"error: {message}\n"
        f"{' ' * gutter_width}--> {filename}:{span.start.line}:{col}\n"
        f"{blank_gutter}\n"
        f"{line_gutter} {source_line}\n"
        f"{blank_gutter} {pad}{carets}"
    )


class ParseError(TagSQLError):
    """A single syntax error, with span and source context.

    *source* is the statement text as the lexer saw it (outer whitespace
    stripped), so that span offsets index into it directly.  *document*,
    when given, is the unstripped text; ``format`` then reports line and
    column within it.
    """

    def __init__(self, message: str, span: Span, source: str, document: str | None = None) -> None:
        self.message = message
        self.span = span
        self.source = source
        self.document = document
        super().__init__(
            f"{message} at line {span.start.line}, column {span.start.column}"
        )

    def format(self, filename: str = "<statement>") -> str:
        if self.document is None:
            return format_snippet(self.message, self.span, self.source, filename)
        origin = statement_origin(self.document)
        span = Span(relocate(self.span.start, origin), relocate(self.span.end, origin))
        return format_snippet(self.message, span, self.document, filename)


class ParseErrors(TagSQLError):
    """Raised when parsing produced one or more syntax errors."""

    def __init__(self, errors: Sequence[ParseError]) -> None:
        self.errors = list(errors)
        super().__init__("\n".join(str(err) for err in self.errors))

    def format(self, filename: str = "<statement>") -> str:
        return "\n\n".join(err.format(filename) for err in self.errors)


class ReflectError(TagSQLError):
    """Raised when a value cannot be described as a record type."""


class BindError(TagSQLError):
    """Base class for mismatches between annotations and supplied types."""

    def __init__(self, name: str, message: str) -> None:
        self.name = name
        super().__init__(message)


class TypeNameNotUniqueError(BindError):
    """Two supplied values describe types with the same name."""

    def __init__(self, name: str) -> None:
        super().__init__(name, f"names for supplied types are not unique; {name!r} is ambiguous")


class TypeInfoNotPresentError(BindError):
    """An annotation names a type for which nothing was supplied."""

    def __init__(self, name: str) -> None:
        super().__init__(name, f"no descriptor for type name {name!r}")


class SuperfluousTypeError(BindError):
    """A type was supplied but no annotation in the statement uses it."""

    def __init__(self, name: str) -> None:
        super().__init__(name, f"supplied type {name!r} is not referenced by the statement")
