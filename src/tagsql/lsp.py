"""Minimal LSP server for tagsql statements, diagnostics only."""

from __future__ import annotations

from lsprotocol.types import (
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_OPEN,
    Diagnostic,
    DiagnosticSeverity,
    DidChangeTextDocumentParams,
    DidOpenTextDocumentParams,
    Position,
    PublishDiagnosticsParams,
    Range,
    TextDocumentSyncKind,
)
from pygls.lsp.server import LanguageServer

from tagsql import __version__
from tagsql.errors import ParseError
from tagsql.lexer import Lexer
from tagsql.parser import Parser
from tagsql.tokens import Position as SourcePosition
from tagsql.tokens import relocate, statement_origin

server = LanguageServer(
    "tagsql-lsp", __version__, text_document_sync_kind=TextDocumentSyncKind.Full
)


def _lsp_position(pos: SourcePosition, origin: SourcePosition) -> Position:
    doc_pos = relocate(pos, origin)
    return Position(line=doc_pos.line - 1, character=doc_pos.column - 1)


def _diagnostic(err: ParseError, origin: SourcePosition) -> Diagnostic:
    start = _lsp_position(err.span.start, origin)
    end = _lsp_position(err.span.end, origin)
    if end == start:
        end = Position(line=start.line, character=start.character + 1)
    return Diagnostic(
        range=Range(start=start, end=end),
        message=err.message,
        severity=DiagnosticSeverity.Error,
        source="tagsql",
    )


def _validate(ls: LanguageServer, uri: str) -> None:
    """Parse the document and publish every syntax error as a diagnostic."""
    doc = ls.workspace.get_text_document(uri)
    source = doc.source
    origin = statement_origin(source)

    _, errors = Parser(Lexer(source)).run()
    # A blank document is not worth flagging while the user is typing
    if not source.strip():
        errors = []

    ls.text_document_publish_diagnostics(
        PublishDiagnosticsParams(uri=uri, diagnostics=[_diagnostic(e, origin) for e in errors])
    )


@server.feature(TEXT_DOCUMENT_DID_OPEN)
def did_open(ls: LanguageServer, params: DidOpenTextDocumentParams) -> None:
    _validate(ls, params.text_document.uri)


@server.feature(TEXT_DOCUMENT_DID_CHANGE)
def did_change(ls: LanguageServer, params: DidChangeTextDocumentParams) -> None:
    _validate(ls, params.text_document.uri)


def main() -> None:
    server.start_io()
