"""Tests for the LSP server: diagnostic generation."""

from __future__ import annotations

import pytest
from lsprotocol.types import (
    DiagnosticSeverity,
    PublishDiagnosticsParams,
    TextDocumentItem,
    TextDocumentSyncKind,
)
from pygls.lsp.server import LanguageServer
from pygls.workspace import Workspace

from tagsql.lsp import _validate

URI = "file:///test.sql"


@pytest.fixture
def lsp_env():
    """Create a LanguageServer with an initialized workspace and captured diagnostics."""
    ls = LanguageServer("test", "v0", text_document_sync_kind=TextDocumentSyncKind.Full)
    ws = Workspace(None)
    ls.protocol._workspace = ws

    published: list[PublishDiagnosticsParams] = []
    ls.text_document_publish_diagnostics = lambda params: published.append(params)

    def put(source: str, uri: str = URI) -> None:
        ws.put_text_document(TextDocumentItem(uri=uri, language_id="sql", version=0, text=source))

    return ls, published, put


# ---------------------------------------------------------------------------
# Parse errors → Error severity
# ---------------------------------------------------------------------------


class TestParseErrors:
    def test_unclosed_group(self, lsp_env) -> None:
        ls, published, put = lsp_env
        put("SELECT (a, b, from person")
        _validate(ls, URI)

        assert len(published) == 1
        diags = published[0].diagnostics
        assert len(diags) == 1
        d = diags[0]
        assert d.severity == DiagnosticSeverity.Error
        assert "expected ')'" in d.message
        assert d.source == "tagsql"

    def test_every_error_reported(self, lsp_env) -> None:
        ls, published, put = lsp_env
        put("SELECT () AS &Person* FROM t")
        _validate(ls, URI)

        messages = [d.message for d in published[0].diagnostics]
        assert messages == ["empty column group", "expected '.' after type name 'Person'"]

    def test_unterminated_string(self, lsp_env) -> None:
        ls, published, put = lsp_env
        put("SELECT * FROM t\nWHERE name = 'Fred")
        _validate(ls, URI)

        (d,) = published[0].diagnostics
        assert d.message == "unterminated string literal"
        assert d.range.start.line == 1
        assert d.range.start.character == 13
        assert d.range.end.character == 18

    def test_zero_width_error_widened(self, lsp_env) -> None:
        ls, published, put = lsp_env
        put("SELECT &Person")
        _validate(ls, URI)

        (d,) = published[0].diagnostics
        assert d.range.start.character == 14
        assert d.range.end.character == 15


# ---------------------------------------------------------------------------
# Clean document → empty diagnostics
# ---------------------------------------------------------------------------


class TestCleanDocument:
    def test_valid_statement(self, lsp_env) -> None:
        ls, published, put = lsp_env
        put("SELECT * AS &Person.* FROM person\nWHERE id = $Person.id;\n")
        _validate(ls, URI)

        assert len(published) == 1
        assert published[0].diagnostics == []

    def test_blank_document(self, lsp_env) -> None:
        ls, published, put = lsp_env
        put("\n  \n")
        _validate(ls, URI)

        assert len(published) == 1
        assert published[0].diagnostics == []


# ---------------------------------------------------------------------------
# Position conversion (1-based → 0-based, document coordinates)
# ---------------------------------------------------------------------------


class TestPositionConversion:
    def test_error_on_second_line(self, lsp_env) -> None:
        ls, published, put = lsp_env
        put("SELECT a\nFROM ()")
        _validate(ls, URI)

        (d,) = published[0].diagnostics
        # Error is on line 2 (1-based) → LSP line 1 (0-based)
        assert d.range.start.line == 1
        assert d.range.start.character == 5
        assert d.range.end.character == 7

    def test_leading_whitespace_offsets_first_line(self, lsp_env) -> None:
        ls, published, put = lsp_env
        put("\n\n  SELECT ()")
        _validate(ls, URI)

        (d,) = published[0].diagnostics
        assert d.range.start.line == 2
        assert d.range.start.character == 9

    def test_leading_whitespace_later_lines(self, lsp_env) -> None:
        ls, published, put = lsp_env
        put("\n   SELECT a\n  FROM ()")
        _validate(ls, URI)

        (d,) = published[0].diagnostics
        assert d.range.start.line == 2
        assert d.range.start.character == 7
