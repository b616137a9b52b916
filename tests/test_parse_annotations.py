"""Tests for output targets, input sources, and pass-through content."""

from __future__ import annotations

from tagsql.ast import (
    ExpressionKind,
    Identity,
    InputSource,
    OutputTarget,
    PassThrough,
    SQLRoot,
)
from tagsql.tokens import Position, Span, TokenType

from .conftest import find_nodes, ident, tok


class TestPlainStatements:
    def test_spaces_and_line_breaks(self, parse_source):
        root = parse_source("SELECT      a\n\tAS myalias    FROM\n\tperson")
        assert isinstance(root, SQLRoot)
        assert root.render() == "SELECT a AS myalias FROM person"
        assert all(isinstance(c, Identity) for c in root.children)

    def test_root_kind(self, parse_source):
        root = parse_source("SELECT 1")
        assert root.kind == ExpressionKind.SQL_ROOT

    def test_root_span(self, parse_source):
        root = parse_source("  SELECT 1  ")
        assert root.begin == Position(1, 1, 0)
        assert root.end == Position(1, 9, 8)


class TestOutputTarget:
    def test_simple_output_target(self, parse_source):
        root = parse_source("SELECT &Person.* FROM person")
        expected = SQLRoot(
            (
                ident(TokenType.IDENTIFIER, "SELECT", 0),
                OutputTarget(
                    tok(TokenType.AMPERSAND, "&", 7),
                    ident(TokenType.IDENTIFIER, "Person", 8),
                    ident(TokenType.ASTERISK, "*", 15),
                ),
                ident(TokenType.IDENTIFIER, "FROM", 17),
                ident(TokenType.IDENTIFIER, "person", 22),
            ),
            Span(Position(1, 1, 0), Position(1, 29, 28)),
        )
        assert root == expected

    def test_named_field(self, parse_source):
        root = parse_source("SELECT name AS &Person.name FROM person")
        (target,) = find_nodes(root, OutputTarget)
        assert target.type_name.value == "Person"
        assert target.field_name == "name"
        assert not target.is_wildcard

    def test_wildcard(self, parse_source):
        (target,) = find_nodes(parse_source("SELECT &Person.* FROM t"), OutputTarget)
        assert target.is_wildcard
        assert target.kind == ExpressionKind.OUTPUT_TARGET

    def test_children_are_name_and_field(self, parse_source):
        (target,) = find_nodes(parse_source("SELECT &Person.id FROM t"), OutputTarget)
        assert [c.value for c in target.children] == ["Person", "id"]

    def test_span_runs_from_marker_to_field(self, parse_source):
        (target,) = find_nodes(parse_source("SELECT &Person.id"), OutputTarget)
        assert target.begin.offset == 7
        assert target.end.offset == 17

    def test_whitespace_inside_annotation(self, parse_source):
        root = parse_source("SELECT & Person . * FROM t")
        (target,) = find_nodes(root, OutputTarget)
        assert target.render() == "&Person.*"


class TestInputSource:
    def test_simple_input_source(self, parse_source):
        root = parse_source("UPDATE person SET surname='Hitchens' WHERE id=$Person.id;")
        expected = (
            ident(TokenType.IDENTIFIER, "UPDATE", 0),
            ident(TokenType.IDENTIFIER, "person", 7),
            ident(TokenType.IDENTIFIER, "SET", 14),
            ident(TokenType.IDENTIFIER, "surname", 18),
            ident(TokenType.EQUALS, "=", 25),
            ident(TokenType.STRING, "'Hitchens'", 26),
            ident(TokenType.IDENTIFIER, "WHERE", 37),
            ident(TokenType.IDENTIFIER, "id", 43),
            ident(TokenType.EQUALS, "=", 45),
            InputSource(
                tok(TokenType.DOLLAR, "$", 46),
                ident(TokenType.IDENTIFIER, "Person", 47),
                ident(TokenType.IDENTIFIER, "id", 54),
            ),
            ident(TokenType.SEMICOLON, ";", 56),
        )
        assert root.children == expected

    def test_type_name(self, parse_source):
        (source,) = find_nodes(parse_source("WHERE id = $Address.id"), InputSource)
        assert source.type_name.value == "Address"
        assert source.kind == ExpressionKind.INPUT_SOURCE

    def test_scenario_statement(self, parse_source):
        root = parse_source("SELECT * AS &Person.* FROM person WHERE address_id = $Address.id;")
        targets = find_nodes(root, OutputTarget)
        sources = find_nodes(root, InputSource)
        assert [(t.type_name.value, t.field_name) for t in targets] == [("Person", "*")]
        assert [(s.type_name.value, s.field_name) for s in sources] == [("Address", "id")]


class TestMemberAccess:
    def test_qualified_column(self, parse_source):
        root = parse_source("SELECT p.name FROM person AS p")
        member = root.children[1]
        assert isinstance(member, PassThrough)
        assert [c.render() for c in member.children] == ["p", ".", "name"]
        assert member.render() == "p.name"

    def test_qualified_wildcard(self, parse_source):
        root = parse_source("SELECT p.* AS &Person.* FROM person AS p")
        assert isinstance(root.children[1], PassThrough)
        assert root.children[1].render() == "p.*"
        assert isinstance(root.children[3], OutputTarget)

    def test_chained_access(self, parse_source):
        root = parse_source("SELECT s.t.c")
        assert root.children[1].render() == "s.t.c"

    def test_number_with_extra_point(self, parse_source):
        root = parse_source("SELECT 1.2.3")
        assert isinstance(root.children[1], PassThrough)
        assert root.children[1].render() == "1.2.3"

    def test_dangling_period(self, parse_source):
        root = parse_source("SELECT a.;")
        assert root.children[1].render() == "a."
        assert root.children[2].render() == ";"


class TestPassThroughTokens:
    def test_brackets_are_identities(self, parse_source):
        root = parse_source("SELECT a[1]")
        assert [c.render() for c in root.children] == ["SELECT", "a", "[", "1", "]"]

    def test_unknown_tokens_are_identities(self, parse_source):
        root = parse_source("SELECT a + b")
        assert [type(c) for c in root.children] == [Identity] * 4
        assert root.children[2].token.type == TokenType.UNKNOWN
