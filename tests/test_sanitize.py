"""Tests for identifier sanitization and literal escaping.

Covers:
  - to_snake_case: spaces, punctuation, leading digits, "unnamed" sentinel
  - to_pascal_case / to_kebab_case: schema class names and deployment names
  - escape_string_literal: literals evaluate back to the original text
  - to_identifier / unique_identifiers: keywords and stable suffixes
"""

from __future__ import annotations

import ast

import pytest

from agent_builder.compiler.sanitize import (
    EMPTY_IDENTIFIER,
    escape_string_literal,
    is_identifier,
    python_literal,
    python_multiline_literal,
    to_identifier,
    to_kebab_case,
    to_pascal_case,
    to_snake_case,
    tool_function_name,
    unique_identifiers,
)


class TestSnakeCase:
    def test_spaces_become_underscores(self):
        assert to_snake_case("Search Docs") == "search_docs"

    def test_punctuation_runs_collapse(self):
        assert to_snake_case("fetch -- web.page!") == "fetch_web_page_"

    def test_leading_digit_is_prefixed(self):
        assert to_snake_case("123 Test") == "_123_test"

    def test_surrounding_whitespace_is_trimmed(self):
        assert to_snake_case("  user query  ") == "user_query"

    @pytest.mark.parametrize("blank", ["", "   ", "\t\n"])
    def test_blank_input_returns_sentinel(self, blank):
        assert to_snake_case(blank) == EMPTY_IDENTIFIER == "unnamed"

    @pytest.mark.parametrize("text", ["Ünïcode näme", "💥 boom", 'quote"and\\slash', "9"])
    def test_result_is_always_an_identifier(self, text):
        assert to_snake_case(text).isidentifier()


class TestPascalAndKebab:
    def test_pascal_joins_words(self):
        assert to_pascal_case("search docs") == "SearchDocs"

    def test_pascal_keeps_inner_capitals(self):
        assert to_pascal_case("getURL value") == "GetURLValue"

    def test_pascal_leading_digit(self):
        assert to_pascal_case("9 lives") == "_9Lives"

    def test_pascal_empty(self):
        assert to_pascal_case("!!!") == "Unnamed"

    def test_kebab_from_words(self):
        assert to_kebab_case("My ADK Agent") == "my-adk-agent"

    def test_kebab_splits_camel_case(self):
        assert to_kebab_case("myAgentService") == "my-agent-service"

    def test_kebab_without_alphanumerics_is_empty(self):
        assert to_kebab_case("***") == ""


class TestEscaping:
    def test_quote_is_escaped(self):
        assert escape_string_literal('say "hi"') == 'say \\"hi\\"'

    def test_backslash_escaped_before_quote(self):
        # a, backslash, quote -> a, escaped backslash, escaped quote
        assert escape_string_literal('a\\"') == 'a\\\\\\"'

    def test_control_characters(self):
        assert escape_string_literal("a\nb\tc\x00") == "a\\nb\\tc\\x00"

    @pytest.mark.parametrize(
        "text",
        [
            "plain",
            'He said "no" \\ then left',
            'ends with backslash \\',
            '"""triple quoted"""',
            "multi\nline\r\nwith\ttabs",
            "bell\x07 and del\x7f",
        ],
    )
    def test_literal_evaluates_to_original(self, text):
        assert ast.literal_eval(python_literal(text)) == text

    def test_multiline_literal_evaluates_to_original(self):
        text = 'You are "helpful".\nUse C:\\tools when asked.\n'
        rendered = python_multiline_literal(text, "        ")
        assert rendered.startswith("(\n")
        assert ast.literal_eval(rendered) == text

    def test_single_line_stays_plain(self):
        assert python_multiline_literal("one line") == '"one line"'


class TestIdentifiers:
    def test_keyword_gets_trailing_underscore(self):
        assert to_identifier("class") == "class_"
        assert to_identifier("Return") == "return_"

    def test_non_keyword_unchanged(self):
        assert to_identifier("Search Docs") == "search_docs"

    def test_is_identifier(self):
        assert is_identifier("search_docs")
        assert not is_identifier("class")
        assert not is_identifier("9lives")

    def test_tool_function_name_avoids_module_names(self):
        assert tool_function_name("logger") == "logger_"
        assert tool_function_name("Logging") == "logging_"
        assert tool_function_name("class") == "class_"
        assert tool_function_name("Search Docs") == "search_docs"

    def test_unique_identifiers_suffixes_in_order(self):
        assert unique_identifiers(["a", "b", "a", "a"]) == ["a", "b", "a_2", "a_3"]

    def test_unique_identifiers_skips_taken_suffix(self):
        assert unique_identifiers(["a", "a_2", "a"]) == ["a", "a_2", "a_3"]
