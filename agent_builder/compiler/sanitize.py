"""Identifier sanitization and literal escaping for generated Python source.

Every function here is total: any input string maps to a defined output, none
of them raise. User-supplied names are free text, so the emitter never embeds
them raw:

  to_snake_case          function / field / agent identifiers
  to_pascal_case         schema class names (each tool gets <Pascal>Input)
  to_kebab_case          deployment artifact names (service, image)
  escape_string_literal  text embedded inside a double-quoted literal
  tool_function_name     tool function names (also the tool dedup key)

Empty input to to_snake_case returns EMPTY_IDENTIFIER rather than "".
"""

from __future__ import annotations

import keyword
import re

EMPTY_IDENTIFIER: str = "unnamed"
EMPTY_CLASS_NAME: str = "Unnamed"

PYTHON_KEYWORDS: frozenset[str] = frozenset(keyword.kwlist)

# Module-level names in the generated tools.py that a tool function must not shadow.
TOOLS_MODULE_NAMES: frozenset[str] = frozenset({"logging", "logger"})

_SNAKE_INVALID_RUN = re.compile(r"[^a-z0-9_]+")
_PASCAL_SEPARATOR = re.compile(r"[^A-Za-z0-9]+")
_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_KEBAB_INVALID_RUN = re.compile(r"[^a-z0-9]+")

_CONTROL_ESCAPES: dict[str, str] = {
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


def to_snake_case(text: str) -> str:
    """Lowercase `text` and collapse every run of chars outside [a-z0-9_] to "_".

    A leading digit gets an underscore prefix. Blank input returns
    EMPTY_IDENTIFIER ("unnamed").

    >>> to_snake_case("Search Docs")
    'search_docs'
    >>> to_snake_case("123 Test")
    '_123_test'
    """
    result = _SNAKE_INVALID_RUN.sub("_", text.strip().lower())
    if not result:
        return EMPTY_IDENTIFIER
    if result[0].isdigit():
        result = "_" + result
    return result


def to_pascal_case(text: str) -> str:
    """Join alphanumeric words with their first letter upper-cased.

    >>> to_pascal_case("search docs")
    'SearchDocs'
    """
    result = "".join(
        word[:1].upper() + word[1:] for word in _PASCAL_SEPARATOR.split(text) if word
    )
    if not result:
        return EMPTY_CLASS_NAME
    if result[0].isdigit():
        result = "_" + result
    return result


def to_kebab_case(text: str) -> str:
    """Split camel-case boundaries, lowercase, join words with single hyphens.

    Returns "" for input with no alphanumeric characters; callers pick their
    own default in that case.

    >>> to_kebab_case("My ADK Agent")
    'my-adk-agent'
    """
    split = _CAMEL_BOUNDARY.sub(r"\1-\2", text.strip())
    return _KEBAB_INVALID_RUN.sub("-", split.lower()).strip("-")


def escape_string_literal(text: str) -> str:
    """Escape `text` for embedding between double quotes in Python source.

    Backslashes are escaped before quotes; reversing the order would
    double-escape the backslash added in front of each quote.
    """
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    out: list[str] = []
    for ch in escaped:
        if ch in _CONTROL_ESCAPES:
            out.append(_CONTROL_ESCAPES[ch])
        elif ord(ch) < 0x20 or ord(ch) == 0x7F:
            out.append(f"\\x{ord(ch):02x}")
        else:
            out.append(ch)
    return "".join(out)


def python_literal(text: str) -> str:
    """Return `text` as a double-quoted Python string literal."""
    return f'"{escape_string_literal(text)}"'


def python_multiline_literal(text: str, indent: str = "") -> str:
    """Render multi-line text as a parenthesized run of literals, one per line.

    Single-line text is returned as a plain literal. `indent` is the
    indentation of the line the expression starts on.
    """
    if "\n" not in text:
        return python_literal(text)
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
        pieces = [line + "\n" for line in lines]
    else:
        pieces = [line + "\n" for line in lines[:-1]] + [lines[-1]]
    body = "".join(f"{indent}    {python_literal(piece)}\n" for piece in pieces)
    return f"(\n{body}{indent})"


def is_keyword(name: str) -> bool:
    return name in PYTHON_KEYWORDS


def is_identifier(name: str) -> bool:
    """True when `name` can be used as-is as a Python identifier."""
    return name.isidentifier() and not is_keyword(name)


def to_identifier(text: str) -> str:
    """Snake-case `text`, then append "_" if the result is a keyword."""
    result = to_snake_case(text)
    if is_keyword(result):
        result += "_"
    return result


def tool_function_name(name: str) -> str:
    """Function name a tool is emitted under in tools.py.

    This is also the key tools are deduplicated on, so "logger" and
    "logger_" collide.
    """
    ident = to_identifier(name)
    return ident + "_" if ident in TOOLS_MODULE_NAMES else ident


def unique_identifiers(names: list[str]) -> list[str]:
    """Disambiguate repeated identifiers with stable numeric suffixes.

    The first occurrence keeps its name; later ones become name_2, name_3, ...
    skipping any suffix already taken.

    >>> unique_identifiers(["a", "b", "a"])
    ['a', 'b', 'a_2']
    """
    taken: set[str] = set(names)
    seen: set[str] = set()
    result: list[str] = []
    for name in names:
        if name not in seen:
            seen.add(name)
            result.append(name)
            continue
        n = 2
        while f"{name}_{n}" in taken:
            n += 1
        candidate = f"{name}_{n}"
        taken.add(candidate)
        seen.add(candidate)
        result.append(candidate)
    return result
