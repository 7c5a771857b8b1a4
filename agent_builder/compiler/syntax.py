"""Syntax gate for generated Python artifacts.

Every ``*.py`` entry of a generated file map is parsed with ``ast``. Nothing is
executed or imported; the generated code depends on packages that are not
installed here.
"""

from __future__ import annotations

import ast
import logging
from typing import Mapping

logger = logging.getLogger("agent_builder.compiler.syntax")


def check_python_syntax(files: Mapping[str, str]) -> list[str]:
    """Return one ``filename:line: message`` string per unparseable file."""
    failures: list[str] = []
    for filename, source in files.items():
        if not filename.endswith(".py"):
            continue
        try:
            ast.parse(source, filename=filename)
        except SyntaxError as exc:
            failures.append(f"{filename}:{exc.lineno or 0}: {exc.msg}")
            logger.error("Generated %s does not parse: %s (line %s)", filename, exc.msg, exc.lineno)
    return failures
