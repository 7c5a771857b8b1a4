"""Two-phase compile: preflight, then deterministic generation.

compile_workflow() is the single entry point used by the API and the CLI:

  1. run_preflight(config)   errors / warnings as data
  2. generate_code(config)   skipped when blocked by preflight errors

CompileResult fields:
  files:         ordered {filename: text}; empty when blocked, on a topology
                 fault, or when a file would not encode as UTF-8
  errors:        preflight errors, plus one terminal error on either fault
  warnings:      preflight warnings
  payload_hash:  SHA-256 over the ordered "filename\\0content\\0" stream
                 ("" when no files were produced)

Two calls with the same WorkflowConfig produce the same payload_hash.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from agent_builder.compiler.emitter import GenerateOptions, generate_code
from agent_builder.compiler.models import WorkflowConfig
from agent_builder.compiler.preflight import Severity, ValidationIssue, run_preflight
from agent_builder.compiler.topology import TopologyError

logger = logging.getLogger("agent_builder.compiler.pipeline")


@dataclass
class CompileResult:
    files: dict[str, str] = field(default_factory=dict)
    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)
    payload_hash: str = ""

    @property
    def ok(self) -> bool:
        return not self.errors and bool(self.files)

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "files": dict(self.files),
            "errors": [i.to_dict() for i in self.errors],
            "warnings": [i.to_dict() for i in self.warnings],
            "payload_hash": self.payload_hash,
        }


def payload_hash(files: Mapping[str, str]) -> str:
    """SHA-256 hex digest over every (filename, content) pair in order."""
    digest = hashlib.sha256()
    for filename, content in files.items():
        digest.update(filename.encode("utf-8"))
        digest.update(b"\0")
        digest.update(content.encode("utf-8"))
        digest.update(b"\0")
    return digest.hexdigest()


def _unencodable_files(files: Mapping[str, str]) -> list[str]:
    bad: list[str] = []
    for filename, content in files.items():
        try:
            content.encode("utf-8")
        except UnicodeEncodeError:
            bad.append(filename)
    return bad


def compile_workflow(
    config: WorkflowConfig,
    *,
    block_on_errors: bool = True,
    options: GenerateOptions | None = None,
) -> CompileResult:
    """Validate `config` and, unless blocked, generate the project files.

    block_on_errors=False generates even when preflight reports errors; the
    errors are still returned and ok stays False.
    """
    preflight = run_preflight(config)
    result = CompileResult(errors=list(preflight.errors), warnings=list(preflight.warnings))

    if preflight.has_errors and block_on_errors:
        logger.info("Generation blocked by %d preflight error(s)", len(preflight.errors))
        return result

    try:
        files = generate_code(config, options)
    except TopologyError as exc:
        logger.warning("Generation aborted: %s", exc)
        result.errors.append(ValidationIssue(Severity.ERROR, str(exc), "agents"))
        return result

    unencodable = _unencodable_files(files)
    if unencodable:
        logger.warning("Generation aborted: %s not encodable as UTF-8", ", ".join(unencodable))
        result.errors.extend(
            ValidationIssue(
                Severity.ERROR,
                f"Generated {name} contains text that cannot be encoded as UTF-8 "
                "(unpaired surrogate).",
                None,
            )
            for name in unencodable
        )
        return result

    result.files = files
    result.payload_hash = payload_hash(files)
    logger.debug("Compiled %d files, payload_hash=%s", len(files), result.payload_hash[:12])
    return result
