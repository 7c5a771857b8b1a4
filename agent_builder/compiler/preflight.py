"""Preflight validation: semantic checks that run before code generation.

Validation never mutates its input and never raises for well-typed input.
Problems are returned as data so the caller decides whether an error blocks
generation:

  error    the generated program would be invalid or wrong
             (empty / keyword / duplicate identifier, bad range or model)
  warning  the name will be sanitized; the message carries the identifier
             that will appear in the generated code

All issues are collected in one pass. Each carries a dotted path such as
``agents[0].tools[2].parameters[1].name`` for UI / test correlation.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable

from agent_builder.compiler.mapping import SUPPORTED_MODELS
from agent_builder.compiler.models import Agent, DeploymentConfig, Tool, WorkflowConfig
from agent_builder.compiler.sanitize import (
    is_identifier,
    is_keyword,
    to_kebab_case,
    to_snake_case,
    tool_function_name,
)

TEMPERATURE_MIN: float = 0.0
TEMPERATURE_MAX: float = 2.0

PROJECT_ID_PATTERN = re.compile(r"^[a-z][a-z0-9-]{4,28}[a-z0-9]$")
REGION_PATTERN = re.compile(r"^[a-z]+-[a-z]+[0-9]+$")


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class ValidationIssue:
    severity: Severity
    message: str
    path: str | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"severity": self.severity.value, "message": self.message}
        if self.path is not None:
            d["path"] = self.path
        return d


@dataclass
class PreflightResult:
    """Issues found by preflight, split by severity."""

    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    @property
    def issues(self) -> list[ValidationIssue]:
        return self.errors + self.warnings

    def extend(self, issues: Iterable[ValidationIssue]) -> None:
        for issue in issues:
            if issue.severity is Severity.ERROR:
                self.errors.append(issue)
            else:
                self.warnings.append(issue)

    def to_dict(self) -> dict[str, Any]:
        return {
            "errors": [i.to_dict() for i in self.errors],
            "warnings": [i.to_dict() for i in self.warnings],
            "has_errors": self.has_errors,
            "has_warnings": self.has_warnings,
        }


def _error(message: str, path: str | None = None) -> ValidationIssue:
    return ValidationIssue(Severity.ERROR, message, path)


def _warning(message: str, path: str | None = None) -> ValidationIssue:
    return ValidationIssue(Severity.WARNING, message, path)


# ---------------------------------------------------------------------------
# Identifier checks
# ---------------------------------------------------------------------------


def _check_identifier(
    kind: str,
    raw: str,
    path: str,
    seen: set[str],
    scope: str,
    key: Callable[[str], str] = to_snake_case,
) -> list[ValidationIssue]:
    """Check one identifier-bearing field.

    kind:   "Agent", "Tool" or "Parameter" (used in messages).
    seen:   keys already used in the same scope; updated in place.
    scope:  human wording of the uniqueness rule for duplicate messages.
    key:    maps a name to the identifier it is emitted as; duplicates are
            detected on this.
    """
    issues: list[ValidationIssue] = []
    trimmed = raw.strip()
    if not trimmed:
        return [_error(f"{kind} name is required.", path)]

    sanitized = to_snake_case(trimmed)
    if is_keyword(trimmed) or not is_identifier(sanitized):
        issues.append(_error(
            f'{kind} name "{raw}" must be a valid Python identifier '
            "(letters, numbers, underscore; cannot start with a number "
            "or be a Python keyword).",
            path,
        ))
    elif raw != sanitized:
        issues.append(_warning(
            f'{kind} name "{raw}" will be sanitized to "{sanitized}" '
            "in the generated code.",
            path,
        ))

    emitted = key(trimmed)
    if emitted in seen:
        issues.append(_error(
            f'Duplicate {kind.lower()} name "{raw}" found. {scope}',
            path,
        ))
    else:
        seen.add(emitted)
    return issues


def _validate_tool(tool: Tool, path: str, seen_tools: set[str]) -> list[ValidationIssue]:
    issues = _check_identifier(
        "Tool", tool.name, f"{path}.name", seen_tools,
        "Tool names must be unique per agent.",
        key=tool_function_name,
    )
    seen_params: set[str] = set()
    for p_idx, param in enumerate(tool.parameters):
        issues.extend(_check_identifier(
            "Parameter", param.name, f"{path}.parameters[{p_idx}].name", seen_params,
            "Parameter names must be unique per tool.",
        ))
    return issues


def _validate_agent(agent: Agent, path: str) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []

    t = agent.temperature
    if not (math.isfinite(t) and TEMPERATURE_MIN <= t <= TEMPERATURE_MAX):
        issues.append(_error(
            f"Temperature {t} is out of range; it must be between "
            f"{TEMPERATURE_MIN} and {TEMPERATURE_MAX}.",
            f"{path}.temperature",
        ))

    if agent.llm_model not in SUPPORTED_MODELS:
        issues.append(_error(
            f'Unsupported LLM model "{agent.llm_model}". '
            f"Allowed values: {', '.join(SUPPORTED_MODELS)}.",
            f"{path}.llmModel",
        ))

    seen_tools: set[str] = set()
    for t_idx, tool in enumerate(agent.tools):
        issues.extend(_validate_tool(tool, f"{path}.tools[{t_idx}]", seen_tools))
    return issues


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------


def validate(agents: Iterable[Agent]) -> PreflightResult:
    """Validate agents, tools and parameters. Pure; collects every issue."""
    agents = list(agents)
    result = PreflightResult()

    if not agents:
        result.extend([_error("At least one agent is required.", "agents")])

    seen_names: set[str] = set()
    seen_ids: set[str] = set()
    for idx, agent in enumerate(agents):
        path = f"agents[{idx}]"
        if agent.id in seen_ids:
            result.extend([_error(
                f'Duplicate agent id "{agent.id}" found. Agent ids must be unique.',
                f"{path}.id",
            )])
        seen_ids.add(agent.id)
        result.extend(_check_identifier(
            "Agent", agent.name, f"{path}.name", seen_names,
            "Agent names must be unique.",
        ))
        result.extend(_validate_agent(agent, path))

    return result


def validate_deployment(deployment: DeploymentConfig) -> PreflightResult:
    """Check deployment field formats. An all-empty config has no issues."""
    result = PreflightResult()
    if deployment.is_empty:
        return result

    project_id = deployment.project_id.strip()
    if not project_id:
        if deployment.use_memory_bank:
            result.extend([_warning(
                "Memory Bank is enabled but no project ID is set; "
                "the generated code will read GOOGLE_CLOUD_PROJECT at runtime.",
                "deploymentConfig.projectId",
            )])
        else:
            result.extend([_warning(
                "Deployment settings are set but no project ID is given; "
                "deployment files will not be generated.",
                "deploymentConfig.projectId",
            )])
    elif not PROJECT_ID_PATTERN.match(project_id):
        result.extend([_error(
            f'Project ID "{project_id}" is invalid. Use 6-30 lowercase letters, '
            "digits or hyphens, starting with a letter.",
            "deploymentConfig.projectId",
        )])

    region = deployment.region.strip()
    if region and not REGION_PATTERN.match(region):
        result.extend([_error(
            f'Region "{region}" is invalid. Expected a form like "us-central1".',
            "deploymentConfig.region",
        )])

    service_name = deployment.service_name.strip()
    if service_name:
        kebab = to_kebab_case(service_name)
        if not kebab:
            result.extend([_error(
                f'Service name "{service_name}" has no usable characters.',
                "deploymentConfig.serviceName",
            )])
        elif kebab != service_name:
            result.extend([_warning(
                f'Service name "{service_name}" will be sanitized to "{kebab}".',
                "deploymentConfig.serviceName",
            )])
    return result


def run_preflight(config: WorkflowConfig) -> PreflightResult:
    """Agents pass followed by the deployment pass."""
    result = validate(config.agents)
    deployment = validate_deployment(config.deployment)
    result.extend(deployment.errors + deployment.warnings)
    return result
