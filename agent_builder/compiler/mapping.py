"""Parameter type mapping and dependency manifest computation.

Both tables are fixed and ordered. The manifest is compared byte-for-byte by
callers, so requirement order comes from _REQUIREMENT_ORDER and never from
the order in which agents happen to trigger a dependency.
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Iterable

from agent_builder.compiler.models import Agent, DeploymentConfig, Parameter, ParamType

logger = logging.getLogger("agent_builder.compiler.mapping")


# ---------------------------------------------------------------------------
# Type mapping
# ---------------------------------------------------------------------------

PYTHON_TYPES: dict[ParamType, str] = {
    ParamType.STRING: "str",
    ParamType.NUMBER: "float",
    ParamType.BOOLEAN: "bool",
}


def python_type(param_type: ParamType) -> str:
    """Map an abstract parameter type to its Python annotation."""
    return PYTHON_TYPES[param_type]


def field_annotation(param: Parameter) -> str:
    """Annotation for a schema field; non-required params are Optional."""
    base = python_type(param.type)
    return base if param.required else f"Optional[{base}]"


# ---------------------------------------------------------------------------
# Model families
# ---------------------------------------------------------------------------


class ModelFamily(str, Enum):
    OPENAI = "openai"
    VERTEX = "vertex"


# Disjoint: a model id matches at most one pattern.
_FAMILY_PATTERNS: tuple[tuple[ModelFamily, re.Pattern[str]], ...] = (
    (ModelFamily.VERTEX, re.compile(r"^gemini-")),
    (ModelFamily.OPENAI, re.compile(r"^(gpt-|o[0-9])")),
)

SUPPORTED_MODELS: tuple[str, ...] = (
    "gemini-2.5-flash",
    "gemini-1.5-flash",
    "gemini-1.5-pro",
    "gpt-4o",
)


def model_family(model: str) -> ModelFamily | None:
    """Classify a model identifier. Returns None for unknown families."""
    for family, pattern in _FAMILY_PATTERNS:
        if pattern.match(model.strip()):
            return family
    return None


def uses_family(agents: Iterable[Agent], family: ModelFamily) -> bool:
    return any(model_family(a.llm_model) is family for a in agents)


# ---------------------------------------------------------------------------
# Dependency manifest
# ---------------------------------------------------------------------------

BASE_REQUIREMENTS: tuple[str, ...] = ("chainlit", "adk", "pydantic")
OPENAI_REQUIREMENT: str = "openai"
VERTEX_REQUIREMENT: str = "google-cloud-aiplatform"

_REQUIREMENT_ORDER: tuple[str, ...] = BASE_REQUIREMENTS + (
    OPENAI_REQUIREMENT,
    VERTEX_REQUIREMENT,
)


def compute_requirements(
    agents: Iterable[Agent],
    deployment: DeploymentConfig | None = None,
) -> list[str]:
    """Return the deduplicated, deterministically ordered requirement list.

    - BASE_REQUIREMENTS are always present.
    - "openai" when any agent uses an OpenAI-family model.
    - "google-cloud-aiplatform" when the memory flag is set OR any agent uses
      a Vertex-family model. Both triggers still yield one entry.
    """
    agents = list(agents)
    wanted: set[str] = set(BASE_REQUIREMENTS)
    if uses_family(agents, ModelFamily.OPENAI):
        wanted.add(OPENAI_REQUIREMENT)
    memory = deployment is not None and deployment.use_memory_bank
    if memory or uses_family(agents, ModelFamily.VERTEX):
        wanted.add(VERTEX_REQUIREMENT)
    requirements = [req for req in _REQUIREMENT_ORDER if req in wanted]
    logger.debug("Computed requirements: %s", requirements)
    return requirements


def render_requirements(requirements: list[str]) -> str:
    """Render the manifest file body (one requirement per line)."""
    return "\n".join(requirements) + (
        "\n"
        "# The ADK may have optional dependencies.\n"
        "# e.g., adk[google] for full GCP support.\n"
        "# python-dotenv  # Recommended for local development\n"
    )
