"""Typed input model for the workflow compiler.

The visual editor produces a JSON document describing agents, their tools and
the deployment settings. This module turns that document into immutable
dataclasses so the compiler never works on a loosely shaped dict:

  Parameter        one typed input of a tool
  Tool             a callable capability with an ordered parameter list
  Agent            prompt, model, tools and an optional parent reference
  DeploymentConfig optional cloud settings (credential *name* only)
  WorkflowConfig   the full compiler input

Parsing is lenient about unknown keys (dropped for forward-compatibility) and
strict about shape: a non-list ``agents`` or an unknown parameter type raises
ConfigError.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

DEFAULT_TEMPERATURE: float = 0.7
DEFAULT_MODEL: str = "gemini-2.5-flash"


class ConfigError(ValueError):
    """Raised when the editor JSON cannot be turned into a WorkflowConfig."""


class ParamType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"


_PARAM_TYPE_ALIASES: dict[str, ParamType] = {
    "string": ParamType.STRING,
    "text": ParamType.STRING,
    "str": ParamType.STRING,
    "number": ParamType.NUMBER,
    "numeric": ParamType.NUMBER,
    "float": ParamType.NUMBER,
    "boolean": ParamType.BOOLEAN,
    "bool": ParamType.BOOLEAN,
}


class WorkflowType(str, Enum):
    SEQUENTIAL = "Sequential"
    HIERARCHICAL = "Hierarchical"
    COLLABORATIVE = "Collaborative"

    @classmethod
    def parse(cls, value: Any) -> "WorkflowType":
        if isinstance(value, cls):
            return value
        for member in cls:
            if str(value).strip().lower() == member.value.lower():
                return member
        raise ConfigError(
            f"Unknown workflowType: {value!r}. Valid types: {[m.value for m in cls]}"
        )


@dataclass(frozen=True)
class Parameter:
    id: str = ""
    name: str = ""
    type: ParamType = ParamType.STRING
    description: str = ""
    required: bool = True


@dataclass(frozen=True)
class Tool:
    id: str = ""
    name: str = ""
    description: str = ""
    parameters: tuple[Parameter, ...] = ()


@dataclass(frozen=True)
class Agent:
    """A configured agent as edited in the builder.

    parent_id:  id of the supervising agent. Only meaningful for
                Hierarchical workflows; see topology.switch_workflow_type().
    llm_model:  model identifier, checked against SUPPORTED_MODELS by preflight.
    """

    id: str = ""
    name: str = ""
    system_prompt: str = ""
    welcome_message: str = ""
    input_placeholder: str = ""
    tools: tuple[Tool, ...] = ()
    parent_id: str | None = None
    llm_model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE


@dataclass(frozen=True)
class DeploymentConfig:
    """Deployment settings. Every field is optional.

    credential_ref is the *file name* of a service-account key. The key
    material itself is never accepted here and never written to any artifact.
    """

    project_id: str = ""
    service_name: str = ""
    region: str = ""
    use_memory_bank: bool = False
    credential_ref: str = field(default="", repr=False)

    @property
    def has_project(self) -> bool:
        return bool(self.project_id.strip())

    @property
    def is_empty(self) -> bool:
        return not (
            self.project_id.strip()
            or self.service_name.strip()
            or self.region.strip()
            or self.use_memory_bank
        )


@dataclass(frozen=True)
class WorkflowConfig:
    agents: tuple[Agent, ...] = ()
    deployment: DeploymentConfig = field(default_factory=DeploymentConfig)
    workflow_type: WorkflowType = WorkflowType.SEQUENTIAL

    def with_workflow_type(self, target: WorkflowType) -> "WorkflowConfig":
        """Return a copy switched to `target`. Lossy: see switch_workflow_type()."""
        from agent_builder.compiler.topology import switch_workflow_type

        return dataclasses.replace(
            self,
            agents=tuple(switch_workflow_type(self.agents, target)),
            workflow_type=target,
        )

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "WorkflowConfig":
        """Build a WorkflowConfig from the editor's JSON document.

        Accepts ``deploymentConfig`` or the legacy ``gcpConfig`` key.
        Raises ConfigError for structurally invalid input.
        """
        if not isinstance(d, dict):
            raise ConfigError(f"Expected a JSON object, got {type(d).__name__}")

        raw_agents = d.get("agents", [])
        if not isinstance(raw_agents, list):
            raise ConfigError(
                f"'agents' must be a list, got {type(raw_agents).__name__}"
            )
        agents = tuple(
            agent_from_dict(raw, f"agents[{i}]") for i, raw in enumerate(raw_agents)
        )

        raw_deployment = d.get("deploymentConfig", d.get("gcpConfig")) or {}
        deployment = deployment_from_dict(raw_deployment)

        workflow_type = WorkflowType.parse(
            d.get("workflowType", d.get("workflow_type", WorkflowType.SEQUENTIAL))
        )
        return cls(agents=agents, deployment=deployment, workflow_type=workflow_type)

    def to_dict(self) -> dict[str, Any]:
        """Serialize back to the editor JSON shape."""
        return {
            "agents": [agent_to_dict(a) for a in self.agents],
            "deploymentConfig": {
                "projectId": self.deployment.project_id,
                "serviceName": self.deployment.service_name,
                "region": self.deployment.region,
                "useMemoryBank": self.deployment.use_memory_bank,
                "credentialRef": self.deployment.credential_ref,
            },
            "workflowType": self.workflow_type.value,
        }


# ---------------------------------------------------------------------------
# Dict → dataclass helpers
# ---------------------------------------------------------------------------


def _text(raw: dict[str, Any], *keys: str) -> str:
    for key in keys:
        value = raw.get(key)
        if value is not None:
            text = str(value)
            try:
                text.encode("utf-8")
            except UnicodeEncodeError as e:
                raise ConfigError(
                    f"{key}: text cannot be encoded as UTF-8 "
                    f"(unpaired surrogate at position {e.start})"
                )
            return text
    return ""


def _flag(raw: dict[str, Any], path: str, default: bool, *keys: str) -> bool:
    for key in keys:
        value = raw.get(key)
        if value is None:
            continue
        if not isinstance(value, bool):
            raise ConfigError(
                f"{path}.{key} must be true or false, got {type(value).__name__} {value!r}"
            )
        return value
    return default


def _object(raw: Any, path: str) -> dict[str, Any]:
    if not isinstance(raw, dict):
        raise ConfigError(f"{path} must be an object, got {type(raw).__name__}")
    return raw


def _list(raw: Any, path: str) -> list[Any]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ConfigError(f"{path} must be a list, got {type(raw).__name__}")
    return raw


def parameter_from_dict(raw: Any, path: str = "parameter") -> Parameter:
    raw = _object(raw, path)
    type_name = str(raw.get("type", "string")).strip().lower()
    param_type = _PARAM_TYPE_ALIASES.get(type_name)
    if param_type is None:
        raise ConfigError(
            f"{path}.type: unknown parameter type {raw.get('type')!r}. "
            f"Valid types: {[t.value for t in ParamType]}"
        )
    return Parameter(
        id=_text(raw, "id"),
        name=_text(raw, "name"),
        type=param_type,
        description=_text(raw, "description"),
        required=_flag(raw, path, True, "required"),
    )


def tool_from_dict(raw: Any, path: str = "tool") -> Tool:
    raw = _object(raw, path)
    params = _list(raw.get("parameters"), f"{path}.parameters")
    return Tool(
        id=_text(raw, "id"),
        name=_text(raw, "name"),
        description=_text(raw, "description"),
        parameters=tuple(
            parameter_from_dict(p, f"{path}.parameters[{i}]")
            for i, p in enumerate(params)
        ),
    )


def agent_from_dict(raw: Any, path: str = "agent") -> Agent:
    raw = _object(raw, path)
    tools = _list(raw.get("tools"), f"{path}.tools")
    temperature = raw.get("temperature", DEFAULT_TEMPERATURE)
    try:
        temperature = float(temperature)
    except (TypeError, ValueError):
        raise ConfigError(f"{path}.temperature must be a number, got {temperature!r}")
    return Agent(
        id=_text(raw, "id"),
        name=_text(raw, "name"),
        system_prompt=_text(raw, "system_prompt", "systemPrompt"),
        welcome_message=_text(raw, "welcome_message", "welcomeMessage"),
        input_placeholder=_text(raw, "input_placeholder", "inputPlaceholder"),
        tools=tuple(tool_from_dict(t, f"{path}.tools[{i}]") for i, t in enumerate(tools)),
        parent_id=_text(raw, "parentId", "parent_id") or None,
        llm_model=_text(raw, "llmModel", "llm_model", "model") or DEFAULT_MODEL,
        temperature=temperature,
    )


def deployment_from_dict(raw: Any) -> DeploymentConfig:
    raw = _object(raw, "deploymentConfig")
    return DeploymentConfig(
        project_id=_text(raw, "projectId", "project_id").strip(),
        service_name=_text(raw, "serviceName", "service_name").strip(),
        region=_text(raw, "region").strip(),
        use_memory_bank=_flag(raw, "deploymentConfig", False, "useMemoryBank", "use_memory_bank"),
        credential_ref=_text(raw, "credentialRef", "serviceAccountKeyName", "credential_ref"),
    )


def agent_to_dict(agent: Agent) -> dict[str, Any]:
    return {
        "id": agent.id,
        "name": agent.name,
        "system_prompt": agent.system_prompt,
        "welcome_message": agent.welcome_message,
        "input_placeholder": agent.input_placeholder,
        "tools": [
            {
                "id": t.id,
                "name": t.name,
                "description": t.description,
                "parameters": [
                    {
                        "id": p.id,
                        "name": p.name,
                        "type": p.type.value,
                        "description": p.description,
                        "required": p.required,
                    }
                    for p in t.parameters
                ],
            }
            for t in agent.tools
        ],
        "parentId": agent.parent_id,
        "llmModel": agent.llm_model,
        "temperature": agent.temperature,
    }
