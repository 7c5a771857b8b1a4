"""Deterministic code emitter for the generated Chainlit / ADK project.

generate_code(config) returns an ordered {filename: text} mapping:

  main.py          one factory per agent + workflow assembly
  tools.py         pydantic input schema + stub per unique tool
  requirements.txt dependency manifest (mapping.compute_requirements)
  README.md        setup guide
  Dockerfile       container build instructions
  .gcloudignore    build/runtime artifacts excluded from uploads
  cloudbuild.yaml  only when a project id is set
  deploy.sh        only when a project id is set

The emitter is deterministic: the same WorkflowConfig always yields the same
bytes. User text never reaches the output unescaped; names go through the
sanitizer and free text through escape_string_literal().

Tool dedup: tools are keyed by sanitized function name across all agents.
The first definition wins; later definitions with the same sanitized name are
dropped without any validation issue. Agents referencing a dropped definition
still call the surviving function.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from agent_builder.compiler import templates
from agent_builder.compiler.mapping import (
    ModelFamily,
    compute_requirements,
    field_annotation,
    model_family,
    render_requirements,
)
from agent_builder.compiler.models import (
    DEFAULT_TEMPERATURE,
    Agent,
    DeploymentConfig,
    Parameter,
    Tool,
    WorkflowConfig,
    WorkflowType,
)
from agent_builder.compiler.sanitize import (
    escape_string_literal,
    python_literal,
    python_multiline_literal,
    to_identifier,
    to_pascal_case,
    tool_function_name,
    unique_identifiers,
)
from agent_builder.compiler.topology import Topology, resolve_topology

logger = logging.getLogger("agent_builder.compiler.emitter")

MAIN_FILE = "main.py"
TOOLS_FILE = "tools.py"
REQUIREMENTS_FILE = "requirements.txt"
README_FILE = "README.md"
DOCKERFILE = "Dockerfile"
IGNORE_FILE = ".gcloudignore"
BUILD_SPEC_FILE = "cloudbuild.yaml"
DEPLOY_SCRIPT_FILE = "deploy.sh"
ENV_EXAMPLE_FILE = ".env.example"

DEFAULT_WELCOME_MESSAGE = "Welcome to the agent workflow!"
DEFAULT_INPUT_PLACEHOLDER = "Start the workflow..."

_INDENT = "    "


@dataclass(frozen=True)
class GenerateOptions:
    """Optional artifacts beyond the fixed file set."""

    include_env_example: bool = False


@dataclass(frozen=True)
class ToolDefinition:
    """A tool that survived dedup, with its emitted names."""

    function_name: str
    schema_name: str
    tool: Tool


@dataclass(frozen=True)
class SchemaField:
    name: str
    alias: str | None
    param: Parameter


# ---------------------------------------------------------------------------
# Name resolution
# ---------------------------------------------------------------------------


def collect_tools(agents: list[Agent] | tuple[Agent, ...]) -> list[ToolDefinition]:
    """Deduplicate tools across agents by sanitized name (first wins)."""
    kept: dict[str, Tool] = {}
    for agent in agents:
        for tool in agent.tools:
            function_name = tool_function_name(tool.name)
            if function_name in kept:
                logger.debug(
                    "Dropping tool %r on agent %r: %r already defined",
                    tool.name, agent.name, function_name,
                )
                continue
            kept[function_name] = tool

    schema_names = unique_identifiers(
        [f"{to_pascal_case(t.name)}Input" for t in kept.values()]
    )
    return [
        ToolDefinition(function_name=fn, schema_name=schema, tool=tool)
        for (fn, tool), schema in zip(kept.items(), schema_names)
    ]


def agent_identifiers(agents: list[Agent] | tuple[Agent, ...]) -> dict[str, str]:
    """Map agent id → unique sanitized identifier, in input order."""
    idents = unique_identifiers([to_identifier(a.name) for a in agents])
    return {agent.id: ident for agent, ident in zip(agents, idents)}


def schema_fields(tool: Tool) -> list[SchemaField]:
    """Field names for a tool's input schema.

    Names starting with "_" or "model_" are not usable as pydantic fields;
    those get a "param_" prefix and keep the original name as an alias.
    """
    raw_names = [to_identifier(p.name) for p in tool.parameters]
    names = [
        f"param{n}" if n.startswith("_") else f"param_{n}" if n.startswith("model_") else n
        for n in raw_names
    ]
    fields: list[SchemaField] = []
    for name, raw, param in zip(unique_identifiers(names), raw_names, tool.parameters):
        alias = raw if name != raw and raw.startswith(("_", "model_")) else None
        fields.append(SchemaField(name=name, alias=alias, param=param))
    return fields


def _float_literal(value: float) -> str:
    if not math.isfinite(value):
        logger.warning("Non-finite temperature %r replaced with %s", value, DEFAULT_TEMPERATURE)
        value = DEFAULT_TEMPERATURE
    return repr(float(value))


def _docstring(lines: list[str], indent: str) -> list[str]:
    """Render a triple-quoted docstring; every line is escaped."""
    escaped = [escape_string_literal(line) for line in lines]
    if len(escaped) == 1:
        return [f'{indent}"""{escaped[0]}"""']
    out = [f'{indent}"""{escaped[0]}']
    out.extend(f"{indent}{line}" if line else "" for line in escaped[1:])
    out.append(f'{indent}"""')
    return out


# ---------------------------------------------------------------------------
# tools.py
# ---------------------------------------------------------------------------


def generate_tools_py(tools: list[ToolDefinition]) -> str:
    """Render tools.py. An empty tool list yields a module with no tools."""
    if not tools:
        return (
            '"""Tool implementations for the generated workflow.\n'
            "\n"
            "No tools defined across any agents.\n"
            '"""\n'
            "\n"
            "# This workflow has no tools defined. Add tools in the builder and\n"
            "# regenerate to get typed input schemas and stubs here.\n"
            "ALL_TOOLS: list = []\n"
        )

    lines: list[str] = [
        '"""Tool implementations for the generated workflow.',
        "",
        "Each tool has a pydantic input schema and a stub function. Replace the",
        "stub bodies with real logic.",
        '"""',
        "",
        "import logging",
        "from typing import Optional",
        "",
        "from pydantic import BaseModel, Field",
        "",
        "logger = logging.getLogger(__name__)",
    ]
    for definition in tools:
        lines.extend(["", ""])
        lines.extend(_render_tool(definition))

    lines.extend(["", ""])
    lines.append("ALL_TOOLS = [")
    lines.extend(f"{_INDENT}{d.function_name}," for d in tools)
    lines.append("]")
    return "\n".join(lines) + "\n"


def _render_tool(definition: ToolDefinition) -> list[str]:
    tool = definition.tool
    fields = schema_fields(tool)

    lines = [f"class {definition.schema_name}(BaseModel):"]
    lines.extend(_docstring([f"Input schema for the '{tool.name}' tool."], _INDENT))
    for f in fields:
        default = "..." if f.param.required else "None"
        args = [default]
        if f.alias:
            args.append(f"alias={python_literal(f.alias)}")
        args.append(f"description={python_literal(f.param.description)}")
        lines.append(f"{_INDENT}{f.name}: {field_annotation(f.param)} = Field({', '.join(args)})")

    doc = tool.description.strip().split("\n") if tool.description.strip() else [
        "No description provided."
    ]
    if fields:
        doc.extend(["", "Args:"])
        for f in fields:
            desc = " ".join(f.param.description.split()) or "No description."
            prefix = "" if f.param.required else "Optional. "
            doc.append(f"    {f.name}: {prefix}{desc}")

    fn = definition.function_name
    lines.extend(["", ""])
    lines.append(f"def {fn}(inputs: {definition.schema_name}) -> str:")
    lines.extend(_docstring(doc, _INDENT))
    lines.extend([
        f"{_INDENT}# TODO: Implement the actual logic for this tool.",
        f'{_INDENT}logger.info("Executing tool %s with inputs: %s", "{fn}", inputs.model_dump())',
        f'{_INDENT}return "Tool \'{fn}\' executed successfully with inputs: " + inputs.model_dump_json()',
    ])
    return lines


# ---------------------------------------------------------------------------
# main.py
# ---------------------------------------------------------------------------


def _memory_expression(deployment: DeploymentConfig) -> tuple[str, str]:
    """Return (import line, instantiation expression) for agent memory."""
    if deployment.use_memory_bank:
        project = (
            python_literal(deployment.project_id)
            if deployment.has_project
            else 'os.environ.get("GOOGLE_CLOUD_PROJECT", "")'
        )
        region = python_literal(deployment.region or templates.DEFAULT_REGION)
        return (
            "from adk.memory.google.memory_bank import MemoryBank",
            f"MemoryBank(project_id={project}, location={region})",
        )
    return "from adk.memory.memory import Memory as LocalMemory", "LocalMemory()"


def _llm_expression(agent: Agent) -> str:
    cls = "VertexAI" if model_family(agent.llm_model) is ModelFamily.VERTEX else "OpenAI"
    return (
        f"{cls}(model={python_literal(agent.llm_model)}, "
        f"temperature={_float_literal(agent.temperature)})"
    )


def _agent_tool_refs(agent: Agent) -> list[str]:
    refs: list[str] = []
    for tool in agent.tools:
        ref = f"agent_tools.{tool_function_name(tool.name)}"
        if ref not in refs:
            refs.append(ref)
    return refs


def _render_agent_factory(agent: Agent, ident: str, memory_expr: str) -> list[str]:
    i2 = _INDENT * 2
    lines = [f"def create_agent_{ident}() -> Agent:"]
    lines.extend(_docstring([f"Instantiate the '{agent.name}' agent."], _INDENT))
    lines.append(f"{_INDENT}return Agent(")
    lines.append(f"{i2}name={python_literal(ident)},")
    lines.append(f"{i2}llm={_llm_expression(agent)},")
    lines.append(f"{i2}memory={memory_expr},")
    lines.append(f"{i2}system_prompt={python_multiline_literal(agent.system_prompt, i2)},")
    lines.append(f"{i2}welcome_message={python_literal(agent.welcome_message)},")
    lines.append(f"{i2}input_placeholder={python_literal(agent.input_placeholder)},")
    refs = _agent_tool_refs(agent)
    if refs:
        lines.append(f"{i2}tools=[")
        lines.extend(f"{i2}{_INDENT}{ref}," for ref in refs)
        lines.append(f"{i2}],")
    else:
        lines.append(f"{i2}tools=[],")
    lines.append(f"{_INDENT})")
    return lines


def _render_workflow(topology: Topology, idents: dict[str, str]) -> list[str]:
    """Workflow assembly inside start_chat(), shaped by the workflow type."""
    i2, i3 = _INDENT * 2, _INDENT * 3
    lines = [f"{_INDENT}# Create instances of each agent"]
    lines.extend(
        f"{_INDENT}agent_{idents[a]} = create_agent_{idents[a]}()" for a in topology.order
    )
    lines.append("")

    agent_list = [f"{i3}agent_{idents[a]}," for a in topology.order]
    wf = topology.workflow_type
    if wf is WorkflowType.HIERARCHICAL:
        lines.append(f"{_INDENT}# Assemble the agents into a hierarchical workflow.")
        lines.append(f"{_INDENT}# structure maps each supervisor to its direct reports.")
        lines.append(f"{_INDENT}workflow = Hierarchical(")
        lines.append(f"{i2}agents=[")
        lines.extend(agent_list)
        lines.append(f"{i2}],")
        entries = [
            (agent_id, topology.children_of(agent_id))
            for agent_id, _ in topology.walk()
            if topology.children_of(agent_id)
        ]
        if entries:
            lines.append(f"{i2}structure={{")
            for parent, kids in entries:
                kid_list = ", ".join(python_literal(idents[k]) for k in kids)
                lines.append(f"{i3}{python_literal(idents[parent])}: [{kid_list}],")
            lines.append(f"{i2}}},")
        else:
            lines.append(f"{i2}structure={{}},")
        lines.append(f"{_INDENT})")
    elif wf is WorkflowType.COLLABORATIVE:
        lines.append(f"{_INDENT}# Assemble the agents into a collaborative workflow.")
        lines.append(f"{_INDENT}# Agents are peers; list order carries no meaning.")
        lines.append(f"{_INDENT}workflow = Collaborative(")
        lines.append(f"{i2}agents=[")
        lines.extend(agent_list)
        lines.append(f"{i2}],")
        lines.append(f"{_INDENT})")
    else:
        chain = " -> ".join(f"agent_{idents[a]}" for a in topology.order)
        lines.append(f"{_INDENT}# Assemble the agents into a sequential workflow.")
        lines.append(f"{_INDENT}# The output of each agent becomes the input of the next:")
        lines.append(f"{_INDENT}# {chain}")
        lines.append(f"{_INDENT}workflow = Sequential(")
        lines.append(f"{i2}agents=[")
        lines.extend(agent_list)
        lines.append(f"{i2}],")
        lines.append(f"{_INDENT})")
    lines.append(f'{_INDENT}cl.user_session.set("workflow", workflow)')
    return lines


_PROFILE_DESCRIPTIONS: dict[WorkflowType, str] = {
    WorkflowType.SEQUENTIAL: "This chat is powered by a sequence of specialized agents.",
    WorkflowType.HIERARCHICAL: "This chat is powered by a supervisor and its team of agents.",
    WorkflowType.COLLABORATIVE: "This chat is powered by a team of collaborating agents.",
}


def generate_main_py(config: WorkflowConfig, topology: Topology) -> str:
    """Render main.py for an already-resolved topology."""
    agents = list(config.agents)
    if not agents:
        return (
            '"""Chainlit entry point for the generated workflow."""\n'
            "\n"
            "# No agents defined. Please add an agent to the workflow.\n"
        )

    deployment = config.deployment
    idents = agent_identifiers(agents)
    families = {model_family(a.llm_model) for a in agents}
    uses_vertex = ModelFamily.VERTEX in families
    uses_openai = any(f is not ModelFamily.VERTEX for f in families)
    memory_import, memory_expr = _memory_expression(deployment)

    lines: list[str] = [
        f'"""Chainlit entry point for the {config.workflow_type.value} multi-agent workflow.',
        "",
        "Generated by agent-builder. Implement tool logic in tools.py.",
        '"""',
        "",
        "import logging",
        "import os",
        "",
        "import chainlit as cl",
        "from adk.agent import Agent",
        f"from adk.workflow import {config.workflow_type.value}",
    ]
    if uses_openai:
        lines.append("from adk.llm.provider.openai import OpenAI")
    if uses_vertex:
        lines.append("from adk.llm.provider.vertex import VertexAI")
    lines.append(memory_import)
    lines.extend([
        "",
        "import tools as agent_tools",
        "",
        "logging.basicConfig(level=logging.INFO)",
        "logger = logging.getLogger(__name__)",
        "",
    ])

    if uses_openai:
        lines.extend([
            'if not os.getenv("OPENAI_API_KEY"):',
            f'{_INDENT}raise ValueError("OPENAI_API_KEY environment variable not set")',
            "",
        ])
    if uses_vertex or deployment.use_memory_bank:
        lines.extend([
            'if not os.getenv("GOOGLE_APPLICATION_CREDENTIALS"):',
            f"{_INDENT}logger.warning(",
            f'{_INDENT * 2}"GOOGLE_APPLICATION_CREDENTIALS environment variable not set. "',
            f'{_INDENT * 2}"Using default credentials."',
            f"{_INDENT})",
            "",
        ])

    first = agents[0]
    welcome = first.welcome_message or DEFAULT_WELCOME_MESSAGE
    placeholder = first.input_placeholder or DEFAULT_INPUT_PLACEHOLDER
    lines.append(f"WELCOME_MESSAGE = {python_literal(welcome)}")
    lines.append(f"INPUT_PLACEHOLDER = {python_literal(placeholder)}")

    for agent in agents:
        lines.extend(["", ""])
        lines.extend(_render_agent_factory(agent, idents[agent.id], memory_expr))

    lines.extend(["", "", "@cl.on_chat_start", "async def start_chat():"])
    lines.extend(_render_workflow(topology, idents))
    lines.append(f"{_INDENT}await cl.Message(content=WELCOME_MESSAGE).send()")

    profile = python_literal(_PROFILE_DESCRIPTIONS[config.workflow_type])
    lines.extend([
        "",
        "",
        "@cl.on_message",
        "async def main(message: cl.Message):",
        f'{_INDENT}workflow = cl.user_session.get("workflow")',
        f'{_INDENT}response_message = cl.Message(content="")',
        "",
        f"{_INDENT}# Collect the streamed response and send it as a single payload",
        f"{_INDENT}chunks: list[str] = []",
        f"{_INDENT}async for chunk in workflow.astream(message.content):",
        f"{_INDENT * 2}if chunk:",
        f"{_INDENT * 3}chunks.append(str(chunk))",
        "",
        f'{_INDENT}response_message.content = "".join(chunks)',
        f"{_INDENT}await response_message.send()",
        "",
        "",
        "@cl.set_chat_profiles",
        "async def chat_profile():",
        f"{_INDENT}return [",
        f"{_INDENT * 2}cl.ChatProfile(",
        f'{_INDENT * 3}name="Multi-Agent Workflow",',
        f"{_INDENT * 3}markdown_description={profile},",
        f"{_INDENT * 2}),",
        f"{_INDENT}]",
        "",
        "",
        "# Get the port from the environment variable, default to 8000 for local development",
        'port = int(os.environ.get("PORT", 8000))',
        'os.environ.setdefault("CHAINLIT_PORT", str(port))',
        "",
        'Copilot = getattr(cl, "Copilot", None)',
        "if Copilot is not None:",
        f'{_INDENT}Copilot(route="/", chat_input_placeholder=INPUT_PLACEHOLDER).mount_app(port=port)',
        "else:",
        f'{_INDENT}logger.info("Chainlit Copilot API not available; using the default UI on port %s", port)',
    ])
    return "\n".join(lines) + "\n"


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def generate_code(
    config: WorkflowConfig,
    options: GenerateOptions | None = None,
) -> dict[str, str]:
    """Compile `config` into the ordered {filename: text} artifact map.

    Raises TopologyError / TopologyCycleError when the agent graph cannot be
    resolved; nothing is returned in that case.
    """
    options = options or GenerateOptions()
    topology = resolve_topology(config.agents, config.workflow_type)
    tools = collect_tools(config.agents)
    requirements = compute_requirements(config.agents, config.deployment)
    deployment = config.deployment

    files: dict[str, str] = {
        MAIN_FILE: generate_main_py(config, topology),
        TOOLS_FILE: generate_tools_py(tools),
        REQUIREMENTS_FILE: render_requirements(requirements),
        README_FILE: templates.render_readme(config, topology),
        DOCKERFILE: templates.render_dockerfile(),
        IGNORE_FILE: templates.render_ignore_file(),
    }
    if deployment.has_project:
        files[BUILD_SPEC_FILE] = templates.render_build_spec(deployment)
        files[DEPLOY_SCRIPT_FILE] = templates.render_deploy_script(deployment)
    if options.include_env_example:
        files[ENV_EXAMPLE_FILE] = templates.render_env_example(config)

    logger.info(
        "Generated %d files for %d agent(s), %d tool(s), workflow=%s",
        len(files), len(config.agents), len(tools), config.workflow_type.value,
    )
    return files
