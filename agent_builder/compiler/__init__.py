"""Workflow configuration compiler.

Turns the builder's JSON description of a multi-agent workflow into a
ready-to-run Chainlit / ADK project.

Entry points:
    WorkflowConfig.from_dict(raw) → WorkflowConfig
    run_preflight(config)         → PreflightResult (errors / warnings as data)
    generate_code(config)         → {filename: text}
    compile_workflow(config)      → CompileResult (preflight + generate + hash)
    check_python_syntax(files)    → ["main.py:12: invalid syntax", ...]

Pieces:
    sanitize   identifier sanitization and literal escaping
    topology   Sequential / Hierarchical / Collaborative resolution
    mapping    parameter types, model families, requirements manifest
    emitter    main.py / tools.py generation and the file map
    templates  README, Dockerfile, ignore file, deployment files
"""

from agent_builder.compiler.emitter import GenerateOptions, generate_code
from agent_builder.compiler.mapping import SUPPORTED_MODELS, ModelFamily, compute_requirements
from agent_builder.compiler.models import (
    Agent,
    ConfigError,
    DeploymentConfig,
    Parameter,
    ParamType,
    Tool,
    WorkflowConfig,
    WorkflowType,
)
from agent_builder.compiler.pipeline import CompileResult, compile_workflow, payload_hash
from agent_builder.compiler.preflight import (
    PreflightResult,
    Severity,
    ValidationIssue,
    run_preflight,
    validate,
    validate_deployment,
)
from agent_builder.compiler.sanitize import EMPTY_IDENTIFIER, escape_string_literal, to_snake_case
from agent_builder.compiler.syntax import check_python_syntax
from agent_builder.compiler.topology import (
    CompilerError,
    Topology,
    TopologyCycleError,
    TopologyError,
    resolve_topology,
    switch_workflow_type,
)

__all__ = [
    # models
    "Agent",
    "ConfigError",
    "DeploymentConfig",
    "Parameter",
    "ParamType",
    "Tool",
    "WorkflowConfig",
    "WorkflowType",
    # preflight
    "PreflightResult",
    "Severity",
    "ValidationIssue",
    "run_preflight",
    "validate",
    "validate_deployment",
    # sanitize
    "EMPTY_IDENTIFIER",
    "escape_string_literal",
    "to_snake_case",
    # topology
    "CompilerError",
    "Topology",
    "TopologyCycleError",
    "TopologyError",
    "resolve_topology",
    "switch_workflow_type",
    # mapping
    "SUPPORTED_MODELS",
    "ModelFamily",
    "compute_requirements",
    # emitter / pipeline
    "GenerateOptions",
    "generate_code",
    "CompileResult",
    "compile_workflow",
    "payload_hash",
    "check_python_syntax",
]
