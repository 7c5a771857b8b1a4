"""Command-line front end for the workflow compiler.

Usage:
    agent-builder validate workflow.json
    agent-builder generate workflow.json --out ./my-agent [--force] [--ignore-errors] [--env-example]
    agent-builder serve [--host 0.0.0.0] [--port 8000]

validate and generate exit with status 1 when preflight reports errors, the
agent hierarchy is cyclic, or a generated Python file fails to parse.
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import ArgumentParser
from pathlib import Path

from dotenv import load_dotenv

from agent_builder.compiler import (
    CompilerError,
    ConfigError,
    GenerateOptions,
    ValidationIssue,
    WorkflowConfig,
    check_python_syntax,
    compile_workflow,
    run_preflight,
)
from agent_builder.config import Settings

logger = logging.getLogger("agent_builder.cli")


def _load_config(path: str) -> WorkflowConfig:
    """Read and parse a workflow JSON file. Raises ConfigError on bad input."""
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"cannot read {path}: {e.strerror or e}")
    except json.JSONDecodeError as e:
        raise ConfigError(f"{path} is not valid JSON: {e}")
    return WorkflowConfig.from_dict(raw)


def _print_issues(issues: list[ValidationIssue]) -> None:
    for issue in issues:
        where = f" [{issue.path}]" if issue.path else ""
        print(f"{issue.severity.value}{where}: {issue.message}")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _cmd_validate(args) -> int:
    config = _load_config(args.config)
    result = run_preflight(config)
    _print_issues(result.issues)
    print(f"{len(result.errors)} error(s), {len(result.warnings)} warning(s)")
    return 1 if result.has_errors else 0


def _cmd_generate(args) -> int:
    config = _load_config(args.config)
    out_dir = Path(args.out)
    if out_dir.exists() and any(out_dir.iterdir()) and not args.force:
        print(f"error: {out_dir} is not empty (use --force to overwrite)", file=sys.stderr)
        return 1

    result = compile_workflow(
        config,
        block_on_errors=not args.ignore_errors,
        options=GenerateOptions(include_env_example=args.env_example),
    )
    _print_issues(result.errors + result.warnings)
    if not result.files:
        print("error: nothing generated", file=sys.stderr)
        return 1

    failures = check_python_syntax(result.files)
    if failures:
        for failure in failures:
            print(f"error: {failure}", file=sys.stderr)
        return 1

    out_dir.mkdir(parents=True, exist_ok=True)
    for filename, content in result.files.items():
        (out_dir / filename).write_text(content, encoding="utf-8")
        logger.info("Wrote %s", out_dir / filename)

    print(f"Generated {len(result.files)} file(s) in {out_dir}")
    print(f"payload_hash: {result.payload_hash}")
    return 0 if result.ok else 1


def _cmd_serve(args) -> int:
    from agent_builder.api import serve

    serve(host=args.host, port=args.port, reload=args.reload)
    return 0


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(
        prog="agent-builder",
        description="Compile a multi-agent workflow config into a Chainlit / ADK project",
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    validate_p = sub.add_parser("validate", help="Run preflight checks on a workflow config")
    validate_p.add_argument("config", help="Path to the workflow JSON file")

    generate_p = sub.add_parser("generate", help="Generate the project files")
    generate_p.add_argument("config", help="Path to the workflow JSON file")
    generate_p.add_argument("--out", required=True, metavar="DIR", help="Output directory")
    generate_p.add_argument(
        "--force",
        action="store_true",
        help="write into a non-empty output directory",
    )
    generate_p.add_argument(
        "--ignore-errors",
        action="store_true",
        help="generate even when preflight reports errors",
    )
    generate_p.add_argument(
        "--env-example",
        action="store_true",
        help="also write a .env.example file",
    )

    serve_p = sub.add_parser("serve", help="Run the HTTP API")
    serve_p.add_argument("--host", default="0.0.0.0")
    serve_p.add_argument("--port", type=int, default=8000)
    serve_p.add_argument("--reload", action="store_true")
    return parser


_COMMANDS = {
    "validate": _cmd_validate,
    "generate": _cmd_generate,
    "serve": _cmd_serve,
}


def main(argv: list[str] | None = None) -> None:
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s")
    load_dotenv()
    logging.getLogger("agent_builder").setLevel(Settings.from_env().log_level)

    parser = build_parser()
    args = parser.parse_args(argv)

    command = _COMMANDS.get(args.command)
    if command is None:
        parser.print_help()
        sys.exit(1)

    try:
        code = command(args)
    except (ConfigError, CompilerError) as e:
        print(f"error: {e}", file=sys.stderr)
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
