"""FastAPI service for the agent builder.

Wraps the workflow compiler in a small HTTP API used by the visual editor:

  GET  /health          → liveness + version
  POST /preflight       → validation issues for a workflow config
  POST /generate        → preflight, then the generated project files
  POST /workflow-type   → the config switched to another workflow type

Generation flow:
  POST /preflight   → editor shows errors / warnings next to the fields
  POST /generate    → 409 while preflight errors remain (strict mode)
                    → 422 when the agent hierarchy is cyclic or the JSON is malformed
                    → 200 with {filename: text} and payload_hash otherwise

Settings come from environment variables (agent_builder.config.Settings).
"""

import logging
from contextlib import asynccontextmanager
from typing import Any

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, HTTPException, Request, Security
from fastapi.middleware.cors import CORSMiddleware
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, Field
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from agent_builder.compiler import (
    ConfigError,
    GenerateOptions,
    TopologyError,
    WorkflowConfig,
    WorkflowType,
    compile_workflow,
    resolve_topology,
    run_preflight,
)
from agent_builder.config import Settings

logger = logging.getLogger("agent_builder.api")

API_VERSION = "0.1.0"


def get_settings() -> Settings:
    """Settings dependency; read per request so tests can patch the environment."""
    return Settings.from_env()


# ---------------------------------------------------------------------------
# API key authentication (optional, enabled when AGENT_BUILDER_API_KEY is set)
# ---------------------------------------------------------------------------

_bearer = HTTPBearer(auto_error=False)


def _verify_api_key(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    settings: Settings = Depends(get_settings),
) -> None:
    """Verify the Bearer token matches AGENT_BUILDER_API_KEY.

    If the key is not set, all requests are allowed (open dev mode).
    """
    if not settings.api_key:
        return
    if not credentials or credentials.credentials != settings.api_key:
        raise HTTPException(status_code=401, detail="Invalid or missing API key")


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI):
    load_dotenv()
    settings = Settings.from_env()
    logger.info(
        "Starting agent-builder API %s | strict=%s | auth=%s",
        API_VERSION, settings.strict, "on" if settings.api_key else "off",
    )
    logging.getLogger("agent_builder").setLevel(settings.log_level)
    yield
    logger.info("Shutting down agent-builder API")


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

_settings = Settings.from_env()
_rate_limit = f"{_settings.rate_limit_per_min}/minute"
limiter = Limiter(key_func=get_remote_address, default_limits=[_rate_limit])

app = FastAPI(
    title="Agent Builder API",
    description=(
        "Validates multi-agent workflow configurations and generates "
        "ready-to-run Chainlit / ADK projects."
    ),
    version=API_VERSION,
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(_settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------


class ConfigRequest(BaseModel):
    """A workflow configuration as produced by the editor."""

    agents: list[dict[str, Any]] = Field(
        default_factory=list,
        description="Ordered agent list. Each agent carries its tools and optional parentId.",
    )
    deploymentConfig: dict[str, Any] | None = Field(
        None,
        description="Optional deployment settings (projectId, serviceName, region, useMemoryBank).",
    )
    workflowType: str = Field(
        WorkflowType.SEQUENTIAL.value,
        description="One of Sequential, Hierarchical, Collaborative.",
    )

    def to_config(self) -> WorkflowConfig:
        return WorkflowConfig.from_dict(
            {
                "agents": self.agents,
                "deploymentConfig": self.deploymentConfig or {},
                "workflowType": self.workflowType,
            }
        )


class GenerateRequest(ConfigRequest):
    include_env_example: bool = Field(
        False, description="Also emit a .env.example listing the variables main.py reads."
    )
    block_on_errors: bool | None = Field(
        None,
        description=(
            "Refuse to generate while preflight errors remain. "
            "Defaults to the server's AGENT_BUILDER_STRICT setting."
        ),
    )


class WorkflowTypeRequest(ConfigRequest):
    target: str = Field(..., description="Workflow type to switch to.")


class IssueModel(BaseModel):
    severity: str
    message: str
    path: str | None = None


class PreflightResponse(BaseModel):
    errors: list[IssueModel]
    warnings: list[IssueModel]
    has_errors: bool
    has_warnings: bool


class GenerateResponse(BaseModel):
    ok: bool
    files: dict[str, str] = Field(description="Generated files in emission order.")
    errors: list[IssueModel]
    warnings: list[IssueModel]
    payload_hash: str = Field(description="SHA-256 over the ordered file stream.")


def _parse(body: ConfigRequest) -> WorkflowConfig:
    try:
        return body.to_config()
    except ConfigError as e:
        raise HTTPException(status_code=422, detail=str(e))


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@app.get("/health", tags=["system"], dependencies=[Depends(_verify_api_key)])
async def health() -> dict:
    return {"api": "ok", "version": API_VERSION}


@app.post("/preflight", response_model=PreflightResponse, tags=["compiler"], dependencies=[Depends(_verify_api_key)])
@limiter.limit(_rate_limit)
async def preflight(request: Request, body: ConfigRequest) -> PreflightResponse:
    """Validate a workflow config. Issues are returned, never raised."""
    config = _parse(body)
    result = run_preflight(config)
    logger.debug(
        "Preflight: %d error(s), %d warning(s)", len(result.errors), len(result.warnings)
    )
    return PreflightResponse(**result.to_dict())


@app.post("/generate", response_model=GenerateResponse, tags=["compiler"], dependencies=[Depends(_verify_api_key)])
@limiter.limit(_rate_limit)
async def generate(
    request: Request,
    body: GenerateRequest,
    settings: Settings = Depends(get_settings),
) -> GenerateResponse:
    """Compile a workflow config into project files.

    In strict mode (the default) preflight errors block generation with 409
    and the issue list as detail. Pass block_on_errors=false to generate
    anyway; the response then has ok=false alongside the files.
    """
    config = _parse(body)
    try:
        resolve_topology(config.agents, config.workflow_type)
    except TopologyError as e:
        raise HTTPException(status_code=422, detail=str(e))

    block = settings.strict if body.block_on_errors is None else body.block_on_errors
    result = compile_workflow(
        config,
        block_on_errors=block,
        options=GenerateOptions(include_env_example=body.include_env_example),
    )
    if not result.files:
        detail = result.to_dict()
        detail.pop("files")
        raise HTTPException(status_code=409, detail=detail)

    logger.info(
        "Generated %d file(s) for %d agent(s), hash=%s",
        len(result.files), len(config.agents), result.payload_hash[:12],
    )
    return GenerateResponse(**result.to_dict())


@app.post("/workflow-type", tags=["compiler"], dependencies=[Depends(_verify_api_key)])
@limiter.limit(_rate_limit)
async def change_workflow_type(request: Request, body: WorkflowTypeRequest) -> dict:
    """Return the config switched to `target`.

    Switching to Sequential or Collaborative clears every parentId; switching
    back to Hierarchical does not restore them.
    """
    config = _parse(body)
    try:
        target = WorkflowType.parse(body.target)
    except ConfigError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return config.with_workflow_type(target).to_dict()


# ---------------------------------------------------------------------------
# Entry point (for uvicorn programmatic launch)
# ---------------------------------------------------------------------------


def serve(host: str = "0.0.0.0", port: int = 8000, reload: bool = False) -> None:
    """Launch the FastAPI server via uvicorn."""
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    uvicorn.run(
        "agent_builder.api:app",
        host=host,
        port=port,
        reload=reload,
        log_level="info",
    )
