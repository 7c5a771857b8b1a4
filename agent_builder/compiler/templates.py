"""Text templates for the non-Python artifacts of a generated project.

Deployment values are user text too: YAML values are single-quoted with ''
escaping and shell values go through shlex.quote(). Credential material is
never rendered; at most the credential file *name* is mentioned in README.md.
"""

from __future__ import annotations

import shlex
from pathlib import PurePath

from agent_builder.compiler.mapping import ModelFamily, uses_family
from agent_builder.compiler.models import Agent, DeploymentConfig, WorkflowConfig, WorkflowType
from agent_builder.compiler.sanitize import to_kebab_case
from agent_builder.compiler.topology import Topology

DEFAULT_REGION = "us-central1"
DEFAULT_SERVICE_NAME = "my-adk-agent"
IMAGE_REPOSITORY = "agent-engine-images"

IGNORED_PATHS: tuple[str, ...] = (
    ".git/",
    ".venv/",
    "venv/",
    "__pycache__/",
    "*.pyc",
    ".chainlit/",
    ".files/",
    ".env",
    "gcp-credentials.json",
    "*-credentials.json",
    "service-account*.json",
)


def service_name(deployment: DeploymentConfig) -> str:
    return to_kebab_case(deployment.service_name) or DEFAULT_SERVICE_NAME


def region(deployment: DeploymentConfig) -> str:
    return deployment.region.strip() or DEFAULT_REGION


def image_url(deployment: DeploymentConfig) -> str:
    return (
        f"{region(deployment)}-docker.pkg.dev/{deployment.project_id.strip()}"
        f"/{IMAGE_REPOSITORY}/{service_name(deployment)}"
    )


def _yaml_quote(value: str) -> str:
    flat = " ".join(value.split())
    return "'" + flat.replace("'", "''") + "'"


# ---------------------------------------------------------------------------
# README.md
# ---------------------------------------------------------------------------


def _tool_list(agent: Agent) -> str:
    return ", ".join(f"`{t.name}`" for t in agent.tools)


def _agent_overview(config: WorkflowConfig, topology: Topology) -> str:
    agents = {a.id: a for a in config.agents}
    count = len(config.agents)

    if topology.workflow_type is WorkflowType.HIERARCHICAL:
        lines = []
        for agent_id, depth in topology.walk():
            agent = agents[agent_id]
            tools = f" (Tools: {_tool_list(agent)})" if agent.tools else ""
            lines.append(f"{'  ' * depth}- **{agent.name}** (LLM: `{agent.llm_model}`){tools}")
        return (
            "This is a hierarchical workflow where agents operate in a "
            "supervisor-subordinate structure.\n\n" + "\n".join(lines)
        )

    if topology.workflow_type is WorkflowType.COLLABORATIVE:
        lines = []
        for agent_id in topology.order:
            agent = agents[agent_id]
            tools = f" (Tools: {_tool_list(agent)})" if agent.tools else ""
            lines.append(f"- **{agent.name}** (LLM: `{agent.llm_model}`){tools}")
        return (
            f"This is a collaborative workflow where {count} agents work as a "
            "team of peers.\n\n" + "\n".join(lines)
        )

    lines = []
    for step, agent_id in enumerate(topology.order, start=1):
        agent = agents[agent_id]
        lines.append(f"**Step {step}: {agent.name}** (LLM: `{agent.llm_model}`)")
        lines.append(f"   - **Tools:** {_tool_list(agent) if agent.tools else 'None'}")
    return (
        f"This is a sequential workflow consisting of {count} agent(s). The output "
        "of one agent is passed as the input to the next.\n\n" + "\n".join(lines)
    )


def _memory_section(deployment: DeploymentConfig) -> str:
    if deployment.use_memory_bank:
        project = deployment.project_id or "(set GOOGLE_CLOUD_PROJECT)"
        return (
            "### Memory Bank\n\n"
            "This agent is configured to use **GCP Memory Bank**, providing a "
            "persistent, managed memory solution. Ensure your deployment environment "
            "has permission to access the Memory Bank API in project "
            f"`{project}`.\n"
        )
    return (
        "### Local Memory\n\n"
        "This agent uses in-memory storage, which is reset on each session start. "
        "For persistent memory, enable Memory Bank in the deployment settings and "
        "regenerate.\n"
    )


def _credentials_section(deployment: DeploymentConfig) -> str:
    key_hint = ""
    if deployment.credential_ref.strip():
        key_name = PurePath(deployment.credential_ref.strip()).name
        key_hint = (
            f"\nThe builder was configured with a key file named `{key_name}`. "
            "Keep it outside this directory and point the variable at it.\n"
        )
    return (
        "### SECURITY WARNING: credentials\n\n"
        "NEVER commit service account keys or `.env` files to version control. "
        "Store the key outside the project and reference it with "
        "`GOOGLE_APPLICATION_CREDENTIALS`:\n\n"
        "```bash\n"
        "export GOOGLE_APPLICATION_CREDENTIALS=/path/to/your/service-account-key.json\n"
        "```\n" + key_hint
    )


def _deployment_section(deployment: DeploymentConfig) -> str:
    if not deployment.has_project:
        return (
            "## Deploy to GCP Agent Engine\n\n"
            "Set a GCP project ID in the builder's deployment settings and regenerate "
            "to get `cloudbuild.yaml` and `deploy.sh`.\n"
        )
    project_id = deployment.project_id.strip()
    return (
        "## Deploy to GCP Agent Engine\n\n"
        "This project is pre-configured for deployment to Google Cloud Agent Engine.\n\n"
        "**Prerequisites:**\n\n"
        "1.  Install the Google Cloud SDK and authenticate (`gcloud auth login`).\n"
        "2.  Enable the Cloud Build, Artifact Registry and Agent Engine APIs for "
        f"project `{project_id}`:\n"
        "    ```bash\n"
        "    gcloud services enable cloudbuild.googleapis.com "
        "artifactregistry.googleapis.com agentengine.googleapis.com "
        f"--project={shlex.quote(project_id)}\n"
        "    ```\n"
        "3.  The deploying account needs the Agent Engine Admin, Cloud Build Editor, "
        "Artifact Registry Admin and Service Account User roles.\n\n"
        "**Deploy:**\n\n"
        "```bash\n"
        "bash ./deploy.sh\n"
        "```\n\n"
        f"The service `{service_name(deployment)}` is deployed to region "
        f"`{region(deployment)}`.\n"
    )


def render_readme(config: WorkflowConfig, topology: Topology) -> str:
    deployment = config.deployment
    if config.agents:
        overview = _agent_overview(config, topology)
    else:
        overview = "No agents defined. Add an agent in the builder and regenerate."
    return (
        "# Multi-Agent Workflow - ADK & Chainlit\n\n"
        "This multi-agent workflow was configured and generated using the "
        "ADK & Chainlit Agent Builder.\n\n"
        f"## Workflow Overview: {config.workflow_type.value}\n\n"
        f"{overview}\n\n"
        f"{_memory_section(deployment)}\n"
        "## Local Setup & Run\n\n"
        "1.  **Install Dependencies:**\n"
        "    ```bash\n"
        "    pip install -r requirements.txt\n"
        "    ```\n\n"
        "2.  **Set Environment Variables:** create a `.env` file with the API keys "
        "your models need (`OPENAI_API_KEY` for OpenAI models, "
        "`GOOGLE_APPLICATION_CREDENTIALS` for Vertex AI and Memory Bank).\n\n"
        "3.  **Run the Chainlit App:**\n"
        "    ```bash\n"
        "    chainlit run main.py -w\n"
        "    ```\n\n"
        "4.  Open `http://localhost:8000` to start chatting.\n\n"
        f"{_credentials_section(deployment)}\n"
        f"{_deployment_section(deployment)}"
    )


# ---------------------------------------------------------------------------
# Container / ignore file
# ---------------------------------------------------------------------------


def render_dockerfile() -> str:
    return (
        "FROM python:3.11-slim\n"
        "WORKDIR /app\n"
        "COPY requirements.txt .\n"
        "RUN pip install --no-cache-dir -r requirements.txt\n"
        "COPY . .\n"
        "ENV AGENT_ENGINE_DEPLOYMENT=false\n"
        "ENV PORT=8080\n"
        "EXPOSE 8080\n"
        'CMD ["chainlit", "run", "main.py", "--host", "0.0.0.0", "--port", "8080"]\n'
    )


def render_ignore_file() -> str:
    return "\n".join(IGNORED_PATHS) + "\n"


# ---------------------------------------------------------------------------
# Deployment artifacts (only emitted when a project id is set)
# ---------------------------------------------------------------------------


def render_build_spec(deployment: DeploymentConfig) -> str:
    """cloudbuild.yaml: build, push, then deploy the image to Agent Engine."""
    image = _yaml_quote(image_url(deployment))
    project_id = deployment.project_id.strip()
    display_name = deployment.service_name.strip() or service_name(deployment)
    deploy_args = [
        "beta", "agent-engine", "agents", "deploy", service_name(deployment),
        f"--project={project_id}",
        f"--region={region(deployment)}",
        f"--image={image_url(deployment)}",
        f"--display-name={display_name}",
        "--agent-type=ADK",
        "--set-env-vars", "AGENT_ENGINE_DEPLOYMENT=true",
    ]
    arg_lines = "".join(f"    - {_yaml_quote(arg)}\n" for arg in deploy_args)
    return (
        "# cloudbuild.yaml\n"
        "steps:\n"
        "- name: 'gcr.io/cloud-builders/docker'\n"
        f"  args: ['build', '-t', {image}, '.']\n"
        "- name: 'gcr.io/cloud-builders/docker'\n"
        f"  args: ['push', {image}]\n"
        "- name: 'gcr.io/google.com/cloudsdktool/cloud-sdk'\n"
        "  entrypoint: gcloud\n"
        "  args:\n"
        f"{arg_lines}"
        "images:\n"
        f"- {image}\n"
        "options:\n"
        "  logging: CLOUD_LOGGING_ONLY\n"
    )


def render_deploy_script(deployment: DeploymentConfig) -> str:
    return (
        "#!/bin/bash\n"
        "set -euo pipefail\n"
        "\n"
        f"export PROJECT_ID={shlex.quote(deployment.project_id.strip())}\n"
        f"export REGION={shlex.quote(region(deployment))}\n"
        f"export SERVICE_NAME={shlex.quote(service_name(deployment))}\n"
        "\n"
        'gcloud config set project "$PROJECT_ID"\n'
        "gcloud services enable cloudbuild.googleapis.com run.googleapis.com "
        "artifactregistry.googleapis.com agentengine.googleapis.com\n"
        "gcloud builds submit --config cloudbuild.yaml .\n"
    )


# ---------------------------------------------------------------------------
# Optional: .env.example
# ---------------------------------------------------------------------------


def render_env_example(config: WorkflowConfig) -> str:
    """Environment template listing only the variables the program reads."""
    deployment = config.deployment
    agents = list(config.agents)
    uses_vertex = uses_family(agents, ModelFamily.VERTEX)
    uses_openai = any(
        not uses_family([a], ModelFamily.VERTEX) for a in agents
    )

    sections = [
        "# Environment configuration for the generated agent workflow.\n"
        "# Copy this file to .env and fill in your values.\n"
        "# NEVER commit the .env file to version control.\n"
        "\n"
        "PORT=8000\n"
    ]
    if uses_openai:
        sections.append(
            "# OpenAI\n"
            "OPENAI_API_KEY=your-openai-api-key\n"
        )
    if uses_vertex or deployment.use_memory_bank:
        sections.append(
            "# Google Cloud\n"
            f"GOOGLE_CLOUD_PROJECT={deployment.project_id.strip() or 'your-gcp-project-id'}\n"
            f"GCP_REGION={region(deployment)}\n"
            "GOOGLE_APPLICATION_CREDENTIALS=/path/to/your/service-account-key.json\n"
        )
    return "\n".join(sections)
