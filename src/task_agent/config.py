# config.py
# Static configuration for the task agent.
#
# Everything here is immutable once loaded. The agent, the prompts and the
# argument validators receive an AgentConfig explicitly; nothing reads the
# environment after startup.

import os
from collections.abc import Mapping

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field


class ConfigError(Exception):
    """Raised when a required setting is missing from the environment."""


# ---------------------------------------------------------------------------
# Catalog entries
# ---------------------------------------------------------------------------


class Project(BaseModel):
    """A Linear project the agent may assign tasks to."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""


class WorkflowState(BaseModel):
    """A Linear workflow state (New, Backlog, Done, ...)."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str


DEFAULT_PROJECTS: tuple[Project, ...] = (
    Project(
        id="ad799a5f-259c-4ff1-9387-efb949a56508",
        name="overment",
        description=(
            "Personal tasks, YouTube channel development, social media engagement, "
            "and programming education. This is the default project for tasks that "
            "don't fit elsewhere."
        ),
    ),
    Project(
        id="a1c39fbd-b462-44cb-a9e9-eefe9afd6471",
        name="easy_",
        description=(
            "Centers on digital marketing and sales, including blog post creation, "
            "marketing strategies, and product development."
        ),
    ),
    Project(
        id="1b587de1-4734-4de4-b540-5dc360bd6c1a",
        name="tech•sistence",
        description="Dedicated to newsletters, product development, and AI research.",
    ),
    Project(
        id="4ce13c4d-cf86-4812-b1bc-f2374c71774d",
        name="eduweb",
        description=(
            "Focuses on educational content creation, including online courses and "
            "workshops, newsletter production, and managing the Ahoy! community. "
            "Also covers financial management and educational project oversight."
        ),
    ),
    Project(
        id="873cbb34-5c12-48d4-ab6d-c8fc6b4f8379",
        name="Alice",
        description=(
            "Tasks and information related to the Alice / heyalice.app project. "
            "That's desktop app for macOS that allows interaction for macOS and the "
            "user is Creator and Developer of it."
        ),
    ),
)

DEFAULT_WORKFLOW_STATES: tuple[WorkflowState, ...] = (
    WorkflowState(id="fd9e4c84-ecc3-4c04-973f-26fac2d0b294", name="New"),
    WorkflowState(id="f96f2997-50b8-40c1-a1c8-90b8869a3d32", name="Canceled"),
    WorkflowState(id="d414e77c-0bb9-4554-88fb-1dba0fa3b434", name="Backlog"),
    WorkflowState(id="9e510759-093b-41df-9cb8-9ff8a0d4cb1c", name="Current"),
    WorkflowState(id="599ef3db-5579-48c9-8482-04508f75f868", name="Done"),
)

DEFAULT_MODEL = "gpt-4.1-mini"
LINEAR_API_URL = "https://api.linear.app/graphql"


# ---------------------------------------------------------------------------
# AgentConfig
# ---------------------------------------------------------------------------


class AgentConfig(BaseModel):
    """
    Immutable settings injected into the agent at construction time.

    Credentials may be left empty in tests; load_config() is the only
    place that insists on them.
    """

    model_config = ConfigDict(frozen=True)

    user_name: str = "Adam"
    ai_name: str = "Alice"
    user_context: str = ""

    model: str = DEFAULT_MODEL
    openai_api_key: str = ""
    openai_base_url: str | None = None

    linear_api_key: str = ""
    linear_api_url: str = LINEAR_API_URL
    default_team_id: str = "22919b24-e2be-4655-be8e-1e493561541f"
    default_assignee_id: str = "384901b5-dd22-402e-9114-c19970743b94"
    default_project_id: str = DEFAULT_PROJECTS[0].id

    projects: tuple[Project, ...] = Field(default=DEFAULT_PROJECTS)
    workflow_states: tuple[WorkflowState, ...] = Field(default=DEFAULT_WORKFLOW_STATES)

    @property
    def background(self) -> str:
        """General knowledge about the user, as rendered into prompts."""
        return self.user_context or f"You are {self.ai_name}, a helpful assistant."

    def schema_defaults(self) -> dict[str, str]:
        """Fallback values for task fields the model leaves out."""
        return {
            "team_id": self.default_team_id,
            "assignee_id": self.default_assignee_id,
            "project_id": self.default_project_id,
        }


def _required(env: Mapping[str, str], key: str) -> str:
    value = env.get(key, "").strip()
    if not value:
        raise ConfigError(f"Missing {key}. Set the {key} environment variable.")
    return value


def load_config(env: Mapping[str, str] | None = None) -> AgentConfig:
    """
    Build an AgentConfig from the process environment (or `env`).

    A .env file in the working directory is honoured when reading the
    real environment. Raises ConfigError when an API key is absent.
    """
    if env is None:
        load_dotenv()
        env = os.environ

    defaults = AgentConfig()
    return AgentConfig(
        user_name=env.get("TASK_AGENT_USER_NAME", defaults.user_name),
        ai_name=env.get("TASK_AGENT_AI_NAME", defaults.ai_name),
        user_context=env.get("TASK_AGENT_USER_CONTEXT", ""),
        model=env.get("TASK_AGENT_MODEL", DEFAULT_MODEL),
        openai_api_key=_required(env, "OPENAI_API_KEY"),
        openai_base_url=env.get("OPENAI_BASE_URL") or None,
        linear_api_key=_required(env, "LINEAR_API_KEY"),
        linear_api_url=env.get("LINEAR_API_URL", LINEAR_API_URL),
        default_team_id=env.get("LINEAR_DEFAULT_TEAM_ID", defaults.default_team_id),
        default_assignee_id=env.get("LINEAR_DEFAULT_ASSIGNEE_ID", defaults.default_assignee_id),
        default_project_id=env.get("LINEAR_DEFAULT_PROJECT_ID", defaults.default_project_id),
    )
