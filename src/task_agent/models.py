# models.py
# Data contracts for the task agent.
# No business logic lives here, pure schema and validation.
#
# Field names are snake_case in Python and camelCase on the wire, which is
# what both the model prompts and the Linear API speak.

from datetime import date
from enum import Enum
from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

Role = Literal["user", "assistant"]


class _Schema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _fill_defaults(data: Any, info: ValidationInfo, fields: tuple[str, ...]) -> Any:
    """Insert config-supplied fallbacks for fields the model left blank."""
    defaults = info.context or {}
    if not isinstance(data, dict):
        return data
    data = dict(data)
    for name in fields:
        alias = to_camel(name)
        if data.get(alias) in (None, "") and data.get(name) in (None, ""):
            if defaults.get(name):
                data.pop(name, None)
                data[alias] = defaults[name]
    return data


def _blank_to_none(value: Any) -> Any:
    """A blank date string means the model left the date out."""
    if isinstance(value, str) and not value.strip():
        return None
    return value


# ---------------------------------------------------------------------------
# Transcript
# ---------------------------------------------------------------------------


class Message(BaseModel):
    """One role-tagged transcript entry."""

    role: Role
    content: str


class Decision(BaseModel):
    """The model's choice of the next tool, with its stated reasoning."""

    model_config = ConfigDict(populate_by_name=True)

    thinking: str = Field(
        ...,
        alias="_thinking",
        description=(
            "Your internal thoughts in the form of a comma-separated-list of ideas and "
            "observations, such as 'add task request, next step should be: add_task'. "
            "Keep it ultra-concise."
        ),
    )
    action: str = Field(..., description="Name of the tool you need to use, for example: add_task")

    @field_validator("action")
    @classmethod
    def _known_action(cls, value: str, info: ValidationInfo) -> str:
        names = (info.context or {}).get("tool_names")
        if names is not None and value not in names:
            raise ValueError(f"unknown tool {value!r}, expected one of: {', '.join(names)}")
        return value


# ---------------------------------------------------------------------------
# Tool arguments
# ---------------------------------------------------------------------------


class GetTasksArgs(_Schema):
    start_date: date | None = Field(
        default=None,
        description="Start date of the range (YYYY-MM-DD) you want to get tasks for. Defaults to 7 days ago.",
    )
    end_date: date | None = Field(
        default=None,
        description="End date of the range (YYYY-MM-DD) you want to get tasks for. Defaults to 7 days from now.",
    )
    first: int | None = Field(default=None, ge=1, le=250, description="Maximum number of tasks to return.")
    after: str | None = Field(default=None, description="Pagination cursor from a previous page.")

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _blank_dates(cls, value: Any) -> Any:
        return _blank_to_none(value)


class AddTaskInput(_Schema):
    team_id: str | None = None
    title: str = Field(..., min_length=1)
    description: str | None = None
    priority: int | None = Field(default=None, ge=0, le=4)
    due_date: date | None = None
    project_id: str | None = Field(
        default=None,
        description=(
            "UUID of the project to assign the task to. Defaults to the default project "
            "if no other project matches the task description."
        ),
    )
    assignee_id: str | None = None

    @field_validator("due_date", mode="before")
    @classmethod
    def _blank_due_date(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @model_validator(mode="before")
    @classmethod
    def _apply_defaults(cls, data: Any, info: ValidationInfo) -> Any:
        return _fill_defaults(data, info, ("team_id", "project_id", "assignee_id"))


class AddTaskArgs(_Schema):
    inputs: list[AddTaskInput]


class UpdateTaskInput(_Schema):
    id: str = Field(..., min_length=1)
    title: str | None = None
    description: str | None = None
    priority: int | None = Field(default=None, ge=0, le=4)
    due_date: date | None = None
    project_id: str | None = Field(default=None, description="UUID of the project to move the task to.")
    assignee_id: str | None = None
    state_id: str | None = Field(default=None, description="UUID of the workflow state.")
    parent_id: str | None = None
    estimate: int | None = None

    @field_validator("due_date", mode="before")
    @classmethod
    def _blank_due_date(cls, value: Any) -> Any:
        return _blank_to_none(value)

    def changes(self) -> dict[str, Any]:
        """Fields to send to the tracker: only those the model actually set."""
        return self.model_dump(
            mode="json",
            by_alias=True,
            exclude={"id"},
            exclude_unset=True,
            exclude_none=True,
        )


class UpdateTaskArgs(_Schema):
    inputs: list[UpdateTaskInput]


class DeleteTaskArgs(_Schema):
    ids: list[str]


class ContactUserArgs(_Schema):
    """The terminal action takes no arguments."""


ExecutableArgs = GetTasksArgs | AddTaskArgs | UpdateTaskArgs | DeleteTaskArgs


# ---------------------------------------------------------------------------
# Action results
# ---------------------------------------------------------------------------


class CreatedIssue(_Schema):
    id: str
    identifier: str
    title: str
    url: str


class UpdatedIssue(_Schema):
    id: str
    title: str
    url: str


class ArchivedIssue(_Schema):
    id: str


class TaskSummary(_Schema):
    """Concise projection of an issue returned by get_tasks."""

    id: str
    project_id: str = "N/A"
    title: str
    description: str | None = None
    due_date: str | None = None
    created_at: str | None = None
    url: str
    state_name: str = "N/A"
    project_name: str = "N/A"


# ---------------------------------------------------------------------------
# Loop state
# ---------------------------------------------------------------------------


class LoopStatus(str, Enum):
    DONE = "done"
    ERRORED = "errored"
    EXHAUSTED = "exhausted"


class LoopState(BaseModel):
    """Per-request planner state. Never shared between requests."""

    remaining_iterations: int = Field(..., ge=0)
    last_action: str | None = None
    transcript: list[Message] = Field(default_factory=list)

    def add(self, role: Role, content: str) -> Message:
        message = Message(role=role, content=content)
        self.transcript.append(message)
        return message


class LoopOutcome(BaseModel):
    """How the planner loop ended."""

    status: LoopStatus
    state: LoopState
    executed: int = Field(default=0, description="Number of completed execute steps.")
    error: str | None = None


# ---------------------------------------------------------------------------
# Chat-completion envelope
# ---------------------------------------------------------------------------


class ChatMessage(BaseModel):
    """Inbound chat entry. Content may be plain text or a list of text parts."""

    role: str
    content: str | list[dict[str, Any]] | None = None

    def text(self) -> str:
        if isinstance(self.content, list):
            return "".join(
                str(part.get("text", "")) for part in self.content if part.get("type", "text") == "text"
            )
        return self.content or ""


class ChatRequest(BaseModel):
    messages: list[ChatMessage] = Field(default_factory=list)

    def last_user_content(self) -> str:
        """Text of the last user-authored entry, or '' when there is none."""
        for message in reversed(self.messages):
            if message.role == "user":
                return message.text().strip()
        return ""


class AssistantMessage(BaseModel):
    role: Literal["assistant"] = "assistant"
    content: str
    refusal: None = None
    annotations: list[Any] = Field(default_factory=list)


class Choice(BaseModel):
    index: int = 0
    message: AssistantMessage


class ChatCompletion(BaseModel):
    """Outbound envelope, identical for replies and in-loop error messages."""

    choices: list[Choice]

    @classmethod
    def from_text(cls, content: str) -> "ChatCompletion":
        return cls(choices=[Choice(index=0, message=AssistantMessage(content=content))])

    @property
    def content(self) -> str:
        return self.choices[0].message.content
