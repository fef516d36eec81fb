# tools.py
# Tool registry: the fixed catalog of operations the planner can choose.
#
# The registry constrains model output (names for the decide step, JSON
# schemas for the describe step) and validates arguments. It never calls
# the tracker; see actions.py for execution.

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ValidationError

from task_agent.models import (
    AddTaskArgs,
    ContactUserArgs,
    DeleteTaskArgs,
    GetTasksArgs,
    UpdateTaskArgs,
)

TERMINAL_ACTION = "contact_user"


class UnknownToolError(KeyError):
    """Raised when a tool name is absent from the registry."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Tool '{self.name}' is not in the registry"


class ToolArgumentsError(ValueError):
    """Raised when arguments do not satisfy a tool's schema."""

    def __init__(self, tool: str, error: ValidationError) -> None:
        first = error.errors()[0]
        self.tool = tool
        self.field = ".".join(str(part) for part in first["loc"]) or "<root>"
        self.reason = first["msg"]
        self.errors = error.errors()
        super().__init__(f"Invalid arguments for '{tool}': {self.field}: {self.reason}")


@dataclass(frozen=True)
class ToolSpec:
    """A named operation with its argument schema."""

    name: str
    description: str
    schema: type[BaseModel]

    @property
    def terminal(self) -> bool:
        return self.name == TERMINAL_ACTION

    def json_schema(self) -> dict[str, Any]:
        return self.schema.model_json_schema(by_alias=True)

    def validate(self, raw: Any, *, defaults: Mapping[str, Any] | None = None) -> BaseModel:
        """
        Validate and coerce `raw` into the tool's argument model.

        `defaults` fills optional fields the model left out (team, project,
        assignee). Raises ToolArgumentsError naming the offending field.
        """
        try:
            return self.schema.model_validate(raw, context=dict(defaults or {}))
        except ValidationError as exc:
            raise ToolArgumentsError(self.name, exc) from exc


class ToolRegistry:
    """Ordered, immutable collection of ToolSpecs."""

    def __init__(self, specs: tuple[ToolSpec, ...]) -> None:
        names = [spec.name for spec in specs]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate tool names in registry: {names}")
        if TERMINAL_ACTION not in names:
            raise ValueError(f"Registry must include the terminal action '{TERMINAL_ACTION}'")
        self._specs = specs
        self._by_name = {spec.name: spec for spec in specs}

    def __iter__(self) -> Iterator[ToolSpec]:
        return iter(self._specs)

    def __len__(self) -> int:
        return len(self._specs)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def names(self) -> tuple[str, ...]:
        return tuple(self._by_name)

    def get(self, name: str) -> ToolSpec:
        try:
            return self._by_name[name]
        except KeyError:
            raise UnknownToolError(name) from None

    def is_terminal(self, name: str | None) -> bool:
        return name == TERMINAL_ACTION

    def render(self) -> str:
        """Tool list for prompts, one `- name: description` line per tool."""
        return "\n".join(f"- {spec.name}: {spec.description}" for spec in self._specs)


TOOLS = ToolRegistry(
    (
        ToolSpec(
            name="get_tasks",
            description="Get issues in a date range (by default -7 / +7 days from current date)",
            schema=GetTasksArgs,
        ),
        ToolSpec(
            name="add_task",
            description="List of tasks to add to the Linear",
            schema=AddTaskArgs,
        ),
        ToolSpec(
            name="update_task",
            description="List of tasks to update in Linear",
            schema=UpdateTaskArgs,
        ),
        ToolSpec(
            name="delete_task",
            description="List of tasks to delete (archive) from the Linear",
            schema=DeleteTaskArgs,
        ),
        ToolSpec(
            name=TERMINAL_ACTION,
            description=(
                "Use this tool to contact the user for assistance, to report results, "
                "or to request information."
            ),
            schema=ContactUserArgs,
        ),
    )
)
