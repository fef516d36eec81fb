# actions.py
# Action executor, the only component that touches the task tracker.
#
# Each non-terminal tool's argument model maps to exactly one handler.
# Batches run concurrently and are joined; if any item fails the whole
# action fails, but siblings already in flight are left to finish.

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from datetime import date, timedelta
from typing import Any, TypeVar, assert_never

from pydantic import BaseModel

from task_agent.linear import TaskTracker
from task_agent.models import (
    AddTaskArgs,
    AddTaskInput,
    ArchivedIssue,
    ContactUserArgs,
    CreatedIssue,
    DeleteTaskArgs,
    ExecutableArgs,
    GetTasksArgs,
    TaskSummary,
    UpdatedIssue,
    UpdateTaskArgs,
    UpdateTaskInput,
)

T = TypeVar("T")
R = TypeVar("R")

QUERY_WINDOW = timedelta(days=7)


class ActionFailure(Exception):
    """Raised when an external operation fails. Carries the tool and cause."""

    def __init__(self, tool: str, cause: str) -> None:
        super().__init__(cause)
        self.tool = tool
        self.cause = cause

    def __str__(self) -> str:
        return f"The '{self.tool}' action failed: {self.cause}"


class _ItemFailure(Exception):
    """One batch item failed; message identifies the item."""


def default_date_range(
    today: date,
    start: date | None = None,
    end: date | None = None,
) -> tuple[date, date]:
    """Fill missing bounds with today-7d / today+7d."""
    return start or today - QUERY_WINDOW, end or today + QUERY_WINDOW


def summarize_issue(node: dict[str, Any]) -> TaskSummary:
    """Project a raw issue node into the concise shape shown to the model."""
    project = node.get("project") or {}
    state = node.get("state") or {}
    return TaskSummary(
        id=node["id"],
        project_id=project.get("id") or "N/A",
        title=node.get("title") or "",
        description=node.get("description"),
        due_date=node.get("dueDate"),
        created_at=node.get("createdAt"),
        url=node.get("url") or "",
        state_name=state.get("name") or "N/A",
        project_name=project.get("name") or "N/A",
    )


async def _run_batch(
    tool: str,
    items: Sequence[T],
    call: Callable[[T], Awaitable[R]],
    describe: Callable[[T], str],
) -> list[R]:
    """
    Run `call` for every item concurrently and join.

    The first failure in input order becomes the ActionFailure. Thrown
    faults are prefixed with the item's description so the id survives.
    """
    outcomes = await asyncio.gather(*(call(item) for item in items), return_exceptions=True)
    results: list[R] = []
    for item, outcome in zip(items, outcomes):
        if isinstance(outcome, _ItemFailure):
            raise ActionFailure(tool, str(outcome)) from outcome
        if isinstance(outcome, Exception):
            raise ActionFailure(tool, f"{describe(item)}: {outcome}") from outcome
        if isinstance(outcome, BaseException):
            raise outcome
        results.append(outcome)
    return results


class ActionExecutor:
    """
    Executes validated tool arguments against a TaskTracker.

    `today` is injectable so query defaults are deterministic in tests.
    """

    def __init__(self, tracker: TaskTracker, *, today: Callable[[], date] = date.today) -> None:
        self._tracker = tracker
        self._today = today

    async def execute(self, tool: str, args: ExecutableArgs | ContactUserArgs) -> list[BaseModel]:
        match args:
            case GetTasksArgs():
                return await self._get_tasks(tool, args)
            case AddTaskArgs():
                return await self._create(tool, args.inputs)
            case UpdateTaskArgs():
                return await self._update(tool, args.inputs)
            case DeleteTaskArgs():
                return await self._delete(tool, args.ids)
            case ContactUserArgs():
                raise TypeError("The terminal action has no executor")
            case _:
                assert_never(args)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    async def _create(self, tool: str, inputs: list[AddTaskInput]) -> list[CreatedIssue]:
        async def create(task: AddTaskInput) -> CreatedIssue:
            payload = await self._tracker.create_issue(
                task.model_dump(mode="json", by_alias=True, exclude_none=True)
            )
            issue = payload.get("issue")
            if not payload.get("success") or not issue:
                raise _ItemFailure(f"Failed to create issue for: {task.title}")
            return CreatedIssue.model_validate(issue)

        return await _run_batch(tool, inputs, create, lambda task: f"Failed to create issue for: {task.title}")

    async def _update(self, tool: str, inputs: list[UpdateTaskInput]) -> list[UpdatedIssue]:
        async def update(task: UpdateTaskInput) -> UpdatedIssue:
            payload = await self._tracker.update_issue(task.id, task.changes())
            issue = payload.get("issue")
            if not payload.get("success") or not issue:
                raise _ItemFailure(f"Failed to update issue with id {task.id}")
            return UpdatedIssue.model_validate(issue)

        return await _run_batch(tool, inputs, update, lambda task: f"Failed to update issue with id {task.id}")

    async def _delete(self, tool: str, ids: list[str]) -> list[ArchivedIssue]:
        async def archive(issue_id: str) -> ArchivedIssue:
            payload = await self._tracker.archive_issue(issue_id)
            if not payload.get("success"):
                raise _ItemFailure(f"Failed to archive issue with id {issue_id}")
            return ArchivedIssue(id=issue_id)

        return await _run_batch(tool, ids, archive, lambda issue_id: f"Failed to archive issue with id {issue_id}")

    async def _get_tasks(self, tool: str, args: GetTasksArgs) -> list[TaskSummary]:
        start, end = default_date_range(self._today(), args.start_date, args.end_date)
        try:
            nodes = await self._tracker.issues_in_range(start, end, first=args.first, after=args.after)
        except Exception as exc:
            raise ActionFailure(tool, f"Failed to fetch issues from {start} to {end}: {exc}") from exc
        return [summarize_issue(node) for node in nodes]
