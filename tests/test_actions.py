import asyncio
from datetime import date

import pytest
from conftest import TODAY, FakeTracker

from task_agent.actions import ActionExecutor, ActionFailure, default_date_range, summarize_issue
from task_agent.models import (
    AddTaskArgs,
    ContactUserArgs,
    CreatedIssue,
    DeleteTaskArgs,
    GetTasksArgs,
    UpdateTaskArgs,
)


def _add(*titles: str) -> AddTaskArgs:
    return AddTaskArgs.model_validate(
        {"inputs": [{"title": t, "teamId": "team-1", "projectId": "proj-1"} for t in titles]}
    )


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_create_returns_issue_summaries(executor, tracker):
    results = await executor.execute("add_task", _add("Call Jane", "Buy milk"))
    assert [r.title for r in results] == ["Call Jane", "Buy milk"]
    assert all(isinstance(r, CreatedIssue) for r in results)
    assert results[0].model_dump(by_alias=True) == {
        "id": "issue-1",
        "identifier": "TSK-1",
        "title": "Call Jane",
        "url": "https://linear.app/team/issue/TSK-1",
    }
    sent = tracker.calls[0][1]
    assert sent == {"teamId": "team-1", "title": "Call Jane", "projectId": "proj-1"}


@pytest.mark.asyncio
async def test_create_is_all_or_nothing(executor, tracker):
    tracker.fail_titles = {"Buy milk"}
    with pytest.raises(ActionFailure) as info:
        await executor.execute("add_task", _add("Call Jane", "Buy milk", "Pay rent"))
    assert info.value.tool == "add_task"
    assert info.value.cause == "Failed to create issue for: Buy milk"
    # Siblings issued concurrently still completed.
    assert [kind for kind, _ in tracker.calls] == ["create", "create", "create"]


@pytest.mark.asyncio
async def test_batch_calls_run_concurrently():
    started: list[str] = []
    gate = asyncio.Event()

    class SlowTracker(FakeTracker):
        async def archive_issue(self, issue_id):
            started.append(issue_id)
            if len(started) == 3:
                gate.set()
            await asyncio.wait_for(gate.wait(), timeout=1)
            return {"success": True}

    executor = ActionExecutor(SlowTracker())
    results = await executor.execute("delete_task", DeleteTaskArgs(ids=["a", "b", "c"]))
    assert [r.id for r in results] == ["a", "b", "c"]


# ---------------------------------------------------------------------------
# Update / delete
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_created_id_round_trips_into_update_and_delete(executor, tracker):
    created = await executor.execute("add_task", _add("Call Jane"))
    issue_id = created[0].id

    updated = await executor.execute(
        "update_task",
        UpdateTaskArgs.model_validate({"inputs": [{"id": issue_id, "title": "Call Jane back"}]}),
    )
    assert updated[0].model_dump() == {
        "id": issue_id,
        "title": "Call Jane back",
        "url": "https://linear.app/team/issue/TSK-1",
    }
    assert tracker.calls[-1] == ("update", (issue_id, {"title": "Call Jane back"}))

    deleted = await executor.execute("delete_task", DeleteTaskArgs(ids=[issue_id]))
    assert deleted[0].id == issue_id
    assert issue_id not in tracker.issues


@pytest.mark.asyncio
async def test_update_failure_names_the_id(executor):
    args = UpdateTaskArgs.model_validate({"inputs": [{"id": "missing", "title": "x"}]})
    with pytest.raises(ActionFailure, match="Failed to update issue with id missing"):
        await executor.execute("update_task", args)


@pytest.mark.asyncio
async def test_delete_failure_in_batch(executor, tracker):
    tracker.fail_ids = {"b"}
    with pytest.raises(ActionFailure) as info:
        await executor.execute("delete_task", DeleteTaskArgs(ids=["a", "b", "c"]))
    assert info.value.cause == "Failed to archive issue with id b"
    assert str(info.value) == "The 'delete_task' action failed: Failed to archive issue with id b"
    assert [call for call in tracker.calls if call[0] == "archive"] == [
        ("archive", "a"),
        ("archive", "b"),
        ("archive", "c"),
    ]


@pytest.mark.asyncio
async def test_thrown_fault_keeps_id_and_cause(executor, tracker):
    tracker.raise_ids = {"c"}
    with pytest.raises(ActionFailure) as info:
        await executor.execute("delete_task", DeleteTaskArgs(ids=["a", "c"]))
    assert info.value.cause == "Failed to archive issue with id c: connection reset"
    assert isinstance(info.value.__cause__, RuntimeError)


@pytest.mark.asyncio
async def test_empty_batch_is_a_no_op(executor, tracker):
    assert await executor.execute("delete_task", DeleteTaskArgs(ids=[])) == []
    assert tracker.calls == []


# ---------------------------------------------------------------------------
# Query
# ---------------------------------------------------------------------------


def test_default_date_range():
    assert default_date_range(date(2026, 10, 19)) == (date(2026, 10, 12), date(2026, 10, 26))
    assert default_date_range(date(2026, 10, 19), start=date(2026, 1, 1)) == (
        date(2026, 1, 1),
        date(2026, 10, 26),
    )


@pytest.mark.asyncio
async def test_query_defaults_to_seven_days_each_way(executor, tracker):
    await executor.execute("get_tasks", GetTasksArgs())
    kind, (start, end, first, after) = tracker.calls[0]
    assert kind == "query"
    assert start.isoformat() == "2026-10-12"
    assert end.isoformat() == "2026-10-26"
    assert (first, after) == (None, None)
    assert TODAY.isoformat() == "2026-10-19"


@pytest.mark.asyncio
async def test_query_passes_explicit_range_and_paging(executor, tracker):
    args = GetTasksArgs.model_validate({"startDate": "2026-09-01", "endDate": "2026-09-30", "first": 20})
    await executor.execute("get_tasks", args)
    assert tracker.calls[0][1] == (date(2026, 9, 1), date(2026, 9, 30), 20, None)


@pytest.mark.asyncio
async def test_query_projection_uses_sentinels():
    tracker = FakeTracker(
        nodes=[
            {
                "id": "issue-9",
                "title": "Record video",
                "description": None,
                "createdAt": "2026-10-01T10:00:00.000Z",
                "dueDate": None,
                "url": "https://linear.app/team/issue/TSK-9",
                "state": None,
                "project": None,
            }
        ]
    )
    results = await ActionExecutor(tracker, today=lambda: TODAY).execute("get_tasks", GetTasksArgs())
    assert results[0].model_dump(by_alias=True) == {
        "id": "issue-9",
        "projectId": "N/A",
        "title": "Record video",
        "description": None,
        "dueDate": None,
        "createdAt": "2026-10-01T10:00:00.000Z",
        "url": "https://linear.app/team/issue/TSK-9",
        "stateName": "N/A",
        "projectName": "N/A",
    }


def test_summarize_issue_with_project_and_state():
    summary = summarize_issue(
        {
            "id": "issue-3",
            "title": "Ship course",
            "description": "module 2",
            "createdAt": "2026-10-02T08:00:00.000Z",
            "dueDate": "2026-10-21",
            "url": "https://linear.app/x",
            "state": {"name": "Current"},
            "project": {"id": "proj-edu", "name": "eduweb"},
        }
    )
    assert summary.project_id == "proj-edu"
    assert summary.project_name == "eduweb"
    assert summary.state_name == "Current"
    assert summary.due_date == "2026-10-21"


@pytest.mark.asyncio
async def test_query_failure_is_an_action_failure(executor, tracker):
    async def boom(*args, **kwargs):
        raise RuntimeError("rate limited")

    tracker.issues_in_range = boom
    with pytest.raises(ActionFailure, match="rate limited"):
        await executor.execute("get_tasks", GetTasksArgs())


@pytest.mark.asyncio
async def test_terminal_arguments_are_not_executable(executor):
    with pytest.raises(TypeError):
        await executor.execute("contact_user", ContactUserArgs())
