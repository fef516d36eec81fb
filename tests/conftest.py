from datetime import date, datetime
from typing import Any

import pytest

from task_agent.actions import ActionExecutor
from task_agent.config import AgentConfig
from task_agent.harness import TaskAgent

NOW = datetime(2026, 10, 19, 9, 30)
TODAY = NOW.date()


class FakeReasoner:
    """Scripted stand-in for the OpenAI reasoner.

    `objects` is consumed in order by generate_object(); an Exception
    instance in the queue is raised instead of returned.
    """

    def __init__(self, objects: list[Any] | None = None, text: str = "Sure thing.") -> None:
        self.objects = list(objects or [])
        self.text = text
        self.object_calls: list[dict[str, Any]] = []
        self.text_calls: list[dict[str, Any]] = []

    async def generate_object(self, messages, system, schema, *, name):
        self.object_calls.append(
            {"name": name, "system": system, "schema": schema, "messages": list(messages)}
        )
        if not self.objects:
            raise AssertionError(f"Unexpected generate_object call for {name!r}")
        item = self.objects.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    async def generate_text(self, messages, system):
        self.text_calls.append({"system": system, "messages": list(messages)})
        return self.text


class FakeTracker:
    """In-memory TaskTracker that records every call."""

    def __init__(self, nodes: list[dict[str, Any]] | None = None) -> None:
        self.nodes = list(nodes or [])
        self.issues: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, Any]] = []
        self.fail_titles: set[str] = set()
        self.fail_ids: set[str] = set()
        self.raise_ids: set[str] = set()
        self._next = 1

    async def create_issue(self, fields: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(("create", fields))
        if fields["title"] in self.fail_titles:
            return {"success": False, "issue": None}
        issue_id = f"issue-{self._next}"
        issue = {
            "id": issue_id,
            "identifier": f"TSK-{self._next}",
            "title": fields["title"],
            "url": f"https://linear.app/team/issue/TSK-{self._next}",
        }
        self._next += 1
        self.issues[issue_id] = dict(fields, **issue)
        return {"success": True, "issue": issue}

    async def update_issue(self, issue_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(("update", (issue_id, fields)))
        if issue_id in self.raise_ids:
            raise RuntimeError("connection reset")
        if issue_id in self.fail_ids or issue_id not in self.issues:
            return {"success": False, "issue": None}
        self.issues[issue_id].update(fields)
        issue = self.issues[issue_id]
        return {"success": True, "issue": {"id": issue_id, "title": issue["title"], "url": issue["url"]}}

    async def archive_issue(self, issue_id: str) -> dict[str, Any]:
        self.calls.append(("archive", issue_id))
        if issue_id in self.raise_ids:
            raise RuntimeError("connection reset")
        if issue_id in self.fail_ids:
            return {"success": False}
        self.issues.pop(issue_id, None)
        return {"success": True}

    async def issues_in_range(self, start: date, end: date, *, first=None, after=None):
        self.calls.append(("query", (start, end, first, after)))
        return list(self.nodes)


def decision(action: str, thinking: str = "next step") -> dict[str, str]:
    return {"_thinking": thinking, "action": action}


@pytest.fixture
def config() -> AgentConfig:
    return AgentConfig(openai_api_key="sk-test", linear_api_key="lin-test")


@pytest.fixture
def tracker() -> FakeTracker:
    return FakeTracker()


@pytest.fixture
def executor(tracker) -> ActionExecutor:
    return ActionExecutor(tracker, today=lambda: TODAY)


@pytest.fixture
def make_agent(config, executor):
    def _make(reasoner: FakeReasoner) -> TaskAgent:
        return TaskAgent(config, reasoner, executor, clock=lambda: NOW)

    return _make
