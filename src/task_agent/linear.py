# linear.py
# Task-tracking provider: a thin async client for the Linear GraphQL API.
#
# Returns raw GraphQL payloads. Deciding what counts as success, and
# shaping results for the transcript, is the executor's job.

from datetime import date
from typing import Any, Protocol

import httpx

from task_agent.config import LINEAR_API_URL


class LinearError(Exception):
    """Raised when the API answers with GraphQL errors."""


class TaskTracker(Protocol):
    """The four operations the executor needs from an issue tracker."""

    async def create_issue(self, fields: dict[str, Any]) -> dict[str, Any]: ...

    async def update_issue(self, issue_id: str, fields: dict[str, Any]) -> dict[str, Any]: ...

    async def archive_issue(self, issue_id: str) -> dict[str, Any]: ...

    async def issues_in_range(
        self,
        start: date,
        end: date,
        *,
        first: int | None = None,
        after: str | None = None,
    ) -> list[dict[str, Any]]: ...


# ---------------------------------------------------------------------------
# GraphQL documents
# ---------------------------------------------------------------------------

CREATE_ISSUE = """
mutation IssueCreate($input: IssueCreateInput!) {
  issueCreate(input: $input) {
    success
    issue { id identifier title url }
  }
}
"""

UPDATE_ISSUE = """
mutation IssueUpdate($id: String!, $input: IssueUpdateInput!) {
  issueUpdate(id: $id, input: $input) {
    success
    issue { id title url }
  }
}
"""

ARCHIVE_ISSUE = """
mutation IssueArchive($id: String!) {
  issueArchive(id: $id) {
    success
  }
}
"""

ISSUES_IN_RANGE = """
query getIssuesInRange($first: Int, $after: String, $gte: TimelessDateOrDuration!, $lte: TimelessDateOrDuration!) {
  issues(first: $first, after: $after, filter: { dueDate: { gte: $gte, lte: $lte } }) {
    nodes {
      id
      title
      description
      createdAt
      dueDate
      url
      state { name }
      project { id name }
    }
  }
}
"""


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class LinearClient:
    """
    Async Linear client.

    Pass `client` to share an httpx.AsyncClient (or a mocked transport in
    tests); otherwise one is created and owned by this instance.
    """

    def __init__(
        self,
        api_key: str,
        *,
        url: str = LINEAR_API_URL,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._url = url
        self._headers = {"Authorization": api_key, "Content-Type": "application/json"}
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        response = await self._client.post(
            self._url,
            json={"query": query, "variables": variables},
            headers=self._headers,
        )
        response.raise_for_status()
        body = response.json()
        errors = body.get("errors")
        if errors:
            messages = "; ".join(str(err.get("message", err)) for err in errors)
            raise LinearError(messages)
        return body.get("data") or {}

    async def create_issue(self, fields: dict[str, Any]) -> dict[str, Any]:
        data = await self._request(CREATE_ISSUE, {"input": fields})
        return data.get("issueCreate") or {"success": False}

    async def update_issue(self, issue_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        data = await self._request(UPDATE_ISSUE, {"id": issue_id, "input": fields})
        return data.get("issueUpdate") or {"success": False}

    async def archive_issue(self, issue_id: str) -> dict[str, Any]:
        data = await self._request(ARCHIVE_ISSUE, {"id": issue_id})
        return data.get("issueArchive") or {"success": False}

    async def issues_in_range(
        self,
        start: date,
        end: date,
        *,
        first: int | None = None,
        after: str | None = None,
    ) -> list[dict[str, Any]]:
        data = await self._request(
            ISSUES_IN_RANGE,
            {
                "first": first,
                "after": after,
                "gte": start.isoformat(),
                "lte": end.isoformat(),
            },
        )
        return list((data.get("issues") or {}).get("nodes") or [])
