"""Shared fixtures: an in-memory stand-in for the Neo4j gateway."""

from typing import Any

import pytest


class FakeNeo4jService:
    """Records every call and answers with canned rows.

    `responses` maps a substring of the Cypher text to the rows returned
    for queries containing it; other queries get `rows`.
    """

    def __init__(
        self,
        rows: list[dict[str, Any]] | None = None,
        responses: dict[str, list[dict[str, Any]]] | None = None,
        error: Exception | None = None,
    ):
        self.rows = rows or []
        self.responses = responses or {}
        self.error = error
        self.calls: list[tuple[str, str, dict[str, Any]]] = []
        self.closed = False

    def _rows_for(self, query: str) -> list[dict[str, Any]]:
        for marker, rows in self.responses.items():
            if marker in query:
                return rows
        return self.rows

    async def query_all(self, query: str, limit: int = 100, **params: Any) -> list[dict[str, Any]]:
        self.calls.append(("query_all", query, {**params, "limit": limit}))
        if self.error is not None:
            raise self.error
        return [dict(row) for row in self._rows_for(query)][:limit]

    async def query_one(self, query: str, **params: Any) -> dict[str, Any] | None:
        rows = await self.query_all(query, limit=1, **params)
        return rows[0] if rows else None

    async def command(self, query: str, max_retries: int = 3, **params: Any) -> dict[str, Any] | None:
        self.calls.append(("command", query, params))
        if self.error is not None:
            raise self.error
        rows = self._rows_for(query)
        return dict(rows[0]) if rows else None

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def fake_neo4j():
    return FakeNeo4jService()
