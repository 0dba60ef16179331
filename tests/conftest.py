"""Scripted stand-in for a psycopg async connection.

Responses are registered per SQL fragment: the first fragment contained in an
executed query decides the result. A result is a list of row dicts, an
exception instance (raised from ``execute``) or a callable taking the bound
parameters and returning either. Several results for one fragment are used
in turn, the last one repeating.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any

import pytest


class FakeCursor:
    def __init__(self, conn: "FakeConnection") -> None:
        self.conn = conn
        self.rows: list[dict[str, Any]] = []
        self.rowcount = -1

    async def __aenter__(self) -> "FakeCursor":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        return None

    async def execute(self, query: str, params: Any = None) -> None:
        self.conn.executed.append((query, params))
        result = self.conn.respond(query, params)
        if isinstance(result, Exception):
            raise result
        self.rows = list(result)
        self.rowcount = len(self.rows) if self.rows else 1

    async def fetchone(self) -> dict[str, Any] | None:
        return self.rows[0] if self.rows else None

    async def fetchall(self) -> list[dict[str, Any]]:
        return list(self.rows)


class FakeConnection:
    def __init__(self) -> None:
        self.executed: list[tuple[str, Any]] = []
        self.transactions = 0
        self._responses: list[tuple[str, list[Any]]] = []

    def on(self, fragment: str, *results: Any) -> "FakeConnection":
        self._responses.append((fragment, list(results)))
        return self

    def respond(self, query: str, params: Any) -> Any:
        for fragment, results in self._responses:
            if fragment in query:
                result = results.pop(0) if len(results) > 1 else results[0]
                if callable(result):
                    result = result(params)
                return result
        return []

    def cursor(self, row_factory: Any = None) -> FakeCursor:
        return FakeCursor(self)

    @asynccontextmanager
    async def transaction(self):
        self.transactions += 1
        yield

    def queries(self, fragment: str) -> list[tuple[str, Any]]:
        return [(q, p) for q, p in self.executed if fragment in q]


async def settle(rounds: int = 10) -> None:
    """Let spawned tasks run to their next suspension point."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def conn() -> FakeConnection:
    return FakeConnection()
