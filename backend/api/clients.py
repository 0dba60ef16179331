from typing import Any

import psycopg
from litestar import Controller, Response, delete, get, post, put
from litestar.di import Provide

from actions import clients as actions
from actions.client_search import ClientOption, get_all_client_names
from api.tables import TableQuery, page_response, provide_table_query
from core.guards import require_capability
from core.responses import ActionState, PageResponse
from pages import clients as page


def status_code_for(state: ActionState, failure: int = 400) -> int:
    return 200 if state.success else failure


class ClientsController(Controller):
    path = "/api/clients"
    tags = ["clients"]
    dependencies = {"table_query": Provide(provide_table_query, sync_to_thread=False)}

    @get(guards=[require_capability("clients:read")])
    async def list_clients(self, conn: psycopg.AsyncConnection, table_query: TableQuery) -> PageResponse:
        """One page of clients for the table."""
        state = await actions.get_clients(
            conn,
            table_query.start,
            table_query.end,
            table_query.types,
            table_query.statuses,
            table_query.search,
            table_query.rows_per_page,
            table_query.page,
        )
        return page_response(page.COLUMNS, state)

    @get("/count", guards=[require_capability("clients:read")])
    async def count_clients(self, conn: psycopg.AsyncConnection, table_query: TableQuery) -> ActionState[int]:
        return await actions.get_total_clients(conn, table_query.types, table_query.statuses, table_query.search)

    @get("/names", guards=[require_capability("clients:read")])
    async def client_names(self, conn: psycopg.AsyncConnection) -> ActionState[list[ClientOption]]:
        """Every client's id, display name and type, for client pickers."""
        return await get_all_client_names(conn)

    @post(guards=[require_capability("clients:write")])
    async def add_client(
        self, conn: psycopg.AsyncConnection, data: dict[str, Any]
    ) -> Response[ActionState]:
        state = await actions.add_client(conn, data)
        return Response(state, status_code=201 if state.success else 400)

    @put("/{client_id:str}", guards=[require_capability("clients:write")])
    async def update_client(
        self, conn: psycopg.AsyncConnection, client_id: str, data: dict[str, Any]
    ) -> Response[ActionState]:
        state = await actions.update_client(conn, client_id, data)
        return Response(state, status_code=status_code_for(state))

    @get("/{client_id:str}/dependencies", guards=[require_capability("clients:read")])
    async def check_dependencies(
        self, conn: psycopg.AsyncConnection, client_id: str
    ) -> ActionState[bool]:
        """``data`` is True when the client can be deleted."""
        return await actions.check_client_dependencies(conn, client_id)

    @delete("/{client_id:str}", status_code=200, guards=[require_capability("clients:write")])
    async def delete_client(
        self, conn: psycopg.AsyncConnection, client_id: str
    ) -> Response[ActionState]:
        state = await actions.delete_client(conn, client_id)
        return Response(state, status_code=status_code_for(state, 409))
