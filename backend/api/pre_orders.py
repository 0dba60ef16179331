from typing import Any

import psycopg
from litestar import Controller, Response, delete, get, post, put
from litestar.di import Provide

from actions import pre_orders as actions
from api.clients import status_code_for
from api.tables import TableQuery, page_response, provide_table_query
from core.guards import require_capability
from core.responses import ActionState, PageResponse
from pages import pre_orders as page


class PreOrdersController(Controller):
    path = "/api/pre-orders"
    tags = ["pre-orders"]
    dependencies = {"table_query": Provide(provide_table_query, sync_to_thread=False)}

    @get(guards=[require_capability("pre_orders:read")])
    async def list_pre_orders(self, conn: psycopg.AsyncConnection, table_query: TableQuery) -> PageResponse:
        state = await actions.get_pre_orders(
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

    @get("/count", guards=[require_capability("pre_orders:read")])
    async def count_pre_orders(self, conn: psycopg.AsyncConnection, table_query: TableQuery) -> ActionState[int]:
        return await actions.get_total_pre_orders(conn, table_query.types, table_query.statuses, table_query.search)

    @post(guards=[require_capability("pre_orders:write")])
    async def add_pre_order(
        self, conn: psycopg.AsyncConnection, data: dict[str, Any]
    ) -> Response[ActionState]:
        state = await actions.add_pre_order(conn, data)
        return Response(state, status_code=201 if state.success else 400)

    @put("/{pre_order_id:str}", guards=[require_capability("pre_orders:write")])
    async def update_pre_order(
        self, conn: psycopg.AsyncConnection, pre_order_id: str, data: dict[str, Any]
    ) -> Response[ActionState]:
        """Update description, amount and status; invalid transitions are refused."""
        state = await actions.update_pre_order(conn, pre_order_id, data)
        return Response(state, status_code=status_code_for(state))

    @get("/{pre_order_id:str}/dependencies", guards=[require_capability("pre_orders:read")])
    async def check_dependencies(
        self, conn: psycopg.AsyncConnection, pre_order_id: str
    ) -> ActionState[bool]:
        return await actions.check_pre_order_dependencies(conn, pre_order_id)

    @delete("/{pre_order_id:str}", status_code=200, guards=[require_capability("pre_orders:write")])
    async def delete_pre_order(
        self, conn: psycopg.AsyncConnection, pre_order_id: str
    ) -> Response[ActionState]:
        state = await actions.delete_pre_order(conn, pre_order_id)
        return Response(state, status_code=status_code_for(state, 409))
