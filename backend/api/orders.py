import psycopg
from litestar import Controller, get
from litestar.di import Provide

from actions import orders as actions
from api.tables import TableQuery, page_response, provide_table_query
from core.guards import require_capability
from core.responses import ActionState, PageResponse
from pages import orders as page


class OrdersController(Controller):
    path = "/api/orders"
    tags = ["orders"]
    dependencies = {"table_query": Provide(provide_table_query, sync_to_thread=False)}

    @get(guards=[require_capability("orders:read")])
    async def list_orders(self, conn: psycopg.AsyncConnection, table_query: TableQuery) -> PageResponse:
        state = await actions.get_orders(
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

    @get("/count", guards=[require_capability("orders:read")])
    async def count_orders(self, conn: psycopg.AsyncConnection, table_query: TableQuery) -> ActionState[int]:
        return await actions.get_total_orders(conn, table_query.types, table_query.statuses, table_query.search)
