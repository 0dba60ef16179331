"""Query parameters and responses shared by the paginated table endpoints."""

import dataclasses
from dataclasses import dataclass

from litestar.params import Parameter

from core.responses import ActionState, ColumnMeta, PageResponse
from crud.table import ROWS_PER_PAGE_OPTIONS, format_filter_param
from crud.types import Row


@dataclass
class TableQuery:
    page: int
    rows_per_page: int
    statuses: list[str]
    types: list[str]
    search: str

    @property
    def start(self) -> int:
        return (self.page - 1) * self.rows_per_page

    @property
    def end(self) -> int:
        return self.page * self.rows_per_page - 1


def provide_table_query(
    page: int = Parameter(default=1, ge=1),
    rows_per_page: int = Parameter(default=ROWS_PER_PAGE_OPTIONS[0], ge=1, le=100),
    status: list[str] | None = Parameter(default=None, description="Status filter, 'all' for none"),
    client_type: list[str] | None = Parameter(query="type", default=None, description="Client type filter"),
    search: str = Parameter(default=""),
) -> TableQuery:
    return TableQuery(
        page=page,
        rows_per_page=rows_per_page,
        statuses=format_filter_param(set(status)) if status else ["all"],
        types=format_filter_param(set(client_type)) if client_type else ["all"],
        search=search,
    )


def page_response(columns: list[ColumnMeta], state: ActionState[list[Row | None]]) -> PageResponse:
    """Table page; rows whose related record is gone are left out."""
    rows = state.data or []
    return PageResponse(
        columns=columns,
        data=[dataclasses.asdict(row) for row in rows if row is not None],
        message=state.message,
        success=state.success,
    )
