"""Paginated, filtered and sorted view over server-fetched rows.

``TableLogic`` owns the table's filter state. Any change to page, page size,
search term, status filter or type filter starts two independent fetches: a
row count (for the page total) and the page of rows itself. Both come back as
``Ok``/``Err`` values folded into ``TableData`` by ``reduce_table``, which
accepts them in either order and ignores results from superseded fetches.
"""

import asyncio
import logging
import math
from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass, replace
from functools import cmp_to_key
from typing import Any, Generic, Literal, TypeVar

from core.responses import ActionState, ColumnMeta
from crud.types import Row, StatusOption


logger = logging.getLogger(__name__)

T = TypeVar("T")

ROWS_PER_PAGE_OPTIONS = (5, 10, 15)

Selection = Literal["all"] | frozenset[str]

GetRowsFn = Callable[
    [int, int, list[str], list[str], str, int, int],
    Awaitable[ActionState[list[Row | None]]],
]
GetTotalRowsFn = Callable[[list[str], list[str], str], Awaitable[ActionState[int]]]


# ---------------------------------------------------------------------------
# Persian-aware comparison
# ---------------------------------------------------------------------------


PERSIAN_ALPHABET_FIX_MAP: dict[str, float] = {
    "ؤ": 1608.5,
    "ئ": 1609.5,
    "پ": 1577,
    "ة": 1607.5,
    "ژ": 1586.5,
    "ک": 1603,
    "چ": 1580.5,
    "گ": 1603.5,
    "ی": 1610,
}


def _sort_key(ch: str) -> float:
    return PERSIAN_ALPHABET_FIX_MAP.get(ch, ord(ch))


def persian_alphabetic_compare(s1: str, s2: str) -> float:
    """Negative, zero or positive as ``s1`` sorts before, with or after ``s2``.

    Letters whose code points fall out of alphabet order are compared by
    their corrected position; on a shared prefix the shorter string is less.
    """
    for a, b in zip(s1, s2):
        diff = _sort_key(a) - _sort_key(b)
        if diff:
            return diff
    if len(s1) == len(s2):
        return 0
    return -1 if len(s1) < len(s2) else 1


def format_filter_param(param: Any) -> list[str]:
    if param == "all":
        return ["all"]
    if isinstance(param, (set, frozenset)):
        return sorted(str(p) for p in param)
    if isinstance(param, list):
        return param
    logger.warning("Unexpected filter param type. Defaulting to 'all': %r", param)
    return ["all"]


# ---------------------------------------------------------------------------
# Fetch results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    message: str


Result = Ok | Err


def to_result(state: ActionState) -> Result:
    if state.success and state.data is not None:
        return Ok(state.data)
    return Err(state.message)


@dataclass(frozen=True)
class CountLoaded:
    generation: int
    result: Result
    rows_per_page: int


@dataclass(frozen=True)
class RowsLoaded:
    generation: int
    result: Result


@dataclass(frozen=True)
class TableData:
    generation: int = 0
    rows: tuple[Row, ...] = ()
    pages: int = 1
    rows_pending: bool = False
    count_pending: bool = False
    message: str = ""


def reduce_table(state: TableData, event: CountLoaded | RowsLoaded) -> TableData:
    """Fold one fetch result into the table state."""
    if event.generation != state.generation:
        return state

    match event:
        case CountLoaded(result=Ok(value=count), rows_per_page=rows_per_page):
            if count:
                return replace(
                    state,
                    count_pending=False,
                    pages=math.ceil(count / rows_per_page),
                )
            return replace(state, count_pending=False)
        case CountLoaded(result=Err(message=message)):
            return replace(state, count_pending=False, message=message)
        case RowsLoaded(result=Ok(value=rows)):
            return replace(
                state,
                rows_pending=False,
                rows=tuple(r for r in rows if r is not None),
            )
        case RowsLoaded(result=Err(message=message)):
            return replace(state, rows_pending=False, rows=(), message=message)

    return state


# ---------------------------------------------------------------------------
# Table logic
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SortDescriptor:
    column: str = "name"
    direction: Literal["ascending", "descending"] = "ascending"


class TableLogic:
    def __init__(
        self,
        status_options: Sequence[StatusOption],
        columns: Sequence[ColumnMeta],
        initial_visible_columns: Iterable[str],
        get_rows: GetRowsFn,
        get_total_rows: GetTotalRowsFn,
        add_button: Any = None,
    ) -> None:
        self.status_options = list(status_options)
        self.columns = list(columns)
        self.get_rows = get_rows
        self.get_total_rows = get_total_rows
        self.add_button = add_button

        self.search_term = ""
        self.visible_columns: Selection = frozenset(initial_visible_columns)
        self.status_filter: Selection = "all"
        self.type_filter: Selection = "all"
        self.rows_per_page = ROWS_PER_PAGE_OPTIONS[0]
        self.sort = SortDescriptor()
        self.page = 1

        self.data = TableData()
        self.closed = False
        self._tasks: set[asyncio.Task] = set()

    # -- derived state ------------------------------------------------------

    @property
    def rows(self) -> tuple[Row, ...]:
        return self.data.rows

    @property
    def pages(self) -> int:
        return self.data.pages

    @property
    def pending(self) -> bool:
        return self.data.rows_pending

    @property
    def page_pending(self) -> bool:
        return self.data.count_pending

    @property
    def header_columns(self) -> list[ColumnMeta]:
        if self.visible_columns == "all":
            return list(self.columns)
        return [c for c in self.columns if c.key in self.visible_columns]

    @property
    def sorted_items(self) -> list[Row]:
        """The fetched page reordered by the sort descriptor."""
        column = self.sort.column

        def value_of(row: Row) -> Any:
            if column == "status":
                return row.status
            return row.data.get(column) if isinstance(row.data, dict) else getattr(row.data, column, None)

        def compare(a: Row, b: Row) -> float:
            first, second = value_of(a), value_of(b)
            if first is None or second is None:
                return 0
            cmp = persian_alphabetic_compare(str(first), str(second))
            return -cmp if self.sort.direction == "descending" else cmp

        return sorted(self.rows, key=cmp_to_key(compare))

    def summary(self) -> dict[str, Any]:
        return {
            "page": self.page,
            "pages": self.pages,
            "rows_per_page": self.rows_per_page,
            "row_count": len(self.rows),
            "show_pagination": self.pages > 1 and not self.page_pending,
        }

    # -- state changes ------------------------------------------------------

    def set_page(self, page: int) -> None:
        self.page = page
        self.refresh()

    def next_page(self) -> None:
        if self.page < self.pages:
            self.set_page(self.page + 1)

    def previous_page(self) -> None:
        if self.page > 1:
            self.set_page(self.page - 1)

    def set_rows_per_page(self, rows_per_page: int) -> None:
        self.rows_per_page = int(rows_per_page)
        self.page = 1
        self.refresh()

    def set_search(self, value: str | None) -> None:
        if value:
            self.search_term = value
            self.page = 1
        else:
            self.search_term = ""
        self.refresh()

    def clear_search(self) -> None:
        self.search_term = ""
        self.page = 1
        self.refresh()

    def set_status_filter(self, selection: Selection | Iterable[str]) -> None:
        self.status_filter = _as_selection(selection)
        self.refresh()

    def set_type_filter(self, selection: Selection | Iterable[str]) -> None:
        self.type_filter = _as_selection(selection)
        self.refresh()

    def set_visible_columns(self, selection: Selection | Iterable[str]) -> None:
        self.visible_columns = _as_selection(selection)

    def set_sort(self, column: str, direction: str = "ascending") -> None:
        self.sort = SortDescriptor(column, direction)  # type: ignore[arg-type]

    # -- fetching -----------------------------------------------------------

    def refresh(self) -> None:
        """Start the count and row fetches for the current filter state."""
        if self.closed:
            return

        generation = self.data.generation + 1
        self.data = TableData(
            generation=generation,
            pages=self.data.pages,
            rows_pending=True,
            count_pending=True,
        )

        types = format_filter_param(self.type_filter)
        statuses = format_filter_param(self.status_filter)
        self._spawn(self._fetch_count(generation, types, statuses, self.search_term))
        self._spawn(
            self._fetch_rows(
                generation,
                (self.page - 1) * self.rows_per_page,
                self.page * self.rows_per_page - 1,
                types,
                statuses,
                self.search_term,
                self.rows_per_page,
                self.page,
            )
        )

    async def wait(self) -> None:
        """Wait for the fetches currently in flight."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    def close(self) -> None:
        """Stop accepting results; fetches in flight finish and are discarded."""
        self.closed = True

    def _spawn(self, coro: Awaitable[None]) -> None:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _dispatch(self, event: CountLoaded | RowsLoaded) -> None:
        if self.closed:
            return
        self.data = reduce_table(self.data, event)

    async def _fetch_count(
        self, generation: int, types: list[str], statuses: list[str], search: str
    ) -> None:
        rows_per_page = self.rows_per_page
        try:
            result = to_result(await self.get_total_rows(types, statuses, search))
        except Exception as e:
            logger.exception("Row count fetch failed")
            result = Err(str(e))
        self._dispatch(CountLoaded(generation, result, rows_per_page))

    async def _fetch_rows(
        self,
        generation: int,
        start: int,
        end: int,
        types: list[str],
        statuses: list[str],
        search: str,
        limit: int,
        page: int,
    ) -> None:
        try:
            result = to_result(
                await self.get_rows(start, end, types, statuses, search, limit, page)
            )
        except Exception as e:
            logger.exception("Row fetch failed")
            result = Err(str(e))
        self._dispatch(RowsLoaded(generation, result))


def _as_selection(selection: Any) -> Selection:
    if selection == "all":
        return "all"
    return frozenset(str(s) for s in selection)
