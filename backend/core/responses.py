from dataclasses import dataclass
from typing import Any, Generic, TypeVar


T = TypeVar("T")


@dataclass
class ActionState(Generic[T]):
    """Uniform result envelope returned by every server action.

    ``success`` reports whether the operation itself ran; ``data`` carries the
    payload when there is one.
    """

    message: str
    success: bool
    data: T | None = None


def ok(message: str, data: Any = None) -> ActionState:
    return ActionState(message=message, success=True, data=data)


def fail(message: str, data: Any = None) -> ActionState:
    return ActionState(message=message, success=False, data=data)


@dataclass
class ColumnMeta:
    """Metadata for a column in a table response."""

    key: str
    label: str
    type: str  # "string", "number", "currency", "date", "status", "actions"
    sortable: bool = False


@dataclass
class PageResponse:
    """One page of table rows together with the column metadata."""

    columns: list[ColumnMeta]
    data: list[dict[str, Any]]
    message: str = ""
    success: bool = True
