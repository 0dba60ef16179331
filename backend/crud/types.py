"""Shared data types for tables, forms and jobs."""

from dataclasses import dataclass, field
from typing import Any, Generic, Literal, TypeVar


T = TypeVar("T")
S = TypeVar("S", bound=str)

ClientType = Literal["company", "personal"]
JobStatus = Literal["pending", "done", "error"]
ErrorType = Literal["validation", "server", "dependency"]
CrudOperation = Literal["view", "edit", "delete", "add"]


@dataclass
class Row(Generic[T, S]):
    """One fetched record: payload, status and coarse client type."""

    id: str
    type: ClientType
    data: T
    status: S


@dataclass(frozen=True)
class JobSpec:
    name: str
    url: str


@dataclass(frozen=True)
class Job:
    id: str
    name: str
    url: str
    status: JobStatus = "pending"


@dataclass(frozen=True)
class SelectOption:
    id: str
    name: str
    label: str


@dataclass(frozen=True)
class StatusOption:
    uid: str
    name: str


@dataclass
class ErrorState:
    message: str
    type: ErrorType
    field: str | None = None


@dataclass(frozen=True)
class EntityJobConfig:
    view: tuple[JobSpec, ...] = ()
    edit: tuple[JobSpec, ...] = ()
    delete: tuple[JobSpec, ...] = ()
    add: tuple[JobSpec, ...] = ()


@dataclass(frozen=True)
class DisplayField:
    """Read-only line shown in the delete confirmation."""

    key: str
    label: str
    formatter: Any = None


ROW_TYPE_OPTIONS: list[StatusOption] = [
    StatusOption(uid="personal", name="حقیقی"),
    StatusOption(uid="company", name="حقوقی"),
]

JOB_STATUS_COLOR_MAP: dict[str, str] = {
    "pending": "warning",
    "done": "success",
    "error": "danger",
}


@dataclass
class FormTab:
    key: str
    title: str
    fields: list = field(default_factory=list)
