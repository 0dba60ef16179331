"""Add, edit, delete and view dialogs as renderer-independent state objects.

Each instance owns its own state and moves through
``CLOSED -> VALIDATING -> SUBMITTING -> RESULT_SHOWN -> CLOSED``. The entity
operation is injected as an async callable returning an ``ActionState``;
validation errors never reach it and its failures never escape as exceptions.
"""

import asyncio
import enum
import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any

from core.persian import Validator, normalize_form_data
from core.responses import ActionState, fail
from crud.dependencies import Blocked, CheckFailed, CheckOutcome, Deletable
from crud.fields import EditField, ViewField, Widget, render_field, render_view_value, validate_field
from crud.jobs import JobTracker
from crud.types import DisplayField, FormTab, Job, Row


logger = logging.getLogger(__name__)

SERVER_ERROR_MESSAGE = "خطای سرور. لطفاً دوباره تلاش کنید."
DEPENDENCY_CHECK_ERROR = "خطا در بررسی وابستگی‌ها"

FormOperation = Callable[[dict[str, Any]], Awaitable[ActionState]]
DeleteOperation = Callable[[str], Awaitable[ActionState]]
DependencyCheck = Callable[[str], Awaitable[CheckOutcome]]
Callback = Callable[[], None]


class ModalState(enum.Enum):
    CLOSED = "closed"
    VALIDATING = "validating"
    SUBMITTING = "submitting"
    RESULT_SHOWN = "result_shown"


class _Modal:
    def __init__(
        self,
        title: str,
        jobs: JobTracker | None = None,
        on_success: Callback | None = None,
        on_close: Callback | None = None,
    ) -> None:
        self.title = title
        self.tracker = jobs
        self.on_success = on_success
        self.on_close = on_close
        self.state = ModalState.CLOSED
        self.result: ActionState | None = None

    @property
    def is_open(self) -> bool:
        return self.state is not ModalState.CLOSED

    @property
    def pending(self) -> bool:
        return self.state is ModalState.SUBMITTING

    @property
    def jobs(self) -> tuple[Job, ...]:
        return self.tracker.jobs if self.tracker else ()

    def close(self) -> None:
        if self.state is ModalState.CLOSED:
            return
        self.state = ModalState.CLOSED
        if self.tracker:
            self.tracker.close()
        if self.on_close:
            self.on_close()

    def _start_jobs(self, entity_id: Any) -> None:
        if self.tracker and self.tracker.specs:
            self.tracker.start(entity_id)

    async def _call(self, operation: Callable[[Any], Awaitable[ActionState]], arg: Any) -> ActionState:
        self.state = ModalState.SUBMITTING
        try:
            result = await operation(arg)
        except Exception:
            logger.exception("%s: operation failed", self.title)
            result = fail(SERVER_ERROR_MESSAGE)
        self.result = result
        self.state = ModalState.RESULT_SHOWN
        return result


class _FormModal(_Modal):
    def __init__(
        self,
        fields: Sequence[EditField],
        validation_rules: Mapping[str, Validator],
        operation: FormOperation,
        title: str,
        jobs: JobTracker | None = None,
        on_success: Callback | None = None,
        on_close: Callback | None = None,
    ) -> None:
        super().__init__(title, jobs, on_success, on_close)
        self.fields = list(fields)
        self.validation_rules = dict(validation_rules)
        self.operation = operation
        self.form: dict[str, Any] = {}
        self.errors: dict[str, str] = {}
        self.touched: set[str] = set()

    def _all_fields(self) -> list[EditField]:
        return self.fields

    def _initial_form(self) -> dict[str, Any]:
        return {}

    def _field_named(self, name: str) -> EditField | None:
        return next((f for f in self._all_fields() if f.name == name), None)

    def open(self) -> None:
        self.state = ModalState.VALIDATING
        self.result = None
        self.form = self._initial_form()
        self.errors = {}
        self.touched = set()

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def set_value(self, name: str, value: Any) -> None:
        """Record an edit and re-validate every touched field."""
        self.form[name] = value
        self.touched.add(name)
        if self.state is ModalState.RESULT_SHOWN:
            self.state = ModalState.VALIDATING
        self._revalidate()

    def _revalidate(self) -> None:
        for name in self.touched:
            spec = self._field_named(name)
            if spec is None:
                continue
            error = validate_field(spec, self.form.get(name), self.validation_rules)
            if error:
                self.errors[name] = error
            else:
                self.errors.pop(name, None)

    def widgets(self, fields: Sequence[EditField] | None = None) -> list[Widget]:
        return [
            render_field(spec, self.form.get(spec.name), self.errors.get(spec.name), self.form)
            for spec in (fields if fields is not None else self.fields)
        ]

    async def _submit(
        self, form: Mapping[str, Any] | None, fields: Sequence[EditField]
    ) -> ActionState | None:
        if self.state in (ModalState.CLOSED, ModalState.SUBMITTING):
            return None

        payload = normalize_form_data(self.form if form is None else form)
        errors = {}
        for spec in fields:
            error = validate_field(spec, payload.get(spec.name), self.validation_rules)
            if error:
                errors[spec.name] = error

        self.touched.update(spec.name for spec in fields)
        self.errors = errors
        if errors:
            self.state = ModalState.VALIDATING
            return None

        result = await self._call(self.operation, payload)
        if result.success and result.data:
            self._on_submitted(result)
            if self.on_success:
                self.on_success()
        return result

    def _on_submitted(self, result: ActionState) -> None:
        raise NotImplementedError


class AddModal(_FormModal):
    """Creation form. On success jobs are started for the new row's id."""

    def __init__(
        self,
        fields: Sequence[EditField],
        validation_rules: Mapping[str, Validator],
        on_add: FormOperation,
        *,
        title: str,
        jobs: JobTracker | None = None,
        tabs: Sequence[FormTab] | None = None,
        on_success: Callback | None = None,
        on_close: Callback | None = None,
    ) -> None:
        super().__init__(fields, validation_rules, on_add, title, jobs, on_success, on_close)
        self.tabs = list(tabs or [])

    def _all_fields(self) -> list[EditField]:
        return self.fields + [f for tab in self.tabs for f in tab.fields]

    def tab(self, key: str) -> FormTab:
        for tab in self.tabs:
            if tab.key == key:
                return tab
        raise KeyError(key)

    async def submit(
        self, form: Mapping[str, Any] | None = None, tab: str | None = None
    ) -> ActionState | None:
        """Validate and, when clean, call the add operation once.

        With ``tab`` only that tab's fields are validated; a form made only of
        tabs defaults to the first one.
        """
        if tab is None and not self.fields and self.tabs:
            tab = self.tabs[0].key
        fields = self.tab(tab).fields if tab else self.fields
        return await self._submit(form, fields)

    def _on_submitted(self, result: ActionState) -> None:
        self._start_jobs(result.data)


class EditModal(_FormModal):
    def __init__(
        self,
        entity: Row,
        fields: Sequence[EditField],
        validation_rules: Mapping[str, Validator],
        on_update: FormOperation,
        *,
        title: str,
        jobs: JobTracker | None = None,
        on_success: Callback | None = None,
        on_close: Callback | None = None,
    ) -> None:
        super().__init__(fields, validation_rules, on_update, title, jobs, on_success, on_close)
        self.entity = entity

    def _initial_form(self) -> dict[str, Any]:
        data = self.entity.data
        form = {}
        for spec in self.fields:
            value = data.get(spec.key) if spec.key != "status" else self.entity.status
            if value is not None:
                form[spec.name] = value if isinstance(value, str) else str(value)
        return form

    async def submit(self, form: Mapping[str, Any] | None = None) -> ActionState | None:
        return await self._submit(form, self.fields)

    def _on_submitted(self, result: ActionState) -> None:
        self._start_jobs(self.entity.id)


class DeleteModal(_Modal):
    """Delete confirmation.

    Opening runs the dependency check; confirming is refused while the check
    runs, when it finds a dependency and when the check itself fails.
    """

    def __init__(
        self,
        entity: Row,
        on_delete: DeleteOperation,
        *,
        title: str,
        entity_display_name: str,
        dependency_check: DependencyCheck | None = None,
        jobs: JobTracker | None = None,
        display_fields: Sequence[DisplayField] = (),
        status_map: Mapping[str, str] | None = None,
        status_color_map: Mapping[str, str] | None = None,
        close_delay: float = 1.5,
        on_success: Callback | None = None,
        on_close: Callback | None = None,
    ) -> None:
        super().__init__(title, jobs, on_success, on_close)
        self.entity = entity
        self.on_delete = on_delete
        self.entity_display_name = entity_display_name
        self.dependency_check = dependency_check
        self.display_fields = list(display_fields)
        self.status_map = status_map
        self.status_color_map = status_color_map or {}
        self.close_delay = close_delay
        self.checking = False
        self.dependency_error: str | None = None
        self._close_handle: asyncio.TimerHandle | None = None

    @property
    def warning(self) -> str:
        return f"آیا از حذف این {self.entity_display_name} اطمینان دارید؟ این عمل قابل بازگشت نیست."

    def _blocked_message(self, reason: str) -> str:
        return reason or (
            f"این {self.entity_display_name} دارای رکوردهای وابسته است و قابل حذف نیست. "
            "ابتدا رکوردهای مرتبط را حذف کنید."
        )

    async def open(self) -> None:
        self.state = ModalState.VALIDATING
        self.result = None
        self.dependency_error = None
        if not self.dependency_check:
            return

        self.checking = True
        try:
            outcome = await self.dependency_check(self.entity.id)
        except Exception:
            logger.exception("Dependency check for %s failed", self.entity.id)
            outcome = CheckFailed(DEPENDENCY_CHECK_ERROR)
        finally:
            self.checking = False

        match outcome:
            case Deletable():
                self.dependency_error = None
            case Blocked(reason=reason):
                self.dependency_error = self._blocked_message(reason)
            case CheckFailed(error=error):
                self.dependency_error = error or DEPENDENCY_CHECK_ERROR

    @property
    def can_confirm(self) -> bool:
        retry = self.state is ModalState.RESULT_SHOWN and self.result is not None and not self.result.success
        return (
            (self.state is ModalState.VALIDATING or retry)
            and not self.checking
            and self.dependency_error is None
        )

    async def confirm(self) -> ActionState | None:
        if not self.can_confirm:
            return None

        result = await self._call(self.on_delete, self.entity.id)
        if result.success:
            self._start_jobs(self.entity.id)
            if self.on_success:
                self.on_success()
            loop = asyncio.get_running_loop()
            self._close_handle = loop.call_later(self.close_delay, self.close)
        return result

    def close(self) -> None:
        if self._close_handle:
            self._close_handle.cancel()
            self._close_handle = None
        super().close()

    def details(self) -> list[tuple[str, str]]:
        lines = []
        for spec in self.display_fields:
            value = self.entity.data.get(spec.key)
            lines.append((spec.label, spec.formatter(value) if spec.formatter else (value or "-")))
        if self.status_map:
            lines.append(("وضعیت", self.status_map.get(self.entity.status, self.entity.status)))
        return lines


class ViewModal(_Modal):
    """Read-only detail view. Opening starts the entity's view jobs."""

    def __init__(
        self,
        entity: Row,
        fields: Sequence[ViewField],
        *,
        title: str,
        jobs: JobTracker | None = None,
        status_map: Mapping[str, str] | None = None,
        status_color_map: Mapping[str, str] | None = None,
        on_close: Callback | None = None,
    ) -> None:
        super().__init__(title, jobs, None, on_close)
        self.entity = entity
        self.fields = list(fields)
        self.status_map = status_map
        self.status_color_map = status_color_map or {}

    def open(self) -> None:
        self.state = ModalState.VALIDATING
        self._start_jobs(self.entity.id)

    def details(self) -> list[tuple[str, str]]:
        lines = [
            (spec.label, render_view_value(spec, self.entity.data.get(spec.key), self.status_map))
            for spec in self.fields
        ]
        if self.status_map:
            lines.append(("وضعیت", self.status_map.get(self.entity.status, self.entity.status)))
        return lines
