import asyncio

from conftest import FakeConnection, settle
from core.persian import PERSIAN_VALIDATION_RULES
from core.realtime import JobChannel
from core.responses import fail, ok
from crud.dependencies import Blocked, CheckFailed, Deletable
from crud.fields import InputField, ViewField, format_currency
from crud.jobs import JobTracker
from crud.modals import AddModal, DeleteModal, EditModal, ModalState, ViewModal
from crud.types import DisplayField, FormTab, JobSpec, Row


SPECS = [JobSpec("job", "https://example.com/job")]

FIELDS = [
    InputField("name", "نام", required=True),
    InputField("phone", "شماره تماس", required=True),
]
RULES = {
    "name": PERSIAN_VALIDATION_RULES["persian_name"],
    "phone": PERSIAN_VALIDATION_RULES["persian_phone"],
}


def entity(status="done", **data):
    data.setdefault("name", "علی رضایی")
    return Row(id="c1", type="personal", data=data, status=status)


class Recorder:
    def __init__(self, result=None, error=None):
        self.calls = []
        self.result = result
        self.error = error

    async def __call__(self, arg):
        self.calls.append(arg)
        if self.error:
            raise self.error
        return self.result


def tracker(conn=None):
    conn = conn or FakeConnection()
    conn.on(
        "INSERT INTO n8n_job",
        lambda p: [{"id": 1, "name": p["name"], "url": p["url"], "status": "pending"}],
    )
    return JobTracker("client", SPECS, conn, JobChannel())


def test_validation_errors_never_reach_the_operation():
    operation = Recorder(ok("done", data="c9"))
    modal = AddModal(FIELDS, RULES, operation, title="add")

    async def run():
        modal.open()
        return await modal.submit({"name": "Ali", "phone": ""})

    assert asyncio.run(run()) is None
    assert operation.calls == []
    assert modal.errors == {
        "name": "لطفاً نام را به فارسی وارد کنید",
        "phone": "شماره تماس الزامی است",
    }
    assert modal.state is ModalState.VALIDATING


def test_add_success_normalizes_digits_and_starts_jobs():
    operation = Recorder(ok("ثبت شد", data="c9"))
    successes = []
    jobs = tracker()
    modal = AddModal(FIELDS, RULES, operation, title="add", jobs=jobs, on_success=lambda: successes.append(1))

    async def run():
        modal.open()
        modal.set_value("name", "علی رضایی")
        modal.set_value("phone", "۰۹۱۲۱۲۳۴۵۶۷")
        result = await modal.submit()
        await settle()
        return result

    result = asyncio.run(run())

    assert result.success
    assert operation.calls == [{"name": "علی رضایی", "phone": "09121234567"}]
    assert successes == [1]
    assert modal.state is ModalState.RESULT_SHOWN
    assert jobs.entity_id == "c9"
    assert [j.name for j in modal.jobs] == ["job"]


def test_operation_exception_becomes_failure():
    operation = Recorder(error=RuntimeError("boom"))
    modal = AddModal(FIELDS, RULES, operation, title="add", jobs=tracker())

    async def run():
        modal.open()
        return await modal.submit({"name": "علی رضایی", "phone": "09121234567"})

    result = asyncio.run(run())

    assert not result.success
    assert result.message == "خطای سرور. لطفاً دوباره تلاش کنید."
    assert modal.tracker.entity_id is None


def test_failed_operation_does_not_start_jobs():
    operation = Recorder(fail("تکراری"))
    modal = AddModal(FIELDS, RULES, operation, title="add", jobs=tracker())

    async def run():
        modal.open()
        return await modal.submit({"name": "علی رضایی", "phone": "09121234567"})

    assert asyncio.run(run()).message == "تکراری"
    assert modal.jobs == ()


def test_closed_modal_ignores_submit():
    operation = Recorder(ok("ok", data="1"))
    modal = AddModal(FIELDS, RULES, operation, title="add")
    assert asyncio.run(modal.submit({"name": "علی رضایی", "phone": "09121234567"})) is None
    assert operation.calls == []


def test_tabs_validate_only_the_selected_tab():
    tabs = [
        FormTab("personal", "حقیقی", [InputField("name", "نام", required=True)]),
        FormTab("company", "حقوقی", [InputField("name", "نام شرکت", required=True, field_name="company_name")]),
    ]
    operation = Recorder(ok("ok", data="1"))
    modal = AddModal([], RULES, operation, title="add", tabs=tabs)

    async def run():
        modal.open()
        first = await modal.submit({"company_name": "شرکت"}, tab="company")
        modal.open()
        second = await modal.submit({"company_name": "شرکت"})
        return first, second

    first, second = asyncio.run(run())

    assert first.success
    assert second is None
    assert modal.errors == {"name": "نام الزامی است"}
    assert len(operation.calls) == 1


def test_set_value_revalidates_touched_fields():
    modal = AddModal(FIELDS, RULES, Recorder(), title="add")
    modal.open()
    modal.set_value("phone", "123")
    assert set(modal.errors) == {"phone"}
    modal.set_value("phone", "09121234567")
    assert not modal.has_errors
    widgets = modal.widgets()
    assert widgets[1].display_value == "۰۹۱۲۱۲۳۴۵۶۷"


def test_edit_prefills_and_starts_jobs_for_the_entity():
    operation = Recorder(ok("ok", data="c1"))
    fields = FIELDS + [InputField("status", "وضعیت")]
    jobs = tracker()
    modal = EditModal(
        entity(phone="09121234567", count=3), fields, RULES, operation, title="edit", jobs=jobs
    )

    async def run():
        modal.open()
        assert modal.form == {"name": "علی رضایی", "phone": "09121234567", "status": "done"}
        result = await modal.submit()
        await settle()
        return result

    assert asyncio.run(run()).success
    assert operation.calls[0]["status"] == "done"
    assert jobs.entity_id == "c1"


def test_delete_blocked_by_dependency():
    operation = Recorder(ok("ok", data=True))

    async def check(entity_id):
        return Blocked("این مشتری دارای سفارش است و قابل حذف نیست.")

    modal = DeleteModal(entity(), operation, title="del", entity_display_name="مشتری", dependency_check=check)

    async def run():
        await modal.open()
        return await modal.confirm()

    assert asyncio.run(run()) is None
    assert modal.dependency_error == "این مشتری دارای سفارش است و قابل حذف نیست."
    assert not modal.can_confirm
    assert operation.calls == []


def test_delete_refused_when_check_fails():
    operation = Recorder(ok("ok", data=True))

    async def failing(entity_id):
        return CheckFailed("")

    async def raising(entity_id):
        raise RuntimeError("boom")

    for check in (failing, raising):
        modal = DeleteModal(entity(), operation, title="del", entity_display_name="مشتری", dependency_check=check)

        async def run():
            await modal.open()
            return await modal.confirm()

        assert asyncio.run(run()) is None
        assert modal.dependency_error == "خطا در بررسی وابستگی‌ها"
    assert operation.calls == []


def test_delete_success_starts_jobs_and_closes_after_delay():
    operation = Recorder(ok("حذف شد", data=True))
    closed = []
    jobs = tracker()

    async def check(entity_id):
        return Deletable()

    modal = DeleteModal(
        entity(),
        operation,
        title="del",
        entity_display_name="مشتری",
        dependency_check=check,
        jobs=jobs,
        close_delay=0.01,
        on_close=lambda: closed.append(1),
    )

    async def run():
        await modal.open()
        assert modal.can_confirm
        result = await modal.confirm()
        assert modal.state is ModalState.RESULT_SHOWN
        await asyncio.sleep(0.05)
        return result

    result = asyncio.run(run())

    assert result.success
    assert operation.calls == ["c1"]
    assert jobs.entity_id == "c1"
    assert modal.state is ModalState.CLOSED
    assert closed == [1]


def test_delete_can_be_retried_after_failure():
    results = [fail("خطا در حذف"), ok("حذف شد", data=True)]
    calls = []

    async def on_delete(entity_id):
        calls.append(entity_id)
        return results[len(calls) - 1]

    modal = DeleteModal(entity(), on_delete, title="del", entity_display_name="مشتری", close_delay=10)

    async def run():
        await modal.open()
        first = await modal.confirm()
        assert modal.state is ModalState.RESULT_SHOWN
        assert modal.can_confirm
        second = await modal.confirm()
        third = await modal.confirm()
        modal.close()
        return first, second, third

    first, second, third = asyncio.run(run())

    assert not first.success
    assert second.success
    assert third is None
    assert calls == ["c1", "c1"]


def test_delete_details_and_warning():
    modal = DeleteModal(
        entity(total_amount=1000),
        Recorder(),
        title="del",
        entity_display_name="مشتری",
        display_fields=[DisplayField("name", "نام"), DisplayField("total_amount", "مبلغ", format_currency), DisplayField("x", "x")],
        status_map={"done": "اتمام یافته"},
    )
    assert modal.warning == "آیا از حذف این مشتری اطمینان دارید؟ این عمل قابل بازگشت نیست."
    assert modal.details() == [
        ("نام", "علی رضایی"),
        ("مبلغ", "۱٬۰۰۰ ریال"),
        ("x", "-"),
        ("وضعیت", "اتمام یافته"),
    ]


def test_view_modal_starts_jobs_on_open():
    jobs = tracker()
    modal = ViewModal(
        entity(created_at="2024-03-20"),
        [ViewField("name", "نام"), ViewField("created_at", "تاریخ", "date")],
        title="view",
        jobs=jobs,
        status_map={"done": "اتمام یافته"},
    )

    async def run():
        modal.open()
        await settle()
        modal.close()

    asyncio.run(run())

    assert jobs.entity_id == "c1"
    assert modal.details() == [
        ("نام", "علی رضایی"),
        ("تاریخ", "۱۴۰۳/۱/۱"),
        ("وضعیت", "اتمام یافته"),
    ]
    assert jobs.channel.subscriber_count("client", "c1") == 0
