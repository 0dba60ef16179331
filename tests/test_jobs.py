import asyncio
import json
import logging
from types import SimpleNamespace

import psycopg

from actions.jobs import list_jobs, submit_jobs
from conftest import FakeConnection, settle
from core.realtime import JobChannel
from crud.helpers import create_job_tracker
from crud.jobs import JobTracker, apply_job_update
from crud.types import Job, JobSpec


SPECS = [
    JobSpec("بررسی اطلاعات مشتری", "https://example.com/client/view"),
    JobSpec("بررسی سابقه مشتری", "https://example.com/client/history"),
]


def inserted(params):
    return [{"id": 100 + len(params["name"]), "name": params["name"], "url": params["url"], "status": "pending"}]


def test_submit_jobs_inserts_one_pending_row_per_spec(conn):
    conn.on("INSERT INTO n8n_job", inserted)

    state = asyncio.run(submit_jobs(conn, "client", "c1", SPECS))

    assert state.success
    assert [job.name for job in state.data] == [spec.name for spec in SPECS]
    assert all(job.status == "pending" for job in state.data)
    assert all(isinstance(job.id, str) for job in state.data)
    assert [p["entity_id"] for _, p in conn.queries("INSERT INTO n8n_job")] == ["c1", "c1"]
    assert conn.transactions == 2


def test_failed_inserts_become_placeholders(conn):
    conn.on(
        "INSERT INTO n8n_job",
        psycopg.OperationalError("down"),
        inserted,
    )
    specs = SPECS + [JobSpec("سوم", "https://example.com/third")]

    state = asyncio.run(submit_jobs(conn, "client", "c1", specs))

    assert state.success
    assert len(state.data) == 3
    assert state.data[0] == Job("unsubmitted-1", SPECS[0].name, SPECS[0].url, "error")
    assert state.data[1].status == "pending"
    assert state.data[2].status == "pending"


def test_submit_without_specs_fails(conn):
    state = asyncio.run(submit_jobs(conn, "client", "c1", []))
    assert not state.success
    assert conn.executed == []


def test_list_jobs(conn):
    conn.on("FROM n8n_job", [{"id": 7, "name": "a", "url": "u", "status": "done"}])
    state = asyncio.run(list_jobs(conn, "client", 5))
    assert state.data == [Job("7", "a", "u", "done")]
    assert conn.executed[0][1] == {"entity": "client", "entity_id": "5"}


def test_list_jobs_error(conn):
    conn.on("FROM n8n_job", psycopg.OperationalError("down"))
    state = asyncio.run(list_jobs(conn, "client", "5"))
    assert not state.success
    assert state.data == []


def test_apply_job_update():
    jobs = (Job("1", "a", "u1"), Job("2", "b", "u2"))

    updated = apply_job_update(jobs, {"id": 2, "status": "done", "entity": "client"})
    assert updated == (Job("1", "a", "u1"), Job("2", "b", "u2", "done"))
    assert jobs[1].status == "pending"

    assert apply_job_update(jobs, {"id": 9, "status": "done"}) is jobs


def test_channel_routes_by_entity_and_id():
    channel = JobChannel()

    async def run():
        sub = channel.subscribe("client", 1)
        other = channel.subscribe("client", 2)
        assert channel.publish({"entity": "client", "entity_id": "1", "id": 5}) == 1
        assert channel.publish_payload(json.dumps({"entity": "order", "entity_id": "1"})) == 0
        assert channel.publish_payload("not json") == 0
        assert channel.publish_payload("[1, 2]") == 0
        row = await sub.get()
        assert other.queue.empty()
        return row

    assert asyncio.run(run())["id"] == 5


def test_subscription_close_is_idempotent():
    channel = JobChannel()
    sub = channel.subscribe("client", "1")
    channel.subscribe("client", "1")
    assert channel.subscriber_count("client", "1") == 2

    sub.close()
    sub.close()

    assert channel.subscriber_count("client", "1") == 1
    assert channel.publish({"entity": "client", "entity_id": "1"}) == 1


class DroppingConnection:
    """Delivers the given notifications, then loses the connection."""

    def __init__(self, *payloads):
        self.payloads = payloads

    async def notifies(self):
        for payload in self.payloads:
            yield SimpleNamespace(payload=payload)
        raise psycopg.OperationalError("server closed the connection unexpectedly")


def test_lost_listener_is_logged_and_reported(caplog):
    channel = JobChannel()
    assert not channel.listening

    async def run():
        sub = channel.subscribe("client", "1")
        channel.listen_on(DroppingConnection(json.dumps({"entity": "client", "entity_id": "1", "id": 7})))
        assert channel.listening
        row = await sub.get()
        await settle()
        return row

    with caplog.at_level(logging.ERROR, logger="core.realtime"):
        row = asyncio.run(run())

    assert row["id"] == 7
    assert not channel.listening
    assert "Job listener on n8n_job_updates stopped" in caplog.text
    assert "server closed the connection" in caplog.text
    asyncio.run(channel.stop())


def test_tracker_follows_pushed_updates(conn):
    conn.on("INSERT INTO n8n_job", inserted)
    channel = JobChannel()
    tracker = JobTracker("client", SPECS, conn, channel)

    async def run():
        tracker.start("c1")
        assert channel.subscriber_count("client", "c1") == 1
        await settle()
        first = tracker.jobs[0]
        channel.publish({"entity": "client", "entity_id": "c1", "id": int(first.id), "status": "done"})
        await settle()
        snapshot = tracker.jobs
        tracker.close()
        await settle()
        return first, snapshot

    first, snapshot = asyncio.run(run())

    assert snapshot[0] == Job(first.id, first.name, first.url, "done")
    assert snapshot[1].status == "pending"
    assert channel.subscriber_count("client", "c1") == 0


def test_tracker_logs_unexpected_submit_error(conn, caplog):
    conn.on("INSERT INTO n8n_job", RuntimeError("boom"))
    tracker = JobTracker("client", SPECS, conn, JobChannel())

    async def run():
        tracker.start("c1")
        await settle()
        done = not tracker.pending
        tracker.close()
        return done

    with caplog.at_level(logging.ERROR, logger="crud.jobs"):
        assert asyncio.run(run())

    assert tracker.jobs == ()
    assert "Job submission for client c1 failed" in caplog.text
    assert "boom" in caplog.text


def test_tracker_ignores_missing_entity_id(conn):
    tracker = JobTracker("client", SPECS, conn, JobChannel())

    async def run():
        tracker.start(None)
        tracker.start("")
        await settle()

    asyncio.run(run())
    assert tracker.jobs == ()
    assert conn.executed == []


def test_tracker_close_discards_late_submission(conn):
    conn.on("INSERT INTO n8n_job", inserted)
    channel = JobChannel()
    tracker = JobTracker("client", SPECS, conn, channel)

    async def run():
        tracker.start("c1")
        tracker.close()
        assert channel.subscriber_count("client", "c1") == 0
        await settle()

    asyncio.run(run())
    assert tracker.jobs == ()


def test_create_job_tracker():
    conn = FakeConnection()
    channel = JobChannel()
    assert create_job_tracker("client", "client", "view", conn, None) is None
    assert create_job_tracker("client", "client", "view", None, channel) is None
    assert create_job_tracker("client", "client", "add", conn, channel) is None

    tracker = create_job_tracker("pre_order", "preOrder", "edit", conn, channel)
    assert tracker.entity == "pre_order"
    assert [s.name for s in tracker.specs] == ["ویرایش پیش سفارش", "محاسبه مجدد مبلغ"]
