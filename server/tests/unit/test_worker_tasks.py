# server/tests/unit/test_worker_tasks.py
import uuid
import datetime as dt

import pytest

from app.domain.errors import StoreUnavailable
from app.domain.models import ActuationIntent
from app.infrastructure.persistence.database.models import Alert, SensorReading
from app.infrastructure.persistence.repositories.schedule_repository import ScheduleRepository
from app.infrastructure.persistence.repositories.threshold_repository import ThresholdRepository
from app.workers.tasks import ingest_tasks, schedule_tasks

pytestmark = pytest.mark.unit


# ---------- tasks.ingest ----------

def test_ingest_task_creates_alert(Session, installation_factory, sensor_factory):
    with Session() as s:
        sensor = sensor_factory(s, installation_factory(s))
        ThresholdRepository(s).upsert(sensor.id, min_value=6.0, max_value=9.0)
        s.commit()

    out = ingest_tasks.process_reading.delay(str(sensor.id), 4.2, "2025-03-01T08:00:00+00:00").get()
    assert out["status"] == "created"

    with Session() as s:
        assert s.query(Alert).count() == 1


def test_ingest_task_reports_failed_evaluation(Session, installation_factory, sensor_factory, monkeypatch):
    with Session() as s:
        sensor = sensor_factory(s, installation_factory(s))
        s.commit()

    def _boom(self, sensor_id):
        raise StoreUnavailable("server closed the connection unexpectedly")

    monkeypatch.setattr(ThresholdRepository, "get_row", _boom)
    out = ingest_tasks.process_reading(str(sensor.id), 1.0)
    assert out["status"] == "failed"

    # la lecture est conservée
    with Session() as s:
        assert s.query(SensorReading).count() == 1


def test_ingest_task_rejects_unknown_sensor():
    out = ingest_tasks.process_reading(str(uuid.uuid4()), 1.0)
    assert out["status"] == "rejected"


def test_enqueue_reading_routes_to_ingest_task(monkeypatch):
    sent = []
    monkeypatch.setattr(ingest_tasks.celery, "send_task", lambda name, **kw: sent.append((name, kw)))
    ingest_tasks.enqueue_reading(sensor_id="s1", value=2.5)
    assert sent == [("tasks.ingest", {"args": ["s1", 2.5, None]})]


# ---------- tasks.schedule ----------

def _condition_rule(s, installation):
    return ScheduleRepository(s).create(installation.id, {
        "name": "OD bas", "kind": "condition", "condition_min": 4.0, "condition_max": 8.0,
        "action": "aerator_on", "duration_minutes": 20,
    })


def test_schedule_task_dispatches_due_intents(Session, installation_factory, sensor_factory, monkeypatch):
    with Session() as s:
        inst = installation_factory(s)
        sensor = sensor_factory(s, inst)
        rule = _condition_rule(s, inst)
        now = dt.datetime.now(dt.timezone.utc)
        s.add(SensorReading(sensor_id=sensor.id, value=6.0, taken_at=now - dt.timedelta(minutes=5)))
        s.add(SensorReading(sensor_id=sensor.id, value=3.5, taken_at=now))
        s.commit()

    dispatched = []
    monkeypatch.setattr(schedule_tasks, "dispatch_intent", dispatched.append)

    assert schedule_tasks.evaluate_schedules() == 1
    assert [i.rule_id for i in dispatched] == [rule.id]
    assert dispatched[0].reason.startswith("value 3.5")


def test_schedule_task_continues_after_failing_installation(Session, installation_factory, sensor_factory, monkeypatch):
    with Session() as s:
        broken = installation_factory(s, name="KO")
        healthy = installation_factory(s, name="OK")
        for inst in (broken, healthy):
            sensor = sensor_factory(s, inst)
            _condition_rule(s, inst)
            s.add(SensorReading(sensor_id=sensor.id, value=2.0, taken_at=dt.datetime.now(dt.timezone.utc)))
        s.commit()

    real_due_now = schedule_tasks.due_now

    def _flaky_due_now(session, installation_id, readings, **kw):
        if installation_id == broken.id:
            raise StoreUnavailable("connection refused")
        return real_due_now(session, installation_id, readings, **kw)

    dispatched = []
    monkeypatch.setattr(schedule_tasks, "due_now", _flaky_due_now)
    monkeypatch.setattr(schedule_tasks, "dispatch_intent", dispatched.append)

    assert schedule_tasks.evaluate_schedules() == 1
    assert [i.installation_id for i in dispatched] == [healthy.id]


def test_dispatch_intent_hands_off_to_actuate_queue(monkeypatch):
    sent = []
    monkeypatch.setattr(schedule_tasks.celery, "send_task", lambda name, **kw: sent.append((name, kw)))
    intent = ActuationIntent(uuid.uuid4(), uuid.uuid4(), "aerator_on", 15, "value 3.0 outside [4.0, 8.0]")
    schedule_tasks.dispatch_intent(intent)
    assert sent == [("tasks.actuate", {"kwargs": intent.as_dict()})]


def test_beat_schedules_periodic_evaluation():
    from app.core.config import settings
    from app.workers.celery_app import celery

    entry = celery.conf.beat_schedule["evaluate-schedules"]
    assert entry["task"] == "tasks.schedule"
    assert entry["schedule"] == float(settings.SCHEDULE_EVAL_INTERVAL_SECONDS)
