# server/tests/unit/test_evaluation_concurrency.py
"""
Deux lectures concurrentes du même capteur, sur une base SQLite *fichier*
(connexions distinctes, vrai verrouillage) : une seule alerte ouverte.
"""
import datetime as dt
import threading
import time

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.application.services.evaluation_service import evaluate_reading
from app.domain.models import EvaluationOutcome, Reading
from app.infrastructure.persistence.database.base import Base
from app.infrastructure.persistence.database.errors import commit
from app.infrastructure.persistence.database.models import Alert
from app.infrastructure.persistence.repositories.alert_repository import AlertRepository
from app.infrastructure.persistence.repositories.threshold_repository import ThresholdRepository

pytestmark = pytest.mark.unit

T0 = dt.datetime(2025, 3, 1, 8, 0, tzinfo=dt.timezone.utc)


@pytest.fixture
def FileSession(tmp_path):
    engine = create_engine(
        f"sqlite+pysqlite:///{tmp_path / 'aquacontrol.db'}",
        future=True,
        connect_args={"check_same_thread": False, "timeout": 10},
    )
    Base.metadata.create_all(engine)
    try:
        yield sessionmaker(bind=engine, future=True, expire_on_commit=False)
    finally:
        engine.dispose()


@pytest.fixture
def file_sensor(FileSession, installation_factory, sensor_factory):
    with FileSession() as s:
        sensor = sensor_factory(s, installation_factory(s))
        ThresholdRepository(s).upsert(sensor.id, min_value=6.0, max_value=9.0, alert_level="critical")
        s.commit()
        return sensor


def test_concurrent_breaches_open_a_single_alert(FileSession, file_sensor, monkeypatch):
    original_find_open = AlertRepository.find_open

    def _slow_find_open(self, *args, **kwargs):
        found = original_find_open(self, *args, **kwargs)
        # élargit la fenêtre entre la vérification et l'insertion
        time.sleep(0.3)
        return found

    monkeypatch.setattr(AlertRepository, "find_open", _slow_find_open)

    barrier = threading.Barrier(2)
    outcomes, errors = [], []

    def _evaluate(value, minutes):
        try:
            with FileSession() as s:
                barrier.wait(timeout=5)
                reading = Reading(
                    sensor_id=file_sensor.id,
                    value=value,
                    taken_at=T0 + dt.timedelta(minutes=minutes),
                )
                outcomes.append(evaluate_reading(s, reading).outcome)
                commit(s)
        except Exception as exc:  # remonté au thread principal
            errors.append(exc)

    threads = [
        threading.Thread(target=_evaluate, args=(5.2, 0)),
        threading.Thread(target=_evaluate, args=(5.0, 1)),
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=20)

    assert errors == []
    assert sorted(o.value for o in outcomes) == sorted(
        [EvaluationOutcome.CREATED.value, EvaluationOutcome.DEDUPLICATED.value]
    )
    with FileSession() as s:
        open_alerts = s.query(Alert).filter_by(sensor_id=file_sensor.id, resolved=False).all()
        assert len(open_alerts) == 1
        assert open_alerts[0].breach_direction == "below_min"
