# server/tests/unit/test_evaluation_service.py
import uuid
import datetime as dt

import pytest

from app.application.services import evaluation_service
from app.application.services.evaluation_service import evaluate_reading
from app.domain.errors import EvaluationFailed, NotFound, StoreTimeout
from app.domain.models import EvaluationOutcome, Reading
from app.infrastructure.persistence.database.models import Alert
from app.infrastructure.persistence.repositories.alert_repository import AlertRepository
from app.infrastructure.persistence.repositories.threshold_repository import ThresholdRepository

pytestmark = pytest.mark.unit

T0 = dt.datetime(2025, 3, 1, 8, 0, tzinfo=dt.timezone.utc)


def _reading(sensor, value, minutes=0):
    return Reading(sensor_id=sensor.id, value=value, taken_at=T0 + dt.timedelta(minutes=minutes))


def _open_alerts(s, sensor):
    return s.query(Alert).filter_by(sensor_id=sensor.id, resolved=False).all()


@pytest.fixture
def critical_sensor(Session, installation_factory, sensor_factory):
    """Capteur S : min=6.0, max=9.0, niveau critical."""
    with Session() as s:
        sensor = sensor_factory(s, installation_factory(s))
        ThresholdRepository(s).upsert(sensor.id, min_value=6.0, max_value=9.0, alert_level="critical")
        s.commit()
        return sensor


def test_breach_resolve_rebreach_scenario(Session, critical_sensor):
    with Session() as s:
        r1 = evaluate_reading(s, _reading(critical_sensor, 5.2, 0))
        s.commit()
        assert r1.outcome is EvaluationOutcome.CREATED
        alert = s.get(Alert, r1.alert_id)
        assert alert.severity == "critical"
        assert alert.recorded_value == 5.2
        assert (alert.read, alert.attended, alert.resolved) == (False, False, False)
        assert alert.type == "threshold_low"

        r2 = evaluate_reading(s, _reading(critical_sensor, 5.0, 5))
        s.commit()
        assert r2.outcome is EvaluationOutcome.DEDUPLICATED
        assert r2.alert_id == r1.alert_id
        assert len(_open_alerts(s, critical_sensor)) == 1

        AlertRepository(s).resolve(r1.alert_id)
        s.commit()
        assert s.get(Alert, r1.alert_id).resolved is True

        r3 = evaluate_reading(s, _reading(critical_sensor, 5.1, 10))
        s.commit()
        assert r3.outcome is EvaluationOutcome.CREATED
        assert r3.alert_id != r1.alert_id
        assert s.query(Alert).filter_by(sensor_id=critical_sensor.id).count() == 2


@pytest.mark.parametrize("value", [6.0, 7.5, 9.0])
def test_values_within_bounds_create_nothing(Session, critical_sensor, value):
    with Session() as s:
        result = evaluate_reading(s, _reading(critical_sensor, value))
        s.commit()
        assert result.outcome is EvaluationOutcome.WITHIN_BOUNDS
        assert s.query(Alert).count() == 0


def test_other_direction_is_not_deduplicated(Session, critical_sensor):
    with Session() as s:
        low = evaluate_reading(s, _reading(critical_sensor, 5.0))
        high = evaluate_reading(s, _reading(critical_sensor, 9.5, 1))
        s.commit()
        assert low.created and high.created
        assert {a.breach_direction for a in _open_alerts(s, critical_sensor)} == {"below_min", "above_max"}


def test_alert_records_provenance(Session, critical_sensor):
    with Session() as s:
        result = evaluate_reading(s, _reading(critical_sensor, 10.0))
        s.commit()
        alert = s.get(Alert, result.alert_id)
        assert alert.created_at.replace(tzinfo=dt.timezone.utc) == T0
        assert alert.threshold_id is not None
        assert alert.meta["source"] == "sensor"
        assert alert.meta["direction"] == "above_max"
        assert (alert.meta["min"], alert.meta["max"]) == (6.0, 9.0)


def test_dedup_window_allows_new_alert_after_cutoff(Session, critical_sensor):
    with Session() as s:
        first = evaluate_reading(s, _reading(critical_sensor, 5.0), dedup_window_minutes=15)
        inside = evaluate_reading(s, _reading(critical_sensor, 5.0, 10), dedup_window_minutes=15)
        after = evaluate_reading(s, _reading(critical_sensor, 5.0, 60), dedup_window_minutes=15)
        s.commit()
        assert first.created
        assert inside.outcome is EvaluationOutcome.DEDUPLICATED
        assert after.created


def test_fallback_on_defaults_never_persists_threshold(Session, installation_factory, sensor_factory):
    with Session() as s:
        sensor = sensor_factory(s, installation_factory(s))
        trepo = ThresholdRepository(s)
        trepo.register_default("dissolved_oxygen", min_value=5.0, max_value=12.0)
        s.commit()

        result = evaluate_reading(s, _reading(sensor, 4.0))
        s.commit()

        alert = s.get(Alert, result.alert_id)
        assert alert.severity == "warning"
        assert alert.threshold_id is None
        assert alert.meta["source"] == "default"
        assert trepo.get_row(sensor.id) is None


def test_no_threshold_is_skipped(Session, installation_factory, sensor_factory):
    with Session() as s:
        sensor = sensor_factory(s, installation_factory(s), measurement_type="turbidity")
        result = evaluate_reading(s, _reading(sensor, -1000.0))
        assert result.outcome is EvaluationOutcome.SKIPPED
        assert s.query(Alert).count() == 0


def test_inactive_threshold_switches_alerting_off(Session, critical_sensor):
    with Session() as s:
        trepo = ThresholdRepository(s)
        trepo.register_default("dissolved_oxygen", min_value=5.0, max_value=12.0)
        trepo.deactivate(critical_sensor.id)
        s.commit()

        result = evaluate_reading(s, _reading(critical_sensor, 1.0))
        assert result.outcome is EvaluationOutcome.SKIPPED


def test_unknown_sensor_is_not_found(Session):
    with Session() as s:
        with pytest.raises(NotFound):
            evaluate_reading(s, Reading(sensor_id=uuid.uuid4(), value=1.0, taken_at=T0))


def test_store_failure_is_reported_not_swallowed(Session, critical_sensor, monkeypatch):
    def _boom(self, sensor_id):
        raise StoreTimeout("canceling statement due to statement timeout")

    monkeypatch.setattr(evaluation_service.ThresholdRepository, "get_row", _boom)
    with Session() as s:
        with pytest.raises(EvaluationFailed) as ei:
            evaluate_reading(s, _reading(critical_sensor, 1.0))
        assert isinstance(ei.value.__cause__, StoreTimeout)
        assert s.query(Alert).count() == 0
