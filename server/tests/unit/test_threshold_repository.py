# server/tests/unit/test_threshold_repository.py
import uuid
import pytest

from app.domain.errors import NotFound, ValidationError
from app.infrastructure.persistence.database.models import SensorThreshold
from app.infrastructure.persistence.repositories.threshold_repository import ThresholdRepository

pytestmark = pytest.mark.unit


def test_upsert_inserts_then_replaces_single_row(Session, installation_factory, sensor_factory):
    with Session() as s:
        sensor = sensor_factory(s, installation_factory(s))
        repo = ThresholdRepository(s)

        first = repo.upsert(sensor.id, min_value=6.0, max_value=9.0, alert_level="critical")
        assert first.alert_level == "critical"
        assert first.active is True

        second = repo.upsert(sensor.id, min_value=5.0, max_value=10.0, optimal_value=7.5)
        s.commit()

        assert second.id == first.id
        assert (second.min_value, second.max_value, second.optimal_value) == (5.0, 10.0, 7.5)
        # alert_level absent -> "warning" (remplacement complet)
        assert second.alert_level == "warning"
        assert s.query(SensorThreshold).filter_by(sensor_id=sensor.id).count() == 1


def test_upsert_rejects_min_above_max(Session, installation_factory, sensor_factory):
    with Session() as s:
        sensor = sensor_factory(s, installation_factory(s))
        with pytest.raises(ValidationError) as ei:
            ThresholdRepository(s).upsert(sensor.id, min_value=9.0, max_value=6.0)
        assert ei.value.field == "min_value"


def test_upsert_unknown_sensor_is_not_found(Session):
    with Session() as s:
        with pytest.raises(NotFound):
            ThresholdRepository(s).upsert(uuid.uuid4(), min_value=1, max_value=2)


def test_upsert_optimal_outside_bounds_is_accepted(Session, installation_factory, sensor_factory, caplog):
    with Session() as s:
        sensor = sensor_factory(s, installation_factory(s))
        row = ThresholdRepository(s).upsert(sensor.id, min_value=6.0, max_value=9.0, optimal_value=12.0)
        assert row.optimal_value == 12.0
    assert any("optimal_value" in r.getMessage() for r in caplog.records)


def test_get_absent_and_inactive(Session, installation_factory, sensor_factory):
    with Session() as s:
        sensor = sensor_factory(s, installation_factory(s))
        repo = ThresholdRepository(s)
        assert repo.get(sensor.id) is None

        repo.upsert(sensor.id, min_value=6.0, max_value=9.0)
        assert repo.get(sensor.id) is not None

        repo.deactivate(sensor.id)
        assert repo.get(sensor.id) is None
        # la ligne reste (provenance)
        assert repo.get_row(sensor.id).active is False

        repo.set_active(sensor.id, True)
        assert repo.get(sensor.id) is not None


def test_set_active_without_row_is_not_found(Session, installation_factory, sensor_factory):
    with Session() as s:
        sensor = sensor_factory(s, installation_factory(s))
        with pytest.raises(NotFound):
            ThresholdRepository(s).set_active(sensor.id, False)


def test_defaults_by_measurement_type(Session):
    with Session() as s:
        repo = ThresholdRepository(s)
        assert repo.get_defaults("dissolved_oxygen") is None

        repo.register_default("Dissolved_Oxygen", min_value=5.0, max_value=12.0, optimal_value=7.0)
        s.commit()

        d = repo.get_defaults("dissolved_oxygen")
        assert (d.min_value, d.max_value) == (5.0, 12.0)
        assert repo.get_defaults("ph") is None


def test_list_for_installation(Session, installation_factory, sensor_factory):
    with Session() as s:
        inst = installation_factory(s)
        other = installation_factory(s, name="Bassin B")
        a = sensor_factory(s, inst, name="OD-1")
        b = sensor_factory(s, inst, name="T-1", measurement_type="temperature")
        c = sensor_factory(s, other, name="OD-9")
        repo = ThresholdRepository(s)
        for sensor in (a, b, c):
            repo.upsert(sensor.id, min_value=1, max_value=2)

        rows = repo.list_for_installation(inst.id)
        assert {r.sensor_id for r in rows} == {a.id, b.id}
