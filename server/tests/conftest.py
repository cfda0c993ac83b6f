# server/tests/conftest.py
"""
Conftest *global* pour toute la suite de tests.

Points clés :
- Pour les tests @unit uniquement :
  - DATABASE_URL SQLite in-memory (jamais de Postgres).
  - Active Celery en mode "eager" (exécution in-process).
  - Monte une DB SQLite in-memory partagée + Base.create_all.
  - Patch de la pile DB : get_sync_session (module session + modules consommateurs).
- Factories simples : installation, capteur, seuil.
"""

import os
import importlib
import pkgutil
import uuid
from contextlib import contextmanager

import pytest

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")


# ============================================================================
# Helpers
# ============================================================================
def _is_unit(request: pytest.FixtureRequest) -> bool:
    """True si le test courant est marqué @pytest.mark.unit."""
    return request.node.get_closest_marker("unit") is not None


# ============================================================================
# UNIT-ONLY: Celery en mode "eager" (tâches exécutées in-process)
# ============================================================================
@pytest.fixture(autouse=True)
def celery_eager(request):
    """
    Active le mode 'eager' de Celery en unit.
    ⚠️ Fixture générateur : DOIT toujours 'yield', même hors unit.
    """
    if not _is_unit(request):
        yield
        return

    from app.workers.celery_app import celery

    prev_always = celery.conf.task_always_eager
    prev_propag = celery.conf.task_eager_propagates
    celery.conf.task_always_eager = True
    celery.conf.task_eager_propagates = True
    try:
        yield
    finally:
        celery.conf.task_always_eager = prev_always
        celery.conf.task_eager_propagates = prev_propag


# ============================================================================
# UNIT-ONLY: DB SQLite in-memory partagée + Base.metadata.create_all
# ============================================================================
@pytest.fixture(scope="session")
def _sqlite_engine_unit():
    """
    Engine in-memory **partagé** entre connexions (StaticPool + check_same_thread=False)
    + activation des contraintes FK sur chaque connexion.
    """
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):  # noqa: ARG001
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    # Charger tous les modèles avant create_all
    from app.infrastructure.persistence.database import base as db_base
    from app.infrastructure.persistence.database import models as models_pkg

    for _finder, name, _ispkg in pkgutil.walk_packages(
        models_pkg.__path__, models_pkg.__name__ + "."
    ):
        importlib.import_module(name)

    db_base.Base.metadata.create_all(engine)
    return engine


@pytest.fixture(scope="session")
def _Session_unit(_sqlite_engine_unit):
    return sessionmaker(
        bind=_sqlite_engine_unit,
        future=True,
        autoflush=True,
        expire_on_commit=False,
    )


@pytest.fixture
def Session(request, _Session_unit):
    """
    Sessionmaker à utiliser comme `with Session() as s:` pour les tests unitaires.
    *Skippé* s'il est injecté dans un test non marqué @unit.
    """
    if not _is_unit(request):
        pytest.skip("Session fixture is only available for unit tests")
    return _Session_unit


# Purge DB entre tests unitaires (évite les fuites d'état)
@pytest.fixture(autouse=True)
def _clear_db_between_unit_tests(request, _Session_unit):
    """⚠️ Générateur : doit 'yield' aussi hors unit."""
    if not _is_unit(request):
        yield
        return

    yield
    from app.infrastructure.persistence.database import base as db_base
    with _Session_unit() as s:
        for table in reversed(db_base.Base.metadata.sorted_tables):
            s.execute(table.delete())
        s.commit()


# ============================================================================
# UNIT-ONLY: Patch DB (get_sync_session dans la source + les consommateurs)
# ============================================================================
@pytest.fixture(autouse=True)
def patch_db_stack_for_unit(request, monkeypatch, _Session_unit):
    """
    Certains modules figent `get_sync_session` à l'import
    (`from ...session import get_sync_session`) : on patche aussi ces
    modules *consommateurs*, sinon ils viseraient Postgres.
    """
    if not _is_unit(request):
        return

    @contextmanager
    def _fake_get_sync_session():
        with _Session_unit() as s:
            yield s

    to_patch = [
        "app.infrastructure.persistence.database.session",
        "app.workers.tasks.ingest_tasks",
        "app.workers.tasks.schedule_tasks",
    ]
    for modname in to_patch:
        m = importlib.import_module(modname)
        monkeypatch.setattr(m, "get_sync_session", _fake_get_sync_session, raising=False)


# ============================================================================
# Factories (catalogue minimal : installation + capteurs)
# ============================================================================
@pytest.fixture
def installation_factory():
    from app.infrastructure.persistence.database.models import Installation

    def _factory(s, name="Bassin A"):
        inst = Installation(id=uuid.uuid4(), name=name)
        s.add(inst)
        s.flush()
        return inst
    return _factory


@pytest.fixture
def sensor_factory():
    from app.infrastructure.persistence.database.models import InstalledSensor

    def _factory(s, installation, measurement_type="dissolved_oxygen", name="OD-1", unit="mg/L"):
        sensor = InstalledSensor(
            id=uuid.uuid4(),
            installation_id=installation.id,
            name=name,
            measurement_type=measurement_type,
            unit=unit,
        )
        s.add(sensor)
        s.flush()
        return sensor
    return _factory
