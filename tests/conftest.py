import pytest
from fastapi.testclient import TestClient

import database
from config import settings
from factories import DOCTOR_ID, MONDAY_HOURS, RecordingNotifier, seed_users
from services.appointments import AppointmentService
from services.schedules import ScheduleService


@pytest.fixture
def engine(tmp_path):
    engine = database.init_engine(f"sqlite:///{tmp_path / 'clinic.db'}")
    database.Base.metadata.create_all(bind=engine)
    yield engine
    database.dispose_engine()


@pytest.fixture
def db(engine):
    session = database.SessionLocal()
    seed_users(session)
    yield session
    session.close()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def service(db, notifier):
    return AppointmentService(db, notifier)


@pytest.fixture
def monday_schedule(db):
    return ScheduleService(db).set_weekly_schedule(DOCTOR_ID, [dict(MONDAY_HOURS)])


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "database_url", f"sqlite:///{tmp_path / 'api.db'}")
    from main import app
    with TestClient(app) as test_client:
        session = database.SessionLocal()
        seed_users(session)
        session.close()
        yield test_client
