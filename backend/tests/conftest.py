import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CREATE_TABLES", "false")
os.environ.setdefault("SEED_DEMO", "false")

import datetime as dt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from smartproject.core.deps import get_db
from smartproject.db.base import Base
from smartproject.db.session import make_engine
from smartproject.main import app
import smartproject.db.models  # noqa: F401


@pytest.fixture()
def engine():
    eng = make_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture()
def db(engine):
    Session = sessionmaker(bind=engine, autoflush=False)
    s = Session()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture()
def client(engine, tmp_path, monkeypatch):
    from smartproject.core.config import settings

    monkeypatch.setattr(settings, "EXPORT_DIR", str(tmp_path / "exports"))
    Session = sessionmaker(bind=engine, autoflush=False)

    def _get_db():
        s = Session()
        try:
            yield s
        finally:
            s.close()

    app.dependency_overrides[get_db] = _get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def project(client):
    r = client.post("/api/projects", json={
        "name": "Tower A",
        "start_date": "2025-01-01",
        "end_date": "2025-12-31",
        "budget": "100000",
    })
    assert r.status_code == 201, r.text
    return r.json()


def top_level(client, project_id):
    items = client.get(f"/api/projects/{project_id}/wbs").json()
    return {i["code"]: i for i in items if i["parent_id"] is None}


def add_wbs(client, project_id, **kw):
    body = {"project_id": project_id, **kw}
    for k, v in list(body.items()):
        if isinstance(v, dt.date):
            body[k] = v.isoformat()
    return client.post("/api/wbs", json=body)


@pytest.fixture()
def tree(client, project):
    """Project with a WorkPackage (1.1) under Summary 1 and two Activities under it."""
    pid = project["id"]
    s1 = top_level(client, pid)["1"]
    wp = add_wbs(client, pid, parent_id=s1["id"], name="Design package", type="WorkPackage", budgeted_cost="3000")
    assert wp.status_code == 201, wp.text
    a1 = add_wbs(client, pid, parent_id=wp.json()["id"], name="Survey", type="Activity",
                 start_date="2025-01-01", end_date="2025-01-10")
    a2 = add_wbs(client, pid, parent_id=wp.json()["id"], name="Drawings", type="Activity",
                 start_date="2025-01-11", end_date="2025-01-31")
    assert a1.status_code == 201 and a2.status_code == 201
    return {"project": project, "summary": s1, "wp": wp.json(), "a1": a1.json(), "a2": a2.json()}
