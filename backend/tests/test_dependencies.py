import datetime as dt

import pytest

from smartproject.core.errors import RuleViolation
from smartproject.services.schedule.dependencies import derive_task_dates, would_create_cycle
from conftest import add_wbs


def test_cycle_detection():
    edges = [(1, 2), (2, 3), (3, 4)]
    assert would_create_cycle(edges, 4, 1)
    assert would_create_cycle(edges, 3, 2)
    assert would_create_cycle(edges, 5, 5)
    assert not would_create_cycle(edges, 1, 4)
    assert not would_create_cycle(edges, 4, 5)


def test_cycle_detection_handles_diamonds():
    edges = [(1, 2), (1, 3), (2, 4), (3, 4)]
    assert not would_create_cycle(edges, 1, 4)
    assert would_create_cycle(edges, 4, 1)


def test_derive_task_dates():
    start = dt.date(2025, 5, 1)
    assert derive_task_dates(start, None, 3) == (dt.date(2025, 5, 3), 3)
    assert derive_task_dates(start, dt.date(2025, 5, 1), None) == (dt.date(2025, 5, 1), 1)
    assert derive_task_dates(None, None, None) == (None, None)
    with pytest.raises(RuleViolation):
        derive_task_dates(start, dt.date(2025, 4, 30), None)


def _dep(client, pred, succ, **kw):
    return client.post("/api/dependencies", json={"predecessor_id": pred, "successor_id": succ, **kw})


def test_create_and_list(client, tree):
    a1, a2 = tree["a1"], tree["a2"]
    r = _dep(client, a1["id"], a2["id"], lag=2)
    assert r.status_code == 201, r.text
    assert r.json()["type"] == "FS"
    assert r.json()["lag"] == 2

    pid = tree["project"]["id"]
    assert len(client.get(f"/api/projects/{pid}/dependencies").json()) == 1
    assert len(client.get(f"/api/wbs/{a2['id']}/dependencies").json()) == 1


def test_rejections(client, tree):
    a1, a2, wp = tree["a1"], tree["a2"], tree["wp"]
    r = _dep(client, a1["id"], a1["id"])
    assert r.status_code == 400
    assert r.json()["message"] == "Cannot create self-dependency"

    r = _dep(client, wp["id"], a2["id"])
    assert r.status_code == 400
    assert "'Activity'" in r.json()["message"]

    r = _dep(client, a1["id"], 9999)
    assert r.status_code == 404
    assert r.json()["message"] == "Successor WBS item not found"

    assert _dep(client, a1["id"], a2["id"]).status_code == 201
    r = _dep(client, a1["id"], a2["id"])
    assert r.status_code == 400
    assert r.json()["message"] == "This dependency already exists"


def test_no_cycles(client, tree):
    pid, wp = tree["project"]["id"], tree["wp"]
    a3 = add_wbs(client, pid, parent_id=wp["id"], name="Review", type="Activity",
                 start_date="2025-02-01", end_date="2025-02-05").json()
    a1, a2 = tree["a1"], tree["a2"]
    assert _dep(client, a1["id"], a2["id"]).status_code == 201
    assert _dep(client, a2["id"], a3["id"]).status_code == 201

    r = _dep(client, a3["id"], a1["id"])
    assert r.status_code == 400
    assert "circular" in r.json()["message"]
    r = _dep(client, a2["id"], a1["id"], type="SS")
    assert r.status_code == 400


def test_delete(client, tree):
    a1, a2 = tree["a1"], tree["a2"]
    _dep(client, a1["id"], a2["id"])
    assert client.delete(f"/api/dependencies/{a1['id']}/{a2['id']}").status_code == 204
    assert client.delete(f"/api/dependencies/{a1['id']}/{a2['id']}").status_code == 404
    assert client.get(f"/api/wbs/{a1['id']}/dependencies").json() == []


def test_deleting_activity_drops_its_edges(client, tree):
    a1, a2 = tree["a1"], tree["a2"]
    _dep(client, a1["id"], a2["id"])
    assert client.delete(f"/api/wbs/{a2['id']}").status_code == 204
    assert client.get(f"/api/wbs/{a1['id']}/dependencies").json() == []
