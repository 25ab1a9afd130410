from decimal import Decimal

from conftest import add_wbs, top_level


def test_list_ordered_by_code(client, tree):
    pid = tree["project"]["id"]
    codes = [i["code"] for i in client.get(f"/api/projects/{pid}/wbs").json()]
    assert codes == ["1", "1.1", "1.1.1", "1.1.2", "2", "3"]


def test_levels_and_codes(client, tree):
    assert tree["wp"]["code"] == "1.1"
    assert tree["wp"]["level"] == 2
    assert tree["a1"]["level"] == 3
    assert tree["a1"]["duration"] == 10
    assert Decimal(tree["a1"]["budgeted_cost"]) == 0


def test_activity_cannot_sit_under_summary(client, project):
    pid = project["id"]
    s1 = top_level(client, pid)["1"]
    r = add_wbs(client, pid, parent_id=s1["id"], name="Dig", type="Activity",
                start_date="2025-01-01", end_date="2025-01-02")
    assert r.status_code == 400
    assert "WorkPackage' in between" in r.json()["message"]


def test_top_level_items_must_be_summaries(client, project):
    r = add_wbs(client, project["id"], name="Loose", type="WorkPackage", budgeted_cost="1")
    assert r.status_code == 400


def test_only_one_work_package_level(client, tree):
    pid, wp = tree["project"]["id"], tree["wp"]
    r = add_wbs(client, pid, parent_id=wp["id"], name="Sub", type="WorkPackage", budgeted_cost="1")
    assert r.status_code == 400


def test_rollup_enforced_on_create_and_update(client, tree):
    pid, s1, wp = tree["project"]["id"], tree["summary"], tree["wp"]
    r = add_wbs(client, pid, parent_id=s1["id"], name="Too big", type="WorkPackage", budgeted_cost="2000.01")
    assert r.status_code == 400
    assert "exceed" in r.json()["message"]

    assert add_wbs(client, pid, parent_id=s1["id"], name="Fits", type="WorkPackage",
                   budgeted_cost="2000").status_code == 201
    r = client.patch(f"/api/wbs/{wp['id']}", json={"budgeted_cost": "3000.01"})
    assert r.status_code == 400
    # shrinking the parent below its children is rejected too
    r = client.patch(f"/api/wbs/{s1['id']}", json={"budgeted_cost": "4999"})
    assert r.status_code == 400


def test_root_summary_counts_against_project_budget(client, project):
    r = add_wbs(client, project["id"], name="Extra", type="Summary", budgeted_cost="1")
    assert r.status_code == 400
    tops = top_level(client, project["id"])
    client.patch(f"/api/wbs/{tops['3']['id']}", json={"budgeted_cost": "9000"})
    r = add_wbs(client, project["id"], name="Extra", type="Summary", budgeted_cost="1000")
    assert r.status_code == 201
    assert r.json()["code"] == "4"
    assert r.json()["is_top_level"] is False


def test_shape_rules(client, tree):
    pid, wp, s1 = tree["project"]["id"], tree["wp"], tree["summary"]
    r = add_wbs(client, pid, parent_id=wp["id"], name="Bad", type="Activity", budgeted_cost="5",
                start_date="2025-01-01", end_date="2025-01-02")
    assert r.status_code == 400
    r = add_wbs(client, pid, parent_id=wp["id"], name="Undated", type="Activity")
    assert r.status_code == 400
    r = add_wbs(client, pid, parent_id=s1["id"], name="Dated", type="WorkPackage", budgeted_cost="1",
                start_date="2025-01-01")
    assert r.status_code == 400


def test_duplicate_code_rejected(client, tree):
    pid, s1 = tree["project"]["id"], tree["summary"]
    r = add_wbs(client, pid, parent_id=s1["id"], name="Clash", type="Summary", budgeted_cost="1", code="1.1")
    assert r.status_code == 400
    assert "already exists" in r.json()["message"]


def test_update_activity_dates_recomputes_duration(client, tree):
    a1 = tree["a1"]
    r = client.patch(f"/api/wbs/{a1['id']}", json={"end_date": "2025-01-05"})
    assert r.status_code == 200, r.text
    assert r.json()["duration"] == 5


def test_type_changes(client, tree):
    pid, s1, wp = tree["project"]["id"], tree["summary"], tree["wp"]
    # a WorkPackage under a Summary cannot turn into an Activity
    assert client.patch(f"/api/wbs/{wp['id']}", json={"type": "Activity"}).status_code == 400
    # top-level items stay Summaries
    assert client.patch(f"/api/wbs/{s1['id']}", json={"type": "WorkPackage"}).status_code == 400

    outer = add_wbs(client, pid, parent_id=s1["id"], name="Outer", type="Summary", budgeted_cost="1000").json()
    add_wbs(client, pid, parent_id=outer["id"], name="Inner", type="Summary", budgeted_cost="500")
    r = client.patch(f"/api/wbs/{outer['id']}", json={"type": "WorkPackage"})
    assert r.status_code == 400
    assert "non-Activity children" in r.json()["message"]

    leaf = add_wbs(client, pid, parent_id=s1["id"], name="Leaf", type="Summary", budgeted_cost="100").json()
    r = client.patch(f"/api/wbs/{leaf['id']}", json={"type": "WorkPackage"})
    assert r.status_code == 200
    assert r.json()["type"] == "WorkPackage"


def test_top_level_cannot_move_or_be_deleted(client, project):
    tops = top_level(client, project["id"])
    r = client.patch(f"/api/wbs/{tops['2']['id']}", json={"parent_id": tops["1"]["id"]})
    assert r.status_code == 400
    r = client.delete(f"/api/wbs/{tops['1']['id']}")
    assert r.status_code == 400
    assert r.json()["message"] == "Cannot delete top-level WBS items"


def test_move_updates_levels(client, tree):
    pid, s1, wp = tree["project"]["id"], tree["summary"], tree["wp"]
    group = add_wbs(client, pid, parent_id=s1["id"], name="Group", type="Summary", budgeted_cost="2000").json()
    r = client.patch(f"/api/wbs/{wp['id']}", json={"parent_id": group["id"], "budgeted_cost": "2000"})
    assert r.status_code == 200, r.text
    assert r.json()["level"] == 3
    assert client.get(f"/api/wbs/{tree['a1']['id']}").json()["level"] == 4

    r = client.patch(f"/api/wbs/{group['id']}", json={"parent_id": wp["id"]})
    assert r.status_code == 400


def test_progress(client, tree):
    a1, wp = tree["a1"], tree["wp"]
    r = client.patch(f"/api/wbs/{a1['id']}/progress", json={
        "percent_complete": 40, "actual_start_date": "2025-01-02",
    })
    assert r.status_code == 200
    assert Decimal(r.json()["percent_complete"]) == 40
    assert r.json()["actual_start_date"] == "2025-01-02"

    # omitted dates are kept
    r = client.patch(f"/api/wbs/{a1['id']}/progress", json={"percent_complete": 60})
    assert r.json()["actual_start_date"] == "2025-01-02"

    r = client.patch(f"/api/wbs/{wp['id']}/progress", json={
        "percent_complete": 10, "actual_end_date": "2025-01-02",
    })
    assert r.status_code == 400
    assert r.json()["message"] == "Only 'Activity' items can have actual start and end dates"

    r = client.patch(f"/api/wbs/{a1['id']}/progress", json={"percent_complete": 101})
    assert r.status_code == 400


def test_delete_cascades_to_children(client, tree):
    wp, a1 = tree["wp"], tree["a1"]
    client.post("/api/tasks", json={"activity_id": a1["id"], "name": "Stake out"})
    assert client.delete(f"/api/wbs/{wp['id']}").status_code == 204
    assert client.get(f"/api/wbs/{a1['id']}").status_code == 404
    assert client.get(f"/api/projects/{tree['project']['id']}/tasks").json() == []


def test_unknown_item(client):
    assert client.get("/api/wbs/12345").status_code == 404
    assert client.patch("/api/wbs/12345", json={"name": "x"}).status_code == 404


def test_linked_activity_cannot_change_type(client, tree):
    s1, a1, a2 = tree["summary"], tree["a1"], tree["a2"]
    client.post("/api/dependencies", json={"predecessor_id": a1["id"], "successor_id": a2["id"]})
    task = client.post("/api/tasks", json={"activity_id": a1["id"], "name": "Stake out"}).json()
    retype = {"parent_id": s1["id"], "type": "WorkPackage", "budgeted_cost": "0"}

    r = client.patch(f"/api/wbs/{a1['id']}", json=retype)
    assert r.status_code == 400
    assert "has dependencies" in r.json()["message"]
    assert client.get(f"/api/wbs/{a1['id']}").json()["type"] == "Activity"
    assert len(client.get(f"/api/wbs/{a1['id']}/dependencies").json()) == 1

    client.delete(f"/api/dependencies/{a1['id']}/{a2['id']}")
    r = client.patch(f"/api/wbs/{a1['id']}", json=retype)
    assert r.status_code == 400
    assert "has tasks" in r.json()["message"]

    client.delete(f"/api/tasks/{task['id']}")
    r = client.patch(f"/api/wbs/{a1['id']}", json=retype)
    assert r.status_code == 200, r.text
    assert r.json()["type"] == "WorkPackage"
    assert r.json()["start_date"] is None


def test_costed_work_package_cannot_become_activity(client, tree):
    pid, s1, wp = tree["project"]["id"], tree["summary"], tree["wp"]
    wp2 = add_wbs(client, pid, parent_id=s1["id"], name="Site office", type="WorkPackage", budgeted_cost="500").json()
    client.post("/api/costs", json={"wbs_item_id": wp2["id"], "amount": "50", "entry_date": "2025-01-03"})

    r = client.patch(f"/api/wbs/{wp2['id']}", json={
        "parent_id": wp["id"], "type": "Activity", "budgeted_cost": "0",
        "start_date": "2025-01-01", "end_date": "2025-01-05",
    })
    assert r.status_code == 400
    assert "has cost entries" in r.json()["message"]
    item = client.get(f"/api/wbs/{wp2['id']}").json()
    assert item["type"] == "WorkPackage"
    assert item["parent_id"] == s1["id"]
    assert Decimal(item["actual_cost"]) == Decimal("50")
