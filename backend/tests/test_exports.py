import io

import pandas as pd


def test_metrics_xlsx(client, tree):
    pid = tree["project"]["id"]
    r = client.get(f"/api/projects/{pid}/metrics/export.xlsx", params={"as_of": "2025-06-30"})
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("application/vnd.openxmlformats")
    sheets = pd.read_excel(io.BytesIO(r.content), sheet_name=None, engine="openpyxl")
    assert set(sheets) == {"evm", "totals"}
    assert list(sheets["evm"]["WBS code"].astype(str)) == ["1", "2", "3", "1.1"]


def test_metrics_pdf(client, tree):
    pid = tree["project"]["id"]
    r = client.get(f"/api/projects/{pid}/metrics/export.pdf")
    assert r.status_code == 200
    assert r.headers["content-type"] == "application/pdf"
    assert r.content.startswith(b"%PDF")
