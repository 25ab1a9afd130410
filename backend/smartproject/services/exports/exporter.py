import datetime as dt
from pathlib import Path
import pandas as pd
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas
from reportlab.lib.units import mm

from smartproject.core.config import settings

EVM_COLUMNS = [
    ("code", "WBS code"),
    ("name", "Name"),
    ("type", "Type"),
    ("budgeted_cost", "Budget (BAC)"),
    ("actual_cost", "Actual cost (AC)"),
    ("percent_complete", "% complete"),
    ("earned_value", "Earned value (EV)"),
    ("planned_value", "Planned value (PV)"),
    ("cost_variance", "CV"),
    ("schedule_variance", "SV"),
    ("cpi", "CPI"),
    ("spi", "SPI"),
]


def export_evm_xlsx(report: dict, out_path: Path, project_name: str = "") -> Path:
    # report: evm_report() output; one sheet per row set plus a totals sheet
    keys = [k for k, _ in EVM_COLUMNS]
    df = pd.DataFrame(report["rows"], columns=keys)
    money = ["budgeted_cost", "actual_cost", "percent_complete", "earned_value",
             "planned_value", "cost_variance", "schedule_variance"]
    df[money] = df[money].astype(float)
    df = df.rename(columns=dict(EVM_COLUMNS))

    totals = report["totals"]
    df_totals = pd.DataFrame(
        [
            ("Project", project_name),
            ("Currency", report["currency"]),
            ("As of", report["as_of"].isoformat()),
            ("Budget (BAC)", float(totals["budgeted_cost"])),
            ("Actual cost (AC)", float(totals["actual_cost"])),
            ("Earned value (EV)", float(totals["earned_value"])),
            ("Planned value (PV)", float(totals["planned_value"])),
            ("CV", float(totals["cost_variance"])),
            ("SV", float(totals["schedule_variance"])),
            ("CPI", round(totals["cpi"], 4)),
            ("SPI", round(totals["spi"], 4)),
            ("% complete", round(totals["percent_complete"], 2)),
        ],
        columns=["metric", "value"],
    )

    out_path.parent.mkdir(parents=True, exist_ok=True)
    with pd.ExcelWriter(out_path, engine="xlsxwriter") as w:
        df.to_excel(w, index=False, sheet_name="evm")
        df_totals.to_excel(w, index=False, sheet_name="totals")
        w.sheets["evm"].set_column(0, 0, 12)
        w.sheets["evm"].set_column(1, 1, 40)
        w.sheets["evm"].set_column(2, len(EVM_COLUMNS) - 1, 16)
        w.sheets["totals"].set_column(0, 1, 24)
    return out_path


def export_evm_pdf(report: dict, out_path: Path, project_name: str = "") -> Path:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    c = canvas.Canvas(str(out_path), pagesize=A4)
    width, height = A4
    y = height - 20*mm
    c.setFont("Helvetica-Bold", 14)
    c.drawString(20*mm, y, "Earned Value Report")
    y -= 10*mm
    c.setFont("Helvetica", 11)
    t = report["totals"]
    cur = report["currency"]
    lines = [
        f"Project: {project_name} (ID {report['project_id']})",
        f"As of: {report['as_of'].isoformat()}",
        f"Budget at completion: {t['budgeted_cost']:,.2f} {cur}",
        f"Actual cost: {t['actual_cost']:,.2f} {cur}",
        f"Earned value: {t['earned_value']:,.2f} {cur}",
        f"Planned value: {t['planned_value']:,.2f} {cur}",
        f"Cost variance: {t['cost_variance']:,.2f} {cur}",
        f"Schedule variance: {t['schedule_variance']:,.2f} {cur}",
        f"CPI: {t['cpi']:.2f}",
        f"SPI: {t['spi']:.2f}",
        f"Progress: {t['percent_complete']:.2f} %",
    ]
    for ln in lines:
        c.drawString(20*mm, y, ln)
        y -= 7*mm

    y -= 5*mm
    c.setFont("Helvetica-Bold", 10)
    cols = [(20, "Code"), (40, "Name"), (110, "BAC"), (135, "EV"), (160, "CPI"), (180, "SPI")]
    for x, title in cols:
        c.drawString(x*mm, y, title)
    y -= 6*mm
    c.setFont("Helvetica", 9)
    for r in report["rows"]:
        if y < 20*mm:
            c.showPage()
            c.setFont("Helvetica", 9)
            y = height - 20*mm
        indent = 2 * (r["level"] - 1)
        values = [
            r["code"],
            (" " * indent + r["name"])[:40],
            f"{r['budgeted_cost']:,.2f}",
            f"{r['earned_value']:,.2f}",
            f"{r['cpi']:.2f}",
            f"{r['spi']:.2f}",
        ]
        for (x, _), v in zip(cols, values):
            c.drawString(x*mm, y, v)
        y -= 5*mm
    c.showPage()
    c.save()
    return out_path


def default_export_path(prefix: str, ext: str) -> Path:
    ts = dt.datetime.now(dt.timezone.utc).strftime("%Y%m%d_%H%M%S")
    return Path(settings.EXPORT_DIR) / f"{prefix}_{ts}.{ext}"
