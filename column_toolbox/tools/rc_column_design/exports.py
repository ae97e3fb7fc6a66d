from __future__ import annotations

import csv
import json
import math
from pathlib import Path
from typing import Any, Dict

from openpyxl import Workbook
from openpyxl.utils import get_column_letter
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from .calc_trace import CalcTrace
from .report_renderer import render_report_html


def _autosize(ws):
    for col in range(1, ws.max_column + 1):
        max_len = 0
        for row in range(1, min(ws.max_row, 200) + 1):  # cap scanning
            v = ws.cell(row=row, column=col).value
            if v is None:
                continue
            max_len = max(max_len, len(str(v)))
        ws.column_dimensions[get_column_letter(col)].width = min(max(10, max_len + 2), 70)


def _write_json(path: Path, obj: Any) -> None:
    path.write_text(json.dumps(obj, indent=2, sort_keys=False), encoding="utf-8")


def _cell(v: Any) -> Any:
    # openpyxl writes nan/inf as unreadable numbers; keep them as text
    if isinstance(v, float) and not math.isfinite(v):
        return str(v)
    return v


def export_pdf(trace: CalcTrace, results: Dict[str, Any], out_dir: Path) -> Path:
    """
    Minimal PDF: summary, checks and hash/version. Full detail is in report.html.
    """
    p = out_dir / "report.pdf"
    c = canvas.Canvas(str(p), pagesize=A4)
    _, h = A4
    y = h - 72

    def line(text: str, font: str = "Helvetica", size: int = 9, indent: int = 72, gap: int = 12) -> None:
        nonlocal y
        if y < 72:
            c.showPage()
            y = h - 72
        c.setFont(font, size)
        c.drawString(indent, y, text)
        y -= gap

    line(f"{results.get('title', trace.meta.module)}: Calculation Package (Summary)", "Helvetica-Bold", 14, gap=24)
    line(f"Tool: {trace.meta.tool_id} v{trace.meta.tool_version}", size=10, gap=14)
    line(f"Input hash: {trace.meta.input_hash}", size=10, gap=14)
    line(f"Generated: {trace.meta.timestamp}", size=10, gap=22)
    line("Note: Full step-by-step calcs are provided in report.html (offline).", gap=18)

    line("Summary:", "Helvetica-Bold", 10, gap=14)
    for text in str(results.get("summary_text", "")).splitlines():
        line(text, indent=84)
    y -= 6
    line("Checks:", "Helvetica-Bold", 10, gap=14)
    for chk in trace.summary.governing_checks:
        line(f"{chk.get('label')}: {chk.get('pass_fail')}", indent=84)
    for wmsg in trace.summary.warnings:
        line(f"WARNING: {wmsg}", indent=84)
    c.showPage()
    c.save()
    return p


def export_all(trace: CalcTrace, results: Dict[str, Any], run_dir: Path, decimals: int = 2) -> Dict[str, Any]:
    run_dir.mkdir(parents=True, exist_ok=True)

    # 1) HTML report
    (run_dir / "report.html").write_text(render_report_html(trace, results, decimals=decimals), encoding="utf-8")

    export_pdf(trace, results, run_dir)

    # 2) JSON
    _write_json(run_dir / "calc_trace.json", trace.to_json_dict())
    _write_json(run_dir / "results.json", results)

    # 3) Excel
    wb = Workbook()
    ws_in = wb.active
    ws_in.title = "Inputs"
    ws_in.append(["id", "label", "value", "units", "source", "notes"])
    for i in trace.inputs:
        ws_in.append([i.id, i.label, _cell(i.value), i.units, i.source, i.notes or ""])
    _autosize(ws_in)

    ws_a = wb.create_sheet("Assumptions")
    ws_a.append(["id", "text"])
    for a in trace.assumptions:
        ws_a.append([a.id, a.text])
    _autosize(ws_a)

    ws_c = wb.create_sheet("Calcs")
    ws_c.append(["id", "section", "title", "reference", "equation", "substitution", "result_rounded", "units", "checks"])
    for st in trace.steps:
        refs = "; ".join([f"{r.type}:{r.ref}" for r in st.references])
        checks = "; ".join([f"{c.label}: {c.pass_fail}" for c in (st.checks or [])])
        ws_c.append([
            st.id,
            st.section,
            st.title,
            refs,
            st.equation,
            st.substitution,
            _cell(st.result_rounded.value),
            st.result_rounded.units,
            checks,
        ])
    _autosize(ws_c)

    ws_r = wb.create_sheet("Results")
    ws_r.append(["key", "value"])
    for k, v in (results.get("outputs") or {}).items():
        ws_r.append([k, _cell(v)])
    ws_r.append(["status", results.get("status", "")])
    _autosize(ws_r)

    wb.save(run_dir / "results.xlsx")

    # 4) CSV of inputs plus key outputs
    with (run_dir / "inputs.csv").open("w", newline="", encoding="utf-8") as f:
        w = csv.writer(f)
        w.writerow(["id", "label", "value", "units", "source"])
        for i in trace.inputs:
            w.writerow([i.id, i.label, i.value, i.units, i.source])
        w.writerow([])
        w.writerow(["key", "value", "units", "source"])
        for k, v in (trace.summary.key_outputs or {}).items():
            if isinstance(v, dict) and "value" in v and "units" in v:
                w.writerow([k, v["value"], v["units"], "summary"])
            else:
                w.writerow([k, json.dumps(v), "", "summary"])

    return {
        "run_dir": str(run_dir),
        "files": [
            "report.html",
            "report.pdf",
            "calc_trace.json",
            "results.json",
            "results.xlsx",
            "inputs.csv",
        ],
    }
