from __future__ import annotations

import html
from typing import Any, Dict

from column_toolbox.blocks import format_number

from .calc_trace import CalcTrace
from .models import MODULE_TITLES

_CSS = r"""
:root{
  --fg:#111; --muted:#555; --border:#cfcfcf; --bg:#fff; --box:#f6f6f6;
  --pass:#0b6b0b; --fail:#b00020; --warn:#8a5a00;
  --mono: ui-monospace, SFMono-Regular, Menlo, Consolas, "Liberation Mono", monospace;
  --sans: system-ui, -apple-system, Segoe UI, Roboto, Arial, sans-serif;
}
html,body{background:var(--bg); color:var(--fg); font-family:var(--sans); margin:0; padding:0;}
.page{max-width:1100px; margin:24px auto; padding:0 18px 36px;}
h1{font-size:20px; margin:0 0 6px;}
.meta{color:var(--muted); font-size:12px; margin:0 0 18px;}
h2{font-size:16px; margin:22px 0 10px; border-bottom:1px solid var(--border); padding-bottom:6px;}
table{border-collapse:collapse; width:100%; font-size:12px;}
th,td{border:1px solid var(--border); padding:6px 8px; vertical-align:top;}
th{background:#f1f1f1; text-align:left;}
.box{border:1px solid var(--border); background:var(--box); padding:10px 12px; margin:10px 0;}
.eq{font-family:var(--mono); font-size:12px; white-space:pre-wrap; word-break:break-word;}
.small{font-size:12px; color:var(--muted);}
.step{page-break-inside:avoid; margin:0 0 16px;}
.step-id{font-family:var(--mono); color:var(--muted);}
.result{font-weight:600;}
.tag{display:inline-block; font-size:11px; padding:2px 8px; border-radius:10px; border:1px solid var(--border); background:#fff;}
.tag.pass{border-color:rgba(11,107,11,.35); color:var(--pass);}
.tag.fail{border-color:rgba(176,0,32,.35); color:var(--fail);}
.tag.warn{border-color:rgba(138,90,0,.35); color:var(--warn);}
ul{margin:6px 0 0 18px; padding:0;}
@media print{ .page{max-width:none; margin:0; padding:0 10mm;} }
"""


def _h(s: Any) -> str:
    return html.escape("" if s is None else str(s))


def _tag(status: str) -> str:
    cls = "pass" if status.upper() == "PASS" else "fail"
    return f"<span class='tag {cls}'>{_h(status)}</span>"


def render_report_html(trace: CalcTrace, results: Dict[str, Any], decimals: int = 2) -> str:
    """Render the calculation package as a standalone, printable HTML page."""
    meta = trace.meta

    def num(v: Any) -> str:
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            return _h(v)
        return _h(format_number(v, decimals))

    title = f"{MODULE_TITLES.get(meta.module, meta.module)}: Calculation Package"
    parts = []
    parts.append("<!doctype html><html><head><meta charset='utf-8'/>")
    parts.append(f"<title>{_h(title)}</title>")
    parts.append("<style>" + _CSS + "</style></head><body>")
    parts.append("<div class='page'>")
    parts.append(f"<h1>{_h(title)}</h1>")
    parts.append(
        "<div class='meta'>"
        f"Tool: {_h(meta.tool_id)} v{_h(meta.tool_version)} | Timestamp: {_h(meta.timestamp)} | "
        f"Units: {_h(meta.units_system)} | Code basis: {_h(meta.code_basis or '')} | Input hash: {_h(meta.input_hash)}"
        "</div>"
    )

    # Summary
    parts.append("<h2>Summary</h2>")
    parts.append("<div class='box'>")
    parts.append(f"<div>Status: {_tag(results.get('status', ''))}</div>")
    parts.append("<pre class='eq'>" + _h(results.get("summary_text", "")) + "</pre>")
    if trace.summary.warnings:
        parts.append("<div class='small'>Warnings</div><ul>")
        for w in trace.summary.warnings:
            parts.append(f"<li class='small'><span class='tag warn'>WARN</span> {_h(w)}</li>")
        parts.append("</ul>")
    parts.append("</div>")

    # Inputs
    parts.append("<h2>Inputs</h2>")
    parts.append("<table><thead><tr><th>ID</th><th>Value</th><th>Units</th><th>Source</th></tr></thead><tbody>")
    for inp in trace.inputs:
        parts.append(
            f"<tr><td>{_h(inp.label)}</td><td>{_h(inp.value)}</td>"
            f"<td>{_h(inp.units)}</td><td>{_h(inp.source)}</td></tr>"
        )
    parts.append("</tbody></table>")

    # Assumptions
    parts.append("<h2>Assumptions &amp; Limitations</h2>")
    if trace.assumptions:
        parts.append("<ul>")
        for a in trace.assumptions:
            parts.append(f"<li>{_h(a.id)}: {_h(a.text)}</li>")
        parts.append("</ul>")
    else:
        parts.append("<div class='small'>None recorded.</div>")

    # Steps
    parts.append("<h2>Calculations</h2>")
    for st in trace.steps:
        parts.append("<div class='step'>")
        parts.append(f"<div><span class='step-id'>{_h(st.id)}</span> <strong>{_h(st.section)}</strong>: {_h(st.title)}</div>")
        parts.append("<div class='box'>")
        parts.append(
            f"<div class='result'>{_h(st.output_symbol)} = {num(st.result_rounded.value)} {_h(st.result_rounded.units)}"
            f" <span class='small'>({_h(st.output_description)})</span></div>"
        )
        parts.append(f"<pre class='eq'>{_h(st.equation)}</pre>")
        parts.append(f"<pre class='eq'>{_h(st.substitution)}</pre>")
        parts.append("<table><thead><tr><th>Symbol</th><th>Description</th><th>Value</th><th>Units</th><th>Source</th></tr></thead><tbody>")
        for v in st.variables:
            parts.append(
                f"<tr><td>{_h(v.symbol)}</td><td>{_h(v.description)}</td><td>{_h(v.value)}</td>"
                f"<td>{_h(v.units)}</td><td>{_h(v.source)}</td></tr>"
            )
        parts.append("</tbody></table>")
        parts.append("<div class='small'>References: " + "; ".join(_h(r.ref) for r in st.references) + "</div>")

        if st.checks:
            parts.append("<table><thead><tr><th>Check</th><th>Demand</th><th>Capacity</th><th>Ratio</th><th>Status</th></tr></thead><tbody>")
            for c in st.checks:
                parts.append(
                    f"<tr><td>{_h(c.label)}</td><td>{num(c.demand)}</td><td>{num(c.capacity)}</td>"
                    f"<td>{_h(format_number(c.ratio, 3))}</td><td>{_tag(c.pass_fail)}</td></tr>"
                )
            parts.append("</tbody></table>")

        if st.warnings:
            parts.append("<ul>")
            for w in st.warnings:
                parts.append(f"<li class='small'><span class='tag warn'>WARN</span> {_h(w)}</li>")
            parts.append("</ul>")
        parts.append("</div></div>")

    # Results
    parts.append("<h2>Results</h2>")
    parts.append("<table><thead><tr><th>Output</th><th>Value</th></tr></thead><tbody>")
    for k, v in (results.get("outputs") or {}).items():
        parts.append(f"<tr><td>{_h(k)}</td><td>{num(v)}</td></tr>")
    parts.append("</tbody></table>")

    parts.append("<div class='meta'>")
    parts.append(f"Generated by {_h(meta.tool_id)} v{_h(meta.tool_version)} | Input hash: {_h(meta.input_hash)}")
    parts.append("</div>")
    parts.append("</div></body></html>")
    return "".join(parts)
