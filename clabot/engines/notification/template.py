"""Email template rendering for the run report."""

from __future__ import annotations

from clabot.engines.reconciler.models import RunSummary

_STATUS_COLORS: dict[str, str] = {
    "ok": "#388e3c",
    "failed": "#d32f2f",
}


def render_run_report(
    repository: str,
    summary: RunSummary | None,
    trace_text: str,
    error: str | None = None,
) -> tuple[str, str, str]:
    """Return (subject, html_body, text_body) for a run report email.

    *summary* is None when the run aborted before producing one; *error*
    then carries the failure message.
    """
    status = "failed" if error else "ok"
    if summary is not None and error is None:
        subject = (
            f"[clabot] {repository}: {summary.newly_signed} signed, "
            f"{summary.still_missing} missing"
        )
    else:
        subject = f"[clabot] {repository}: run FAILED"
    if summary is not None and summary.dry_run:
        subject += " (dry run)"

    color = _STATUS_COLORS[status]
    td_hdr = 'style="padding: 6px 12px; font-weight: bold; border-bottom: 1px solid #e0e0e0;"'
    td_val = 'style="padding: 6px 12px; border-bottom: 1px solid #e0e0e0;"'
    body_style = (
        "font-family: -apple-system, BlinkMacSystemFont,"
        " 'Segoe UI', Roboto, sans-serif;"
        " color: #212121; max-width: 720px; margin: 0 auto;"
    )

    rows = [("Repository", _esc(repository))]
    if summary is not None:
        rows += [
            ("Started", _esc(summary.started_at.isoformat())),
            ("Elapsed", f"{summary.elapsed:.2f}s"),
            ("Newly signed", f"{summary.newly_signed} {_format_prs(summary.signed)}"),
            ("Still missing", f"{summary.still_missing} {_format_prs(summary.missing)}"),
        ]
    if error:
        rows.append(("Error", f'<span style="color: {color};">{_esc(error)}</span>'))
    table_rows = "\n".join(
        f"  <tr><td {td_hdr}>{name}</td>\n      <td {td_val}>{value}</td></tr>"
        for name, value in rows
    )

    html_body = f"""\
<html>
<body style="{body_style}">
<h2 style="color: {color};">CLA reconciliation {status.upper()}</h2>
<table style="border-collapse: collapse; width: 100%; margin-bottom: 16px;">
{table_rows}
</table>

<h3>Run trace</h3>
<pre style="font-size: 12px; background: #f5f5f5; padding: 12px;">{_esc(trace_text) or "(empty)"}</pre>

<hr style="border: none; border-top: 1px solid #e0e0e0; margin: 24px 0;">
<p style="color: #757575; font-size: 12px;">This is an automated report from clabot.</p>
</body>
</html>"""

    text_lines = [subject, ""]
    if summary is not None:
        text_lines += [
            f"Newly signed: {summary.newly_signed} {_plain_prs(summary.signed)}",
            f"Still missing: {summary.still_missing} {_plain_prs(summary.missing)}",
            f"Elapsed: {summary.elapsed:.2f}s",
        ]
    if error:
        text_lines.append(f"Error: {error}")
    text_lines += ["", "Run trace:", trace_text]
    return subject, html_body, "\n".join(text_lines)


def _esc(text: str) -> str:
    """Minimal HTML escaping."""
    return (
        text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;").replace('"', "&quot;")
    )


def _format_prs(numbers: list[int]) -> str:
    if not numbers:
        return ""
    return "(" + ", ".join(f"<code>#{n}</code>" for n in numbers) + ")"


def _plain_prs(numbers: list[int]) -> str:
    if not numbers:
        return ""
    return "(" + ", ".join(f"#{n}" for n in numbers) + ")"
