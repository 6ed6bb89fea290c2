"""
Export formatters for a recorded session.

Produces the CSV event table, the JSON ``{meta, session}`` aggregate and a
print-friendly HTML summary rendered from a Jinja2 template.
"""

import csv
import io
import json
import logging
import webbrowser

from datetime import UTC, datetime
from pathlib import Path

from jinja2 import FileSystemLoader, select_autoescape
from jinja2.sandbox import SandboxedEnvironment

from cpr_recorder.constants import CSV_HEADER, EXPORT_FILE_PREFIX, PRINT_TITLE
from cpr_recorder.models import Event, PatientMeta, Session
from cpr_recorder.summary import summarize
from cpr_recorder.utils.formatting import (
    format_clock,
    format_details,
    format_time_of_day,
)

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"
PRINT_TEMPLATE = "print_summary.html.jinja2"


def event_row(event: Event) -> list[str]:
    """Clock, T+, type, label and details cells for one event."""
    return [
        format_time_of_day(event.timestamp),
        format_clock(event.relative_offset_ms),
        event.category.value,
        event.label,
        format_details(event.details),
    ]


def to_csv(session: Session) -> str:
    """
    Render the event log as CSV.

    Every field is double-quoted with embedded quotes doubled; rows are in
    insertion order and separated by newlines.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    writer.writerows(event_row(event) for event in session.events)
    return buffer.getvalue().removesuffix("\n")


def to_json(meta: PatientMeta, session: Session) -> str:
    """Serialize patient meta and session verbatim as ``{meta, session}``."""
    payload = {
        "meta": meta.model_dump(mode="json"),
        "session": session.model_dump(mode="json"),
    }
    return json.dumps(payload, indent=2, ensure_ascii=False)


def _template_env() -> SandboxedEnvironment:
    return SandboxedEnvironment(
        loader=FileSystemLoader(TEMPLATES_DIR),
        autoescape=select_autoescape(
            enabled_extensions=("html", "jinja2"),
            default_for_string=True,
        ),
        trim_blocks=True,
        lstrip_blocks=True,
    )


def to_print_html(
    meta: PatientMeta, session: Session, now: int, auto_print: bool = True
) -> str:
    """
    Render the printable summary document.

    Args:
        meta: Patient identification fields
        session: Session to summarize
        now: Current Unix time in milliseconds, used for timers and the
            generation stamp
        auto_print: Embed a script that opens the print dialog on load

    Returns:
        Complete HTML document
    """
    snapshot = summarize(session, now)
    template = _template_env().get_template(PRINT_TEMPLATE)
    return template.render(
        title=PRINT_TITLE,
        generated=datetime.fromtimestamp(now / 1000).strftime("%Y-%m-%d %H:%M:%S"),
        meta=meta,
        snapshot=snapshot,
        arrest_duration=format_clock(snapshot.elapsed_arrest_ms),
        cpr_time=format_clock(snapshot.compression_total_ms),
        columns=CSV_HEADER,
        rows=[event_row(event) for event in session.events],
        auto_print=auto_print,
    )


def export_filename(extension: str, now: int) -> str:
    """
    Build the export filename for a given instant.

    Returns:
        e.g. "cpr_2024-01-15T22-20-15.000Z.csv"
    """
    stamp = (
        datetime.fromtimestamp(now / 1000, UTC)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
        .replace(":", "-")
    )
    return f"{EXPORT_FILE_PREFIX}_{stamp}.{extension.lstrip('.')}"


def write_export(path: Path, content: str) -> Path:
    """Write export content as UTF-8, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    logger.info(f"Wrote export to {path}")
    return path


def open_print_view(html: str, path: Path, open_browser: bool = True) -> Path:
    """
    Write the print summary and open it in a new browser tab.

    Returns:
        Path of the written document
    """
    write_export(path, html)
    if open_browser:
        try:
            webbrowser.open_new_tab(path.resolve().as_uri())
        except webbrowser.Error as e:
            logger.warning(f"Could not open browser for {path}: {e}")
    return path
