"""
Command-line interface for the CPR recorder.

One command per bedside action, plus status, the event log, exports,
patient details and configuration.
"""

import logging
import sys

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version
from pathlib import Path

import click

from cpr_recorder import ledger
from cpr_recorder.config import (
    get_config_path,
    get_database_path,
    get_default_energy,
    get_default_location,
    load_config,
    set_default_energy,
    unset_default_energy,
)
from cpr_recorder.constants import (
    AIRWAY_ACTIONS,
    DEFAULT_LOCATION,
    DEFAULT_RHYTHMS,
    DEFAULT_WATCH_INTERVAL_SECONDS,
    MIME_CSV,
    MIME_JSON,
    SHOCK_LEVELS,
)
from cpr_recorder.database.session import cleanup_database
from cpr_recorder.export import (
    event_row,
    export_filename,
    open_print_view,
    to_csv,
    to_json,
    to_print_html,
    write_export,
)
from cpr_recorder.logging_config import setup_logging
from cpr_recorder.models import Event, PatientMeta
from cpr_recorder.recorder import Recorder
from cpr_recorder.storage import KeyValueStore
from cpr_recorder.ticker import CompressionTicker
from cpr_recorder.utils.formatting import format_clock, format_details

logger = logging.getLogger(__name__)

try:
    __version__ = get_version("cpr-recorder")
except PackageNotFoundError:
    __version__ = "dev"

RESET_PROMPT = "Reset this CPR record? This cannot be undone."

META_OPTIONS = {
    "patient_id": "Patient ID",
    "age": "Age",
    "sex": "Sex",
    "weight_kg": "Weight (kg)",
    "location": "Location",
    "operator": "Recorder",
}


def open_recorder(ctx: click.Context) -> Recorder:
    """Open the record stored in the database selected for this invocation."""
    database_path = ctx.obj.get("db") or get_database_path()
    store = KeyValueStore(str(Path(database_path).expanduser()))
    location = get_default_location() or DEFAULT_LOCATION
    return Recorder.open(store, default_meta=lambda: PatientMeta(location=location))


def echo_event(event: Event) -> None:
    line = (
        f"✓ T+{format_clock(event.relative_offset_ms)}  "
        f"{event.category.value}: {event.label}"
    )
    details = format_details(event.details, separator=": ")
    if details:
        line += f"  ({details})"
    click.echo(line)


def echo_status(recorder: Recorder) -> None:
    snapshot = recorder.snapshot()
    state = "Running" if snapshot.running else "Paused"
    compressions = "on" if snapshot.compressions_running else "off"

    click.echo(f"Arrest clock: {state}    Compressions: {compressions}")
    click.echo("-" * 44)
    for label, value in snapshot.format_lines():
        click.echo(f"{label:<20} {value:>12}")
    click.echo("-" * 44)
    click.echo(f"Events logged: {snapshot.event_count}")


@click.group()
@click.version_option(__version__, prog_name="cpr-recorder")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option(
    "--db",
    type=click.Path(dir_okay=False),
    help="Database path (default: ~/.cpr_recorder/cpr_recorder.db)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, db: str | None) -> None:
    """CPR Recorder: timestamped resuscitation event log"""
    setup_logging(
        verbose=verbose,
        console_format="%(levelname)s: %(message)s",
        console_level="WARNING",
    )
    ctx.ensure_object(dict)
    ctx.obj["db"] = db
    ctx.call_on_close(cleanup_database)


# ============================================================================
# Session lifecycle
# ============================================================================


@cli.command()
@click.pass_context
def start(ctx: click.Context) -> None:
    """Start or resume the arrest clock."""
    recorder = open_recorder(ctx)
    if ledger.is_running(recorder.session):
        click.echo("Arrest clock is already running")
        return
    recorder.start()
    click.echo("✓ Arrest clock started")


@cli.command()
@click.pass_context
def pause(ctx: click.Context) -> None:
    """Pause the arrest clock. Events are kept."""
    recorder = open_recorder(ctx)
    recorder.stop()
    click.echo("✓ Arrest clock paused")


@cli.command()
@click.option("--force", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def reset(ctx: click.Context, force: bool) -> None:
    """Clear the current record. Patient details are kept."""
    recorder = open_recorder(ctx)
    if not force and not click.confirm(RESET_PROMPT):
        click.echo("Reset cancelled")
        return
    count = len(recorder.session.events)
    recorder.reset()
    click.echo(f"✓ Record reset ({count} event(s) cleared)")


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show live timers and counts."""
    recorder = open_recorder(ctx)
    recorder.tick()
    echo_status(recorder)


@cli.command()
@click.option(
    "--interval",
    type=float,
    default=DEFAULT_WATCH_INTERVAL_SECONDS,
    show_default=True,
    help="Seconds between refreshes",
)
@click.option("--count", type=int, help="Stop after N refreshes")
@click.pass_context
def watch(ctx: click.Context, interval: float, count: int | None) -> None:
    """Refresh live timers until interrupted (Ctrl-C)."""
    recorder = open_recorder(ctx)

    def refresh() -> None:
        recorder.tick()
        if count is None:
            click.clear()
        echo_status(recorder)

    try:
        ticker = CompressionTicker(refresh, interval_seconds=interval)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--interval") from e

    try:
        ticker.run(max_iterations=count)
    except KeyboardInterrupt:
        ticker.stop()
        click.echo("\nStopped watching")


# ============================================================================
# One-tap actions
# ============================================================================


@cli.command()
@click.pass_context
def compressions(ctx: click.Context) -> None:
    """Start or stop chest compressions."""
    recorder = open_recorder(ctx)
    echo_event(recorder.toggle_compressions())
    click.echo(f"  CPR time: {format_clock(recorder.compression_total_ms())}")


@cli.command()
@click.option(
    "--energy",
    "-e",
    type=float,
    help=f"Energy in joules (common levels: {', '.join(map(str, SHOCK_LEVELS))})",
)
@click.pass_context
def shock(ctx: click.Context, energy: float | None) -> None:
    """Log a defibrillation."""
    recorder = open_recorder(ctx)
    if energy is None:
        energy = get_default_energy()
    echo_event(recorder.record_shock(energy))


@cli.command()
@click.pass_context
def epi(ctx: click.Context) -> None:
    """Log epinephrine 1 mg IV/IO."""
    recorder = open_recorder(ctx)
    echo_event(recorder.record_epinephrine())


@cli.command()
@click.argument(
    "code",
    type=click.Choice(
        [d.code for d in ledger.list_drugs(include_epinephrine=False)],
        case_sensitive=False,
    ),
)
@click.pass_context
def drug(ctx: click.Context, code: str) -> None:
    """Log a catalogue medication (use 'epi' for epinephrine)."""
    recorder = open_recorder(ctx)
    echo_event(recorder.record_drug(ledger.get_drug(code)))


@cli.command()
@click.argument("name")
@click.pass_context
def rhythm(ctx: click.Context, name: str) -> None:
    """Log a rhythm (e.g. VF/VT, PEA, Asystole, ROSC, Unknown)."""
    recorder = open_recorder(ctx)
    echo_event(recorder.record_rhythm(name))


@cli.command()
@click.argument("action")
@click.pass_context
def airway(ctx: click.Context, action: str) -> None:
    """Log an airway or procedure action (e.g. BVM, Supraglottic)."""
    recorder = open_recorder(ctx)
    echo_event(recorder.record_airway(action))


@cli.command()
@click.pass_context
def intubation(ctx: click.Context) -> None:
    """Log endotracheal tube placement."""
    recorder = open_recorder(ctx)
    echo_event(recorder.record_intubation())


@cli.command("pulse-check")
@click.pass_context
def pulse_check(ctx: click.Context) -> None:
    """Log a pulse check."""
    recorder = open_recorder(ctx)
    echo_event(recorder.record_pulse_check())


@cli.command("rhythm-check")
@click.pass_context
def rhythm_check(ctx: click.Context) -> None:
    """Log a rhythm check."""
    recorder = open_recorder(ctx)
    echo_event(recorder.record_rhythm_check())


@cli.command()
@click.pass_context
def rosc(ctx: click.Context) -> None:
    """Log return of spontaneous circulation."""
    recorder = open_recorder(ctx)
    for event in recorder.record_rosc():
        echo_event(event)


@cli.command()
@click.argument("text", nargs=-1, required=True)
@click.pass_context
def note(ctx: click.Context, text: tuple[str, ...]) -> None:
    """Log a free-text note."""
    recorder = open_recorder(ctx)
    event = recorder.add_note(" ".join(text))
    if event is None:
        raise click.BadParameter("note text is empty", param_hint="TEXT")
    echo_event(event)


@cli.command("catalogue")
def catalogue() -> None:
    """List the one-tap rhythms, drugs, shock levels and airway actions."""
    click.echo("Rhythms:  " + ", ".join(DEFAULT_RHYTHMS))
    click.echo("Shocks:   " + ", ".join(f"{j} J" for j in SHOCK_LEVELS))
    click.echo("Airway:   " + ", ".join(AIRWAY_ACTIONS))
    click.echo("Drugs:")
    for entry in ledger.list_drugs():
        dose = f" [{entry.default_dose}]" if entry.default_dose else ""
        click.echo(f"  {entry.code:<8} {entry.label}{dose}")


# ============================================================================
# Event log
# ============================================================================


@cli.command("log")
@click.pass_context
def show_log(ctx: click.Context) -> None:
    """Show the event log."""
    recorder = open_recorder(ctx)
    events = recorder.session.events
    if not events:
        click.echo("No events logged")
        return

    click.echo(f"\n{'Clock':<10} {'T+':<8} {'Type':<11} {'Label':<28} Details")
    click.echo("=" * 80)
    for event in events:
        clock, offset, category, label, details = event_row(event)
        click.echo(f"{clock:<10} {offset:<8} {category:<11} {label:<28} {details}")
    click.echo(f"\n{len(events)} event(s)")


# ============================================================================
# Patient details
# ============================================================================


@cli.group()
def meta() -> None:
    """Patient and context details."""
    pass


@meta.command("show")
@click.pass_context
def meta_show(ctx: click.Context) -> None:
    """Show patient details."""
    recorder = open_recorder(ctx)
    for field, label in META_OPTIONS.items():
        click.echo(f"{label + ':':<13} {getattr(recorder.meta, field)}")


@meta.command("set")
@click.option("--patient-id", help="Patient ID")
@click.option("--age", help="Age")
@click.option("--sex", help="Sex")
@click.option("--weight", "weight_kg", help="Weight (kg)")
@click.option("--location", help="Location")
@click.option("--operator", help="Recorder name")
@click.pass_context
def meta_set(ctx: click.Context, **fields: str | None) -> None:
    """Update patient details. Only the given fields change."""
    updates = {key: value for key, value in fields.items() if value is not None}
    if not updates:
        raise click.UsageError("Give at least one field to set")

    recorder = open_recorder(ctx)
    recorder.update_meta(**updates)
    for key in updates:
        click.echo(f"✓ {META_OPTIONS[key]}: {updates[key]}")


# ============================================================================
# Export
# ============================================================================


@cli.group()
def export() -> None:
    """Export the record as CSV, JSON or a printable summary."""
    pass


def _write_file_export(
    ctx: click.Context, extension: str, mime: str, output: str | None
) -> None:
    recorder = open_recorder(ctx)
    recorder.tick()
    if extension == "csv":
        content = to_csv(recorder.session)
    else:
        content = to_json(recorder.meta, recorder.session)

    path = Path(output) if output else Path(export_filename(extension, recorder.clock()))
    try:
        write_export(path, content)
    except OSError as e:
        raise click.ClickException(f"Cannot write {path}: {e}") from e
    click.echo(f"✓ Exported {len(recorder.session.events)} event(s) to {path} ({mime})")


@export.command("csv")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Output file")
@click.pass_context
def export_csv(ctx: click.Context, output: str | None) -> None:
    """Export the event log as CSV."""
    _write_file_export(ctx, "csv", MIME_CSV, output)


@export.command("json")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Output file")
@click.pass_context
def export_json(ctx: click.Context, output: str | None) -> None:
    """Export patient details and the full session as JSON."""
    _write_file_export(ctx, "json", MIME_JSON, output)


@export.command("print")
@click.option(
    "--output-dir",
    type=click.Path(file_okay=False),
    default=".",
    show_default=True,
    help="Directory for the HTML summary",
)
@click.option("--no-open", is_flag=True, help="Write the file without opening a browser")
@click.pass_context
def export_print(ctx: click.Context, output_dir: str, no_open: bool) -> None:
    """Open a printable summary in the browser."""
    recorder = open_recorder(ctx)
    recorder.tick()
    now = recorder.clock()
    html = to_print_html(recorder.meta, recorder.session, now)
    path = Path(output_dir) / export_filename("html", now)
    try:
        open_print_view(html, path, open_browser=not no_open)
    except OSError as e:
        raise click.ClickException(f"Cannot write {path}: {e}") from e
    click.echo(f"✓ Print summary: {path}")


# ============================================================================
# Configuration
# ============================================================================


@cli.group()
def config() -> None:
    """Configuration management commands."""
    pass


@config.command("set-default-energy")
@click.argument("joules", type=float)
def set_default_energy_cmd(joules: float) -> None:
    """Set the energy used by 'shock' when --energy is omitted."""
    value: int | float = int(joules) if joules.is_integer() else joules
    try:
        set_default_energy(value)
    except PermissionError as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)
    click.echo(f"✓ Default energy: {value} J")
    click.echo(f"  Config: {get_config_path()}")


@config.command("unset-default-energy")
def unset_default_energy_cmd() -> None:
    """Remove the default energy setting."""
    if "default_energy" in load_config().get("recorder", {}):
        unset_default_energy()
        click.echo("✓ Removed default energy")
    else:
        click.echo("No default energy was configured.")


@config.command("show")
def show_config_cmd() -> None:
    """Show all configuration settings."""
    config_path = get_config_path()
    if not config_path.exists():
        click.echo(f"No config file: {config_path}")
        return

    click.echo(f"Config file: {config_path}\n")
    config_data = load_config()
    if not config_data:
        click.echo("Configuration is empty.")
        return

    click.echo("Settings:")
    for section, values in config_data.items():
        if not isinstance(values, dict):
            click.echo(f"  {section} = {values!r}")
            continue
        click.echo(f"  [{section}]")
        for key, value in values.items():
            click.echo(f"    {key} = {value!r}")
