"""
CPR Recorder: timestamped event log for resuscitation events.

Records compressions, drugs, shocks and rhythm checks against a running arrest
clock, and exports the log as CSV, JSON or a printable summary.
"""

from typing import Any

__all__ = ["Recorder", "cli"]


def __getattr__(name: str) -> Any:
    """Lazy load the public entry points to keep imports light."""
    if name == "Recorder":
        from cpr_recorder.recorder import Recorder

        return Recorder
    if name == "cli":
        from cpr_recorder.cli import cli

        return cli
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
