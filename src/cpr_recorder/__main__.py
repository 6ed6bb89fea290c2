"""Entry point for ``python -m cpr_recorder``."""

from cpr_recorder.cli import cli

if __name__ == "__main__":
    cli(prog_name="cpr-recorder")
