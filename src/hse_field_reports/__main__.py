"""Module entrypoint for ``python -m hse_field_reports``."""

from __future__ import annotations

from hse_field_reports.main import cli_entrypoint

if __name__ == "__main__":
    raise SystemExit(cli_entrypoint())
