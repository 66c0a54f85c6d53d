#!/usr/bin/env python3
"""Run Alembic migrations programmatically; safe to run repeatedly."""
from __future__ import annotations

import sys
from pathlib import Path

from alembic import command
from alembic.config import Config

BACKEND_DIR = Path(__file__).resolve().parent.parent


def run_alembic_upgrade():
    cfg = Config(str(BACKEND_DIR / "alembic.ini"))
    cfg.set_main_option("script_location", str(BACKEND_DIR / "alembic"))
    try:
        command.upgrade(cfg, "head")
        print("Alembic upgrade completed.", file=sys.stdout)
    except Exception as exc:
        print("Alembic upgrade failed:", exc, file=sys.stderr)
        raise


def main():
    run_alembic_upgrade()


if __name__ == "__main__":
    main()
