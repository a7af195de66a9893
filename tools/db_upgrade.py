#!/usr/bin/env python3
"""Run Alembic migrations for the Woodland CMS database.

Usage: db_upgrade.py [REVISION] [--sql]

REVISION defaults to ``head``. ``--sql`` prints the DDL instead of running it.
"""

from __future__ import annotations

import sys
from pathlib import Path

from alembic.config import Config

from alembic import command

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def alembic_config() -> Config:
    cfg = Config(str(PROJECT_ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    return cfg


def upgrade(revision: str = "head", sql: bool = False) -> None:
    command.upgrade(alembic_config(), revision, sql=sql)


def main(argv: list[str]) -> None:
    sql = "--sql" in argv
    positional = [arg for arg in argv if not arg.startswith("--")]
    upgrade(positional[0] if positional else "head", sql=sql)


if __name__ == "__main__":
    main(sys.argv[1:])
