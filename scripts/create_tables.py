"""Create database tables in the configured database.

Reads DATABASE_URL from .env / environment and creates all registered ORM tables.

Usage:
  python scripts/create_tables.py
"""

from __future__ import annotations

import pathlib
import sys

from dotenv import load_dotenv

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from club_lottery import models  # noqa: E402,F401
from club_lottery.config import resolve_database_url  # noqa: E402
from club_lottery.db import create_app_engine  # noqa: E402
from club_lottery.models.base import Base  # noqa: E402


def main() -> int:
    """Create all ORM tables (including the partial unique index on live draw dates)."""

    load_dotenv()
    env_local = PROJECT_ROOT / ".env.local"
    if env_local.exists():
        load_dotenv(dotenv_path=env_local, override=True)

    engine = create_app_engine(resolve_database_url())
    Base.metadata.create_all(bind=engine)

    print("Tables created (or already exist).")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
