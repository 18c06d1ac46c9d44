from __future__ import annotations

from functools import cache
from pathlib import Path


SQL_DIR = Path(__file__).with_name("sql")
SCHEMA_UP = "bootstrap_schema.sql"
SCHEMA_DOWN = "drop_schema.sql"


@cache
def load_sql(name: str) -> str:
    return (SQL_DIR / name).read_text(encoding="utf-8").strip()
