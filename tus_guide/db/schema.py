"""
Table definitions.

Queries are written as raw SQL elsewhere; these definitions exist so the
schema can be created the same way on SQLite and PostgreSQL.
"""

from sqlalchemy import (
    Column, Float, Index, Integer, MetaData, String, Table
)
from sqlalchemy.engine import Engine

metadata = MetaData()

# Institutions (one row per hospital / medical school)
hastaneler = Table(
    "hastaneler",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("kurum_kodu", Integer, nullable=False, unique=True),
    Column("hastane_adi", String, nullable=False),
    Column("tip", String, nullable=False),          # DEVLET, ÖZEL
    Column("kurum_tipi", String, nullable=False),   # Tıp Fakültesi, Hastane
    Column("sehir", String, nullable=False),
    Index("idx_hastaneler_sehir", "sehir"),
    Index("idx_hastaneler_tip", "tip"),
    Index("idx_hastaneler_kurum_tipi", "kurum_tipi"),
)

# Placement outcomes, one row per (institution, branch, level, period)
tus_puanlar = Table(
    "tus_puanlar",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("kurum_kodu", Integer, nullable=False),
    Column("kademe_kisa_adi", String, nullable=False),
    Column("kademe", String, nullable=False),
    Column("brans", String, nullable=False),
    Column("donem", String, nullable=False),        # 2024/1, 2024/2, ...
    Column("donem_tarihi", String, nullable=False),
    Column("kontenjan", Integer, nullable=False),
    Column("yerlesen", Integer, nullable=True),     # null until the period is finalised
    Column("karsilanamayan_kontenjan", Integer, nullable=True),
    Column("taban_puan", Float, nullable=True),     # '--' in source data
    Column("tavan_puan", Float, nullable=True),
    Column("taban_siralamasi", Integer, nullable=True),
    Index("idx_tus_puanlar_kurum_kodu", "kurum_kodu"),
    Index("idx_tus_puanlar_brans", "brans"),
    Index("idx_tus_puanlar_donem", "donem"),
    Index("idx_tus_puanlar_taban_puan", "taban_puan"),
    Index("idx_tus_puanlar_kontenjan", "kontenjan"),
)


def init_schema(engine: Engine) -> None:
    """Create tables and indexes that do not exist yet."""
    metadata.create_all(engine)
