"""
Bulk CSV Import Service

Loads the two semicolon-delimited source files with pandas and replaces the
whole dataset in one transaction (delete-all, then batched inserts).

Source conventions:
- NULL, -- and empty cells are null
- comma is the decimal separator ("78,5")
- cells missing from a short row read as empty
- rows without a usable code (and name, or quota) are skipped; this also
  drops header lines
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

import pandas as pd
from sqlalchemy import text
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

NULL_TOKENS = ["", "NULL", "--"]

INSTITUTION_FIELDS = ["kurum_kodu", "hastane_adi", "tip", "kurum_tipi", "sehir"]
PLACEMENT_FIELDS = [
    "source_id", "kurum_kodu", "kademe_kisa_adi", "kademe", "brans", "donem",
    "donem_tarihi", "kontenjan", "yerlesen", "karsilanamayan_kontenjan",
    "taban_puan", "tavan_puan", "taban_siralamasi",
]

PLACEMENT_TEXT = ["kademe_kisa_adi", "kademe", "brans", "donem", "donem_tarihi"]
PLACEMENT_INTEGERS = ["kurum_kodu", "kontenjan", "yerlesen", "karsilanamayan_kontenjan", "taban_siralamasi"]
PLACEMENT_DECIMALS = ["taban_puan", "tavan_puan"]

INSERT_INSTITUTION_SQL = """
    INSERT INTO hastaneler (kurum_kodu, hastane_adi, tip, kurum_tipi, sehir)
    VALUES (:kurum_kodu, :hastane_adi, :tip, :kurum_tipi, :sehir)
"""

INSERT_PLACEMENT_SQL = """
    INSERT INTO tus_puanlar (
        kurum_kodu, kademe_kisa_adi, kademe, brans, donem, donem_tarihi,
        kontenjan, yerlesen, karsilanamayan_kontenjan,
        taban_puan, tavan_puan, taban_siralamasi
    )
    VALUES (
        :kurum_kodu, :kademe_kisa_adi, :kademe, :brans, :donem, :donem_tarihi,
        :kontenjan, :yerlesen, :karsilanamayan_kontenjan,
        :taban_puan, :tavan_puan, :taban_siralamasi
    )
"""


def read_source(path: Union[str, Path], fields: List[str]) -> pd.DataFrame:
    """
    Read a headerless `;` file as text, keeping the first len(fields) columns.

    Cells are kept verbatim (no NA detection); null tokens are handled per
    column by to_number.
    """
    df = pd.read_csv(
        path,
        sep=";",
        header=None,
        usecols=list(range(len(fields))),
        dtype=str,
        keep_default_na=False,
        encoding="utf-8-sig",
        skip_blank_lines=True,
    )
    df.columns = fields
    return df.fillna("")


def to_number(column: pd.Series) -> pd.Series:
    """Parse a text column as numbers; null tokens and junk become NaN."""
    cleaned = column.str.strip()
    cleaned = cleaned.where(~cleaned.isin(NULL_TOKENS))
    return pd.to_numeric(cleaned.str.replace(",", ".", regex=False), errors="coerce")


def optional_int(value) -> Optional[int]:
    return None if pd.isna(value) else int(value)


def optional_float(value) -> Optional[float]:
    return None if pd.isna(value) else float(value)


def load_institutions(path: Union[str, Path]) -> List[dict]:
    df = read_source(path, INSTITUTION_FIELDS)
    df["kurum_kodu"] = to_number(df["kurum_kodu"])
    df = df[df["kurum_kodu"].notna() & (df["hastane_adi"].str.strip() != "")]

    rows = []
    for _, row in df.iterrows():
        rows.append({
            "kurum_kodu": int(row["kurum_kodu"]),
            "hastane_adi": row["hastane_adi"].strip(),
            "tip": row["tip"].strip(),
            "kurum_tipi": row["kurum_tipi"].strip(),
            "sehir": row["sehir"].strip(),
        })
    return rows


def load_placements(path: Union[str, Path]) -> List[dict]:
    df = read_source(path, PLACEMENT_FIELDS)
    for column in PLACEMENT_INTEGERS + PLACEMENT_DECIMALS:
        df[column] = to_number(df[column])
    # filled / unfilled may be null for a period that is not finalised yet
    df = df[df["kurum_kodu"].notna() & df["kontenjan"].notna()]

    rows = []
    for _, row in df.iterrows():
        record = {column: row[column].strip() for column in PLACEMENT_TEXT}
        record.update({column: optional_int(row[column]) for column in PLACEMENT_INTEGERS})
        record.update({column: optional_float(row[column]) for column in PLACEMENT_DECIMALS})
        rows.append(record)
    return rows


def _insert_batches(db: Session, sql: str, rows: List[dict], batch_size: int, label: str) -> None:
    batches = max(1, -(-len(rows) // batch_size))
    for i in range(0, len(rows), batch_size):
        db.execute(text(sql), rows[i:i + batch_size])
        logger.info("Inserted %s batch %d/%d", label, i // batch_size + 1, batches)


def replace_dataset(
    db: Session,
    institutions: List[dict],
    placements: List[dict],
    batch_size: int = 100,
) -> dict:
    """
    Delete both tables and insert the new rows in batches.

    Runs inside the caller's transaction; use with get_db_session() so a
    failure part-way rolls the old data back in place.
    """
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")

    logger.info("Clearing existing data")
    db.execute(text("DELETE FROM tus_puanlar"))
    db.execute(text("DELETE FROM hastaneler"))

    _insert_batches(db, INSERT_INSTITUTION_SQL, institutions, batch_size, "hastaneler")
    _insert_batches(db, INSERT_PLACEMENT_SQL, placements, batch_size, "tus_puanlar")

    logger.info("Imported %d institutions and %d placement records",
                len(institutions), len(placements))
    return {"institutions": len(institutions), "placements": len(placements)}
