"""
Multi-Period Search Service

PURPOSE:
Compare one program (institution x branch x level) across the most recent
admission periods, one table row per program.

HOW IT WORKS:
1. Resolve the active period window (latest 4 periods)
2. Build the filter predicate from SearchParams
3. Enumerate distinct (institution, branch, level) groups matching it
4. Count and paginate the GROUPS, not the underlying rows
5. Fetch every period row for the page's groups in ONE batch query
6. Reshape into {period -> PeriodData}, null-filling missing periods

Numeric bounds (score / quota) describe current standing only: when any of
them is given, matching is pinned to the latest period. Without them no
period restriction is applied while matching.
"""

import logging
import math
from typing import Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tus_guide.core.config import get_settings
from tus_guide.core.errors import SearchUnavailableError
from tus_guide.db.database import fetch_all
from tus_guide.schemas.schemas import (
    PERIOD_SORT_PATTERN,
    MultiPeriodRow,
    MultiPeriodSearchResponse,
    PeriodData,
    SearchParams,
)
from tus_guide.services.periods import active_period_window

logger = logging.getLogger(__name__)

GroupKey = Tuple[int, str, str]

# Columns a group can be ordered by; keys are the public sortBy values
GROUP_SORT_COLUMNS = {
    "name": "g.name",
    "city": "g.city",
    "ownershipType": "g.ownership_type",
    "institutionKind": "g.institution_kind",
    "branch": "g.branch",
    "level": "g.level",
}

PERIOD_SORT_COLUMNS = {
    "quota": "kontenjan",
    "filled": "yerlesen",
    "minScore": "taban_puan",
    "minScoreRank": "taban_siralamasi",
}

DEFAULT_ORDER = "g.name ASC, g.branch ASC, g.level ASC, g.institution_code ASC"

GROUPS_SQL = """
    SELECT h.kurum_kodu AS institution_code,
           h.hastane_adi AS name,
           h.sehir AS city,
           h.tip AS ownership_type,
           h.kurum_tipi AS institution_kind,
           t.brans AS branch,
           t.kademe AS level,
           MIN(t.kademe_kisa_adi) AS level_short_name
    FROM tus_puanlar t
    JOIN hastaneler h ON h.kurum_kodu = t.kurum_kodu
    {where}
    GROUP BY h.kurum_kodu, h.hastane_adi, h.sehir, h.tip, h.kurum_tipi, t.brans, t.kademe
"""


def escape_like(value: str) -> str:
    """Make % and _ in user text match literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


# Turkish dotted capital and dotless small i fold to plain "i" on both sides,
# so "istanbul", "İstanbul" and "ISTANBUL" all match each other
I_VARIANTS = ("İ", "ı")


def fold_text(value: str) -> str:
    for variant in I_VARIANTS:
        value = value.replace(variant, "i")
    return value.lower()


def folded_column(column: str) -> str:
    """SQL counterpart of fold_text for a column."""
    expr = column
    for variant in I_VARIANTS:
        expr = f"REPLACE({expr}, '{variant}', 'i')"
    return f"LOWER({expr})"


def _in_clause(column: str, prefix: str, values: List[str], params: dict) -> str:
    names = []
    for i, value in enumerate(values):
        key = f"{prefix}_{i}"
        params[key] = value
        names.append(f":{key}")
    return f"{column} IN ({', '.join(names)})"


def build_filter(params: SearchParams, latest_period: Optional[str]) -> Tuple[str, dict]:
    """
    Translate SearchParams into a WHERE clause over `t` (tus_puanlar) joined
    with `h` (hastaneler). Returns ("", {}) when nothing filters.
    """
    conditions: List[str] = []
    bind: dict = {}

    # Text search: institution name OR branch
    if params.text:
        bind["text"] = f"%{escape_like(fold_text(params.text))}%"
        conditions.append(
            f"({folded_column('h.hastane_adi')} LIKE :text ESCAPE '\\' "
            f"OR {folded_column('t.brans')} LIKE :text ESCAPE '\\')"
        )

    # Categorical filters, ANDed across dimensions
    if params.city:
        conditions.append(_in_clause("h.sehir", "city", params.city, bind))
    if params.ownership_type:
        conditions.append(_in_clause("h.tip", "ownership_type", params.ownership_type, bind))
    if params.institution_kind:
        conditions.append(_in_clause("h.kurum_tipi", "institution_kind", params.institution_kind, bind))
    if params.branch:
        conditions.append(_in_clause("t.brans", "branch", params.branch, bind))

    # Numeric bounds only apply to the latest period
    if params.has_numeric_bounds:
        if latest_period is None:
            conditions.append("1 = 0")
        else:
            conditions.append("t.donem = :latest_period")
            bind["latest_period"] = latest_period
        if params.min_score_floor is not None:
            conditions.append("t.taban_puan >= :min_score_floor")
            bind["min_score_floor"] = params.min_score_floor
        if params.min_score_ceiling is not None:
            conditions.append("t.taban_puan <= :min_score_ceiling")
            bind["min_score_ceiling"] = params.min_score_ceiling
        if params.quota_floor is not None:
            conditions.append("t.kontenjan >= :quota_floor")
            bind["quota_floor"] = params.quota_floor
        if params.quota_ceiling is not None:
            conditions.append("t.kontenjan <= :quota_ceiling")
            bind["quota_ceiling"] = params.quota_ceiling

    where = "WHERE " + " AND ".join(conditions) if conditions else ""
    return where, bind


def build_order(params: SearchParams, bind: dict) -> Tuple[str, str]:
    """
    Returns (extra join, ORDER BY body) for the page query.

    Per-period sorts join the chosen period's value and keep groups without
    one at the end whatever the direction. The default order always follows
    as a tie-break.
    """
    direction = "DESC" if params.sort_order == "desc" else "ASC"
    if not params.sort_by:
        return "", DEFAULT_ORDER

    if params.sort_by in GROUP_SORT_COLUMNS:
        return "", f"{GROUP_SORT_COLUMNS[params.sort_by]} {direction}, {DEFAULT_ORDER}"

    match = PERIOD_SORT_PATTERN.match(params.sort_by)
    column = PERIOD_SORT_COLUMNS[match.group("metric")]
    bind["sort_period"] = match.group("period")
    join = f"""
        LEFT JOIN (
            SELECT kurum_kodu, brans, kademe, MIN({column}) AS sort_value
            FROM tus_puanlar
            WHERE donem = :sort_period
            GROUP BY kurum_kodu, brans, kademe
        ) s ON s.kurum_kodu = g.institution_code AND s.brans = g.branch AND s.kademe = g.level
    """
    order = (
        f"CASE WHEN s.sort_value IS NULL THEN 1 ELSE 0 END ASC, "
        f"s.sort_value {direction}, {DEFAULT_ORDER}"
    )
    return join, order


def empty_period() -> PeriodData:
    return PeriodData(quota=None, filled=None, min_score=None, min_score_rank=None)


class MultiPeriodSearchService:
    """
    Runs one multi-period search against an open session.

    A request issues a fixed number of reads: period window, group count,
    group page and one batch fetch of period data.
    """

    def __init__(self, db: Session, window_size: Optional[int] = None):
        self.db = db
        self.window_size = window_size or get_settings().period_window_size

    def search(self, params: SearchParams) -> MultiPeriodSearchResponse:
        try:
            periods = active_period_window(self.db, self.window_size)
            latest = periods[0] if periods else None

            where, bind = build_filter(params, latest)
            total = self.count_groups(where, bind)
            groups = self.fetch_group_page(where, bind, params)
            period_data = self.fetch_period_data(groups, periods)
        except SQLAlchemyError as exc:
            logger.exception("Multi-period search failed (page=%s)", params.page)
            raise SearchUnavailableError("search unavailable") from exc

        rows = [self._build_row(group, periods, period_data) for group in groups]
        total_pages = math.ceil(total / params.page_size) if total else 0

        logger.info(
            "Multi-period search: %d groups, %d on page %d, %d periods",
            total, len(rows), params.page, len(periods),
        )
        return MultiPeriodSearchResponse(
            rows=rows,
            periods=periods,
            total=total,
            page=params.page,
            page_size=params.page_size,
            total_pages=total_pages,
        )

    def count_groups(self, where: str, bind: dict) -> int:
        rows = fetch_all(
            self.db,
            f"SELECT COUNT(*) AS total FROM ({GROUPS_SQL.format(where=where)}) g",
            bind,
        )
        return int(rows[0]["total"])

    def fetch_group_page(self, where: str, bind: dict, params: SearchParams) -> List[dict]:
        page_bind = dict(bind, limit=params.page_size, offset=params.offset)
        join, order = build_order(params, page_bind)
        sql = f"""
            SELECT g.* FROM ({GROUPS_SQL.format(where=where)}) g
            {join}
            ORDER BY {order}
            LIMIT :limit OFFSET :offset
        """
        return fetch_all(self.db, sql, page_bind)

    def fetch_period_data(
        self, groups: List[dict], periods: List[str]
    ) -> Dict[GroupKey, Dict[str, dict]]:
        """
        Fetch all rows for the given groups within the window in a single
        query (OR of per-group equality constraints).

        When a group has several rows for one period, the first imported one
        (lowest id) is kept.
        """
        if not groups or not periods:
            return {}

        bind: dict = {}
        group_conditions = []
        for i, group in enumerate(groups):
            bind[f"g{i}_code"] = group["institution_code"]
            bind[f"g{i}_branch"] = group["branch"]
            bind[f"g{i}_level"] = group["level"]
            group_conditions.append(
                f"(t.kurum_kodu = :g{i}_code AND t.brans = :g{i}_branch AND t.kademe = :g{i}_level)"
            )
        period_filter = _in_clause("t.donem", "period", periods, bind)

        rows = fetch_all(self.db, f"""
            SELECT t.kurum_kodu, t.brans, t.kademe, t.donem,
                   t.kontenjan, t.yerlesen, t.taban_puan, t.taban_siralamasi
            FROM tus_puanlar t
            WHERE ({' OR '.join(group_conditions)})
              AND {period_filter}
            ORDER BY t.id
        """, bind)

        by_group: Dict[GroupKey, Dict[str, dict]] = {}
        for row in rows:
            key = (row["kurum_kodu"], row["brans"], row["kademe"])
            by_group.setdefault(key, {}).setdefault(row["donem"], row)
        return by_group

    @staticmethod
    def _build_row(
        group: dict, periods: List[str], period_data: Dict[GroupKey, Dict[str, dict]]
    ) -> MultiPeriodRow:
        key = (group["institution_code"], group["branch"], group["level"])
        found = period_data.get(key, {})

        cells: Dict[str, PeriodData] = {}
        for period in periods:
            record = found.get(period)
            if record is None:
                cells[period] = empty_period()
            else:
                cells[period] = PeriodData(
                    quota=record["kontenjan"],
                    filled=record["yerlesen"],
                    min_score=record["taban_puan"],
                    min_score_rank=record["taban_siralamasi"],
                )

        return MultiPeriodRow(
            id=f"{group['institution_code']}-{group['branch']}-{group['level']}",
            institution_code=group["institution_code"],
            name=group["name"],
            city=group["city"],
            ownership_type=group["ownership_type"],
            institution_kind=group["institution_kind"],
            branch=group["branch"],
            level=group["level"],
            level_short_name=group["level_short_name"],
            periods=cells,
        )


def search_multi_period(db: Session, params: SearchParams) -> MultiPeriodSearchResponse:
    return MultiPeriodSearchService(db).search(params)
