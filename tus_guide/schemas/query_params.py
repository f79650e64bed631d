"""
Query string -> SearchParams.

Every accepted key is listed in QUERY_FIELDS; anything else is ignored.
Coercion rules:
- list fields collect every occurrence (``city=A&city=B`` or ``city[]=A``),
  blank values are dropped and duplicates removed, first occurrence kept
- single-valued fields keep the last occurrence
- ``""`` and ``"undefined"`` mean "not given"
- numbers are parsed by pydantic; a malformed number is an error, not a skip
"""

from typing import Dict, Iterable, List, NamedTuple, Tuple

from pydantic import ValidationError

from tus_guide.core.errors import QueryValidationError
from tus_guide.schemas.schemas import SearchParams

ABSENT_VALUES = {"", "undefined"}


class QueryField(NamedTuple):
    name: str           # public (camelCase) name, also the SearchParams alias
    keys: Tuple[str, ...]
    multi: bool = False


QUERY_FIELDS: Tuple[QueryField, ...] = (
    QueryField("text", ("q", "text")),
    QueryField("city", ("city", "city[]"), multi=True),
    QueryField("ownershipType", ("ownershipType", "ownershipType[]", "ownership_type"), multi=True),
    QueryField("institutionKind", ("institutionKind", "institutionKind[]", "institution_kind"), multi=True),
    QueryField("branch", ("branch", "branch[]"), multi=True),
    QueryField("minScoreFloor", ("minScoreFloor", "min_score_floor")),
    QueryField("minScoreCeiling", ("minScoreCeiling", "min_score_ceiling")),
    QueryField("quotaFloor", ("quotaFloor", "quota_floor")),
    QueryField("quotaCeiling", ("quotaCeiling", "quota_ceiling")),
    QueryField("page", ("page",)),
    QueryField("pageSize", ("pageSize", "page_size")),
    QueryField("sortBy", ("sortBy", "sort_by")),
    QueryField("sortOrder", ("sortOrder", "sort_order")),
)

_FIELD_BY_KEY: Dict[str, QueryField] = {
    key: field for field in QUERY_FIELDS for key in field.keys
}


def collect_query_values(items: Iterable[Tuple[str, str]]) -> dict:
    """Group raw (key, value) pairs by field according to QUERY_FIELDS."""
    raw: dict = {}
    for key, value in items:
        field = _FIELD_BY_KEY.get(key)
        if field is None:
            continue
        value = value.strip()
        if value in ABSENT_VALUES:
            continue
        if field.multi:
            values: List[str] = raw.setdefault(field.name, [])
            if value not in values:
                values.append(value)
        else:
            raw[field.name] = value
    return raw


def parse_search_params(items: Iterable[Tuple[str, str]]) -> SearchParams:
    """
    Build validated SearchParams from query string pairs.

    Raises QueryValidationError naming the first invalid field.
    """
    raw = collect_query_values(items)
    try:
        return SearchParams.model_validate(raw)
    except ValidationError as exc:
        first = exc.errors()[0]
        loc = first.get("loc") or ()
        field = str(loc[0]) if loc else None
        message = first.get("msg", "invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        raise QueryValidationError(field, message) from None


def openapi_parameters() -> List[dict]:
    """
    OpenAPI `parameters` for QUERY_FIELDS, typed from the SearchParams
    JSON schema. The routes parse the query string themselves, so FastAPI
    cannot derive these on its own.
    """
    properties = SearchParams.model_json_schema(by_alias=True)["properties"]
    parameters = []
    for field in QUERY_FIELDS:
        primary, *aliases = field.keys
        notes = []
        if field.multi:
            notes.append("Repeat to select several values.")
        if aliases:
            notes.append("Also accepted as: " + ", ".join(aliases) + ".")
        parameter = {
            "name": primary,
            "in": "query",
            "required": False,
            "schema": properties[field.name],
            "description": " ".join(notes),
        }
        if field.multi:
            parameter.update(style="form", explode=True)
        parameters.append(parameter)
    return parameters


SEARCH_QUERY_PARAMETERS = openapi_parameters()
