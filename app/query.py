# app/query.py
"""Turn listing search query parameters into a predicate tree and a sort.

The builder is pure: it never touches the database. `crud.to_clause` and
`crud.to_order_by` compile its output into SQLAlchemy, and `Predicate.matches`
evaluates the same tree against in-memory records.

Recognised filter parameters:

    description                 comma separated terms, all must appear (case-insensitive)
    skillsPossessed             comma separated Skills, combined per skillsPossessedSearchMode
    skillsSought                comma separated Skills, combined per skillsSoughtSearchMode
    tools                       comma separated Tools, all must be present
    languages                   comma separated names, any may be present
    availability                comma separated Availability values, any may match
    timezones                   "start/end" offset range, wrapping over the date line

Sort parameters are `sortBy` (see SORT_FIELDS) and `sortDir` (asc|desc).
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

from .enums import Availability, Skills, Tools, enum_from_string_safe
from .utils import logger

MIN_TIMEZONE = -12
MAX_TIMEZONE = 12

# API name -> Listing attribute
SORT_FIELDS = {
    "author": "author",
    "title": "title",
    "size": "size",
    "availability": "availability",
    "reportCount": "report_count",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}
DEFAULT_SORT_FIELD = "createdAt"

ParamValue = Union[str, Sequence[str]]


class InvalidParameterError(ValueError):
    """A query parameter the caller must fix (surfaced as HTTP 400)."""

    def __init__(self, param: str, message: str):
        super().__init__(message)
        self.param = param


class Predicate:
    def matches(self, record: Any) -> bool:
        raise NotImplementedError


@dataclass(frozen=True)
class Eq(Predicate):
    field: str
    value: Any

    def matches(self, record):
        actual = getattr(record, self.field)
        if self.value is None:
            return actual is None
        return actual == self.value


@dataclass(frozen=True)
class Contains(Predicate):
    """The collection attribute `field` holds `value`."""
    field: str
    value: Any

    def matches(self, record):
        return self.value in (getattr(record, self.field) or ())


@dataclass(frozen=True)
class IContains(Predicate):
    """The text attribute `field` contains `text` literally, ignoring case."""
    field: str
    text: str

    def matches(self, record):
        actual = getattr(record, self.field) or ""
        return self.text.casefold() in actual.casefold()


@dataclass(frozen=True)
class And(Predicate):
    terms: Tuple[Predicate, ...]

    def matches(self, record):
        return all(term.matches(record) for term in self.terms)


@dataclass(frozen=True)
class Or(Predicate):
    terms: Tuple[Predicate, ...]

    def matches(self, record):
        return any(term.matches(record) for term in self.terms)


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class SortDirective:
    field: str
    direction: SortDirection


NOT_DELETED = Eq("deleted_at", None)


def _raw(params: Mapping[str, ParamValue], name: str) -> Optional[str]:
    # starlette QueryParams keeps repeated keys; fold them into one list value
    if hasattr(params, "getlist"):
        values = params.getlist(name)
    else:
        value = params.get(name)
        if value is None:
            return None
        values = [value] if isinstance(value, str) else list(value)
    if not values:
        return None
    return ",".join(values)


def _tokens(params: Mapping[str, ParamValue], name: str) -> List[str]:
    raw = _raw(params, name)
    if raw is None:
        return []
    return [token.strip() for token in raw.split(",") if token.strip()]


def _enum_tokens(params, name, enum_cls) -> list:
    found = (enum_from_string_safe(enum_cls, token) for token in _tokens(params, name))
    return [member for member in found if member is not None]


def _search_mode_is_or(params, name) -> bool:
    # only a missing mode or exactly "and" keeps AND; any other value means OR
    mode = _raw(params, name)
    return mode is not None and mode != "and"


def _combine(terms: List[Predicate], use_or: bool) -> Optional[Predicate]:
    if not terms:
        return None
    return Or(tuple(terms)) if use_or else And(tuple(terms))


def build_timezone_range(start: int, end: int) -> List[int]:
    """Offsets covered by travelling east from `start` to `end`.

    build_timezone_range(-2, 2) == [-2, -1, 0, 1, 2]
    build_timezone_range(9, -9) == [9, 10, 11, 12, -12, -11, -10, -9]

    When start >= end the range wraps over the date line. start == end wraps
    too, so `start` is listed twice and every offset is covered.
    """
    for value in (start, end):
        if not MIN_TIMEZONE <= value <= MAX_TIMEZONE:
            raise ValueError(f"timezone offset {value} outside [{MIN_TIMEZONE}, {MAX_TIMEZONE}]")
    if start < end:
        return list(range(start, end + 1))
    return list(range(start, MAX_TIMEZONE + 1)) + list(range(MIN_TIMEZONE, end + 1))


def _parse_timezones(raw: str) -> Optional[Tuple[int, int]]:
    parts = raw.split("/")
    if len(parts) != 2:
        return None
    try:
        start, end = int(parts[0]), int(parts[1])
    except ValueError:
        return None
    if not (MIN_TIMEZONE <= start <= MAX_TIMEZONE and MIN_TIMEZONE <= end <= MAX_TIMEZONE):
        return None
    return start, end


def _timezone_filter(params) -> Optional[Predicate]:
    raw = _raw(params, "timezones")
    if raw is None:
        return None
    bounds = _parse_timezones(raw)
    if bounds is None:
        logger.warning("Ignoring malformed timezones filter %r", raw)
        return None
    offsets = build_timezone_range(*bounds)
    return Or(tuple(Contains("timezone_offsets", tz) for tz in offsets))


def build_filter(params: Mapping[str, ParamValue]) -> Predicate:
    """AND of the not-deleted check and one term per usable parameter."""
    filters: List[Predicate] = [NOT_DELETED]

    for term in _tokens(params, "description"):
        filters.append(IContains("description", term))

    for param, field in (("skillsPossessed", "skills_possessed"), ("skillsSought", "skills_sought")):
        checks = [Contains(field, skill) for skill in _enum_tokens(params, param, Skills)]
        combined = _combine(checks, _search_mode_is_or(params, f"{param}SearchMode"))
        if combined is not None:
            filters.append(combined)

    filters.extend(Contains("preferred_tools", tool) for tool in _enum_tokens(params, "tools", Tools))

    languages = _combine([Contains("languages", lang) for lang in _tokens(params, "languages")], use_or=True)
    if languages is not None:
        filters.append(languages)

    # a listing has exactly one availability, so any selected value is a hit
    availability = _combine(
        [Eq("availability", value) for value in _enum_tokens(params, "availability", Availability)],
        use_or=True,
    )
    if availability is not None:
        filters.append(availability)

    timezones = _timezone_filter(params)
    if timezones is not None:
        filters.append(timezones)

    return And(tuple(filters))


def build_sort(params: Mapping[str, ParamValue]) -> SortDirective:
    sort_by = _raw(params, "sortBy") or DEFAULT_SORT_FIELD
    field = SORT_FIELDS.get(sort_by)
    if field is None:
        raise InvalidParameterError(
            "sortBy", f"Cannot sort by {sort_by!r}; expected one of {', '.join(sorted(SORT_FIELDS))}"
        )
    sort_dir = (_raw(params, "sortDir") or "").strip().lower()
    direction = SortDirection.ASC if sort_dir == "asc" else SortDirection.DESC
    return SortDirective(field, direction)
