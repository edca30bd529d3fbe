"""Translate page / search / date-range parameters into a Data API find.

A find request takes a list of clauses: fields inside one clause are
AND-combined, clauses in the list are OR-combined. Criteria that must always
apply (a date range, fixed entity criteria) are therefore copied into every
clause rather than appended as a separate entry.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, NamedTuple, Optional, Sequence, Union

from ..models import FilterClause, SortSpec


class SearchField(NamedTuple):
    name: str
    exact: bool = False

    def pattern(self, term: str) -> str:
        return f"={term}" if self.exact else f"*{term}*"


@dataclass(frozen=True)
class FindQuery:
    clauses: List[FilterClause] = field(default_factory=list)
    offset: int = 1
    limit: int = 20
    sort: Optional[SortSpec] = None

    @property
    def is_find(self) -> bool:
        return bool(self.clauses)


DateLike = Union[str, date, None]


def compute_offset(page: int, limit: int) -> int:
    """Data API offsets are 1-based: page 1 starts at record 1."""
    if page < 1:
        raise ValueError("page must be >= 1")
    if limit < 1:
        raise ValueError("limit must be > 0")
    return (page - 1) * limit + 1


def to_filemaker_date(value: DateLike) -> Optional[str]:
    """Return ``value`` as MM/DD/YYYY.

    Accepts ``date`` objects, ISO ``YYYY-MM-DD`` strings, or strings already
    in MM/DD/YYYY form (returned unchanged). Empty values give ``None``.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        value = value.date()
    if isinstance(value, date):
        return value.strftime("%m/%d/%Y")
    text = str(value).strip()
    if not text:
        return None
    if "/" in text:
        return text
    return datetime.strptime(text, "%Y-%m-%d").strftime("%m/%d/%Y")


def sort_by(field_name: str, order: str = "ascend") -> SortSpec:
    if order not in ("ascend", "descend"):
        raise ValueError(f"Invalid sort order: {order}")
    return [{"fieldName": field_name, "sortOrder": order}]


def date_criterion(date_field: str, start_date: Optional[str], end_date: Optional[str]) -> Optional[FilterClause]:
    if start_date and end_date:
        return {date_field: f"{start_date}...{end_date}"}
    if start_date:
        return {date_field: f">={start_date}"}
    return None


def build_find_query(
    page: int,
    limit: int,
    search: Optional[str] = None,
    start_date: DateLike = None,
    end_date: DateLike = None,
    *,
    search_fields: Sequence[SearchField] = (),
    date_field: Optional[str] = None,
    fixed_criteria: Optional[Dict[str, str]] = None,
    sort: Optional[SortSpec] = None,
) -> FindQuery:
    offset = compute_offset(page, limit)

    date_clause = None
    if date_field:
        date_clause = date_criterion(date_field, to_filemaker_date(start_date), to_filemaker_date(end_date))

    term = (search or "").strip()
    clauses: List[FilterClause] = []
    if term and search_fields:
        clauses = [{f.name: f.pattern(term)} for f in search_fields]
        if date_clause:
            for clause in clauses:
                clause.update(date_clause)
    elif date_clause:
        clauses = [dict(date_clause)]

    if fixed_criteria:
        if not clauses:
            clauses = [{}]
        for clause in clauses:
            clause.update(fixed_criteria)

    return FindQuery(clauses=clauses, offset=offset, limit=limit, sort=sort)
