"""Response shapes shared by the services and the HTTP layer.

Field names on the wire follow the Data API / front-end convention
(``recordId``, ``fieldData``, ``totalCount``, ``foundCount``); attributes use
snake_case and serialize through aliases.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


FilterClause = Dict[str, str]
SortSpec = List[Dict[str, str]]


class Record(BaseModel):
    """One Data API record. Unknown keys pass through unchanged."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    record_id: str = Field(alias="recordId")
    field_data: Dict[str, Any] = Field(default_factory=dict, alias="fieldData")
    portal_data: Optional[Dict[str, Any]] = Field(default=None, alias="portalData")
    mod_id: Optional[str] = Field(default=None, alias="modId")

    @field_validator("record_id", "mod_id", mode="before")
    @classmethod
    def _stringify_ids(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value

    def get(self, field_name: str, default: Any = None) -> Any:
        return self.field_data.get(field_name, default)


class PaginatedResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    data: List[Record] = Field(default_factory=list)
    total_count: int = Field(default=0, alias="totalCount")
    found_count: int = Field(default=0, alias="foundCount")

    @classmethod
    def empty(cls) -> "PaginatedResult":
        return cls(data=[], total_count=0, found_count=0)


@dataclass(frozen=True)
class FetchOutcome:
    """Tagged result of a list/find call.

    ``ok`` outcomes carry a result (possibly empty for "no matches"); failed
    outcomes carry the error kind (``auth``, ``transport``, ``malformed``)
    and a message.
    """

    result: Optional[PaginatedResult] = None
    error_kind: Optional[str] = None
    error_message: str = ""

    @property
    def ok(self) -> bool:
        return self.error_kind is None

    @classmethod
    def success(cls, result: PaginatedResult) -> "FetchOutcome":
        return cls(result=result)

    @classmethod
    def failure(cls, kind: str, message: str) -> "FetchOutcome":
        return cls(error_kind=kind, error_message=message)

    def unwrap_or_empty(self) -> PaginatedResult:
        if self.ok and self.result is not None:
            return self.result
        return PaginatedResult.empty()


class SalesSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    start_date: str = Field(alias="startDate")
    end_date: str = Field(alias="endDate")
    aggregation_level: str = Field(alias="aggregationLevel")
    chart: List[Dict[str, Any]] = Field(default_factory=list)
    status_breakdown: List[Dict[str, Any]] = Field(default_factory=list, alias="statusBreakdown")
    total_invoiced_revenue: float = Field(default=0.0, alias="totalInvoicedRevenue")
    invoiced_count: int = Field(default=0, alias="invoicedCount")
    open_count: int = Field(default=0, alias="openCount")
    record_count: int = Field(default=0, alias="recordCount")
