"""Sales summary for the dashboard: revenue chart, KPIs and status breakdown."""

import logging
from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, Optional

from ..models import Record, SalesSummary


logger = logging.getLogger(__name__)

CLOSED_STATUS = "Closed"
DASHBOARD_FETCH_LIMIT = 5000


def aggregation_level(start: date, end: date) -> str:
    days = abs((end - start).days)
    if days <= 60:
        return "daily"
    if days <= 730:
        return "monthly"
    return "yearly"


def parse_currency(value) -> float:
    """Parse ``"5,221.00"`` style totals; empty or invalid values count as 0."""
    if value is None or value == "":
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).replace(",", "").replace("$", "").strip())
    except ValueError:
        return 0.0


def bucket_key(sales_date: str, level: str) -> Optional[str]:
    parts = str(sales_date or "").split("/")  # MM/DD/YYYY
    if len(parts) != 3:
        return None
    month, day, year = parts[0].zfill(2), parts[1].zfill(2), parts[2]
    if level == "monthly":
        return f"{year}-{month}"
    if level == "yearly":
        return year
    return f"{year}-{month}-{day}"


def summarize_sales(records: Iterable[Record], start: date, end: date) -> SalesSummary:
    level = aggregation_level(start, end)
    totals: Dict[str, float] = defaultdict(float)
    statuses: Dict[str, int] = defaultdict(int)
    invoiced_revenue = 0.0
    invoiced = 0
    open_count = 0
    count = 0

    for record in records:
        count += 1
        status = record.get("SalesStatus_new") or "Unknown"
        statuses[status] += 1
        if record.get("SalesStatus_new") != CLOSED_STATUS:
            open_count += 1
            continue

        invoiced += 1
        amount = parse_currency(record.get("Total_Static_Display"))
        invoiced_revenue += amount
        key = bucket_key(record.get("SalesDate"), level)
        if key is None:
            logger.debug(f"Skipping sale {record.record_id} with unparsable date")
            continue
        totals[key] += amount

    return SalesSummary(
        start_date=start.isoformat(),
        end_date=end.isoformat(),
        aggregation_level=level,
        chart=[{"date": key, "total": round(totals[key], 2)} for key in sorted(totals)],
        status_breakdown=[{"name": name, "value": value} for name, value in statuses.items()],
        total_invoiced_revenue=round(invoiced_revenue, 2),
        invoiced_count=invoiced,
        open_count=open_count,
        record_count=count,
    )
