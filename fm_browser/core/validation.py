import re
from datetime import date
from typing import Optional

from fastapi import HTTPException


MAX_PAGE_SIZE = 5000
RECORD_ID_PATTERN = re.compile(r'^[0-9]+$')
BUSINESS_KEY_PATTERN = re.compile(r'^[A-Za-z0-9_.\- ]+$')


def validate_record_id(record_id: str) -> None:
    if not record_id or not RECORD_ID_PATTERN.match(record_id):
        raise HTTPException(status_code=400, detail="Invalid record_id format")


def validate_business_key(value: str, *, name: str = "item_no") -> None:
    if not value or not BUSINESS_KEY_PATTERN.match(value):
        raise HTTPException(status_code=400, detail=f"Invalid {name} format")


def validate_date_range(start_date: Optional[date], end_date: Optional[date]) -> None:
    if start_date and end_date and start_date > end_date:
        raise HTTPException(status_code=400, detail="start_date must not be after end_date")
