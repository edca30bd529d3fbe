import json
import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from ..core.config import Config
from ..core.errors import (
    AuthFailure,
    FileMakerError,
    MalformedResponse,
    RecordNotFound,
    TransportError,
    first_message_code,
)
from ..core.http import build_client, safe_json
from ..models import FetchOutcome, FilterClause, PaginatedResult, Record, SortSpec
from .filemaker_query import FindQuery
from .filemaker_session import SessionManager


logger = logging.getLogger(__name__)

# Data API message codes
NO_RECORDS_MATCH_CODE = "401"
RECORD_MISSING_CODE = "101"
INVALID_TOKEN_CODE = "952"


class FileMakerService:
    """Issues list, find and record requests against one database.

    List operations (:meth:`fetch`, :meth:`fetch_page`) never raise; detail
    operations raise :class:`FileMakerError` subclasses, except for "not
    found" which yields ``None``.
    """

    def __init__(self, config: Config, client: httpx.Client, session: SessionManager):
        self.config = config
        self.client = client
        self.session = session

    def close(self) -> None:
        self.client.close()

    # -- transport -------------------------------------------------------

    def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        headers = self.session.auth_headers()
        try:
            return self.client.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {path} failed: {e}") from e

    def _unwrap(self, response: httpx.Response, *, is_find: bool = False) -> Optional[Dict[str, Any]]:
        """Return the ``response`` envelope, or None when a find matched nothing."""
        payload = safe_json(response)
        status = response.status_code

        if status >= 400:
            code = first_message_code(payload)
            # The Data API answers a find with no matches using HTTP 401 / code 401.
            if is_find and (status == 401 or code == NO_RECORDS_MATCH_CODE) and code != INVALID_TOKEN_CODE:
                return None
            if status == 404 or code == RECORD_MISSING_CODE:
                raise RecordNotFound("Record is missing", status_code=status, payload=payload)
            if status in (401, 403):
                raise AuthFailure(f"Request rejected with HTTP {status}", status_code=status, payload=payload)
            raise TransportError(f"Unexpected HTTP {status}", status_code=status, payload=payload)

        if not isinstance(payload, dict) or not isinstance(payload.get("response"), dict):
            raise MalformedResponse("Unexpected response structure", status_code=status, payload=payload)
        return payload["response"]

    @staticmethod
    def _records(body: Dict[str, Any]) -> List[Record]:
        data = body.get("data") or []
        if not isinstance(data, list):
            raise MalformedResponse("response.data is not a list", payload=body)
        try:
            return [Record.model_validate(item) for item in data]
        except ValidationError as e:
            raise MalformedResponse(f"Invalid record in response: {e}", payload=body) from e

    # -- list / find -----------------------------------------------------

    def fetch(
        self,
        layout: str,
        offset: int,
        limit: int,
        clauses: Optional[List[FilterClause]] = None,
        sort: Optional[SortSpec] = None,
    ) -> FetchOutcome:
        is_find = bool(clauses)
        try:
            if is_find:
                body: Dict[str, Any] = {"query": clauses, "limit": limit, "offset": offset}
                if sort:
                    body["sort"] = sort
                logger.debug(f"[FM] Finding in {layout}: {body}")
                response = self._send("POST", f"/layouts/{layout}/_find", json=body)
            else:
                params: Dict[str, Any] = {"_limit": limit, "_offset": offset}
                if sort:
                    params["_sort"] = json.dumps(sort)
                logger.debug(f"[FM] Getting records from {layout}: {params}")
                response = self._send("GET", f"/layouts/{layout}/records", params=params)

            logger.debug(f"[FM] Response from {layout}: {response.status_code}")
            envelope = self._unwrap(response, is_find=is_find)
            if envelope is None:
                return FetchOutcome.success(PaginatedResult.empty())

            records = self._records(envelope)
            data_info = envelope.get("dataInfo") or {}
            if not isinstance(data_info, dict):
                raise MalformedResponse("response.dataInfo is not an object", payload=envelope)
            return FetchOutcome.success(
                PaginatedResult(
                    data=records[:limit],
                    total_count=int(data_info.get("totalRecordCount") or 0),
                    found_count=int(data_info.get("foundCount") or 0),
                )
            )
        except RecordNotFound as e:
            return FetchOutcome.failure(TransportError.kind, str(e))
        except FileMakerError as e:
            return FetchOutcome.failure(e.kind, str(e))
        except (TypeError, ValueError) as e:
            return FetchOutcome.failure(MalformedResponse.kind, f"Invalid dataInfo: {e}")

    def fetch_query(self, layout: str, query: FindQuery) -> FetchOutcome:
        return self.fetch(layout, query.offset, query.limit, query.clauses, query.sort)

    def fetch_page(self, layout: str, query: FindQuery) -> PaginatedResult:
        """List/find for browsing: failures are logged and collapse to an empty page."""
        outcome = self.fetch_query(layout, query)
        if not outcome.ok:
            logger.error(f"[FM] Error fetching {layout} ({outcome.error_kind}): {outcome.error_message}")
        return outcome.unwrap_or_empty()

    def find_all(
        self,
        layout: str,
        clauses: List[FilterClause],
        *,
        limit: Optional[int] = None,
        sort: Optional[SortSpec] = None,
    ) -> List[Record]:
        body: Dict[str, Any] = {"query": clauses}
        if limit is not None:
            body["limit"] = limit
        if sort:
            body["sort"] = sort
        response = self._send("POST", f"/layouts/{layout}/_find", json=body)
        envelope = self._unwrap(response, is_find=True)
        if envelope is None:
            return []
        return self._records(envelope)

    def find_one(self, layout: str, clauses: List[FilterClause]) -> Optional[Record]:
        records = self.find_all(layout, clauses, limit=1)
        return records[0] if records else None

    # -- single record ---------------------------------------------------

    def get_record(self, layout: str, record_id: str) -> Optional[Record]:
        response = self._send("GET", f"/layouts/{layout}/records/{record_id}")
        try:
            envelope = self._unwrap(response)
        except RecordNotFound:
            return None
        records = self._records(envelope or {})
        return records[0] if records else None


def create_service(config: Config, transport: Optional[httpx.BaseTransport] = None) -> FileMakerService:
    client = build_client(config, transport=transport)
    return FileMakerService(config, client, SessionManager(config, client))
