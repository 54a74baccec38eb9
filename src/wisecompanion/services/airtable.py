"""Read-only Airtable client used by the publish step."""

from __future__ import annotations

import logging
from typing import Any, List
from urllib.parse import quote

import httpx

from wisecompanion.errors import DataFormatError, UpstreamFetchError
from wisecompanion.normalization.schema import RawRecord
from wisecompanion.settings import Settings, get_settings

LOGGER = logging.getLogger(__name__)


def _describe_failure(response: httpx.Response) -> str:
    """Build an error message that includes Airtable's error type when present."""

    message = f"Airtable API error (status {response.status_code})"
    try:
        payload = response.json()
    except ValueError:
        return f"{message}: {response.reason_phrase}"
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict) and error.get("type"):
        return f"{message}: {error['type']}"
    if isinstance(error, str) and error:
        return f"{message}: {error}"
    return f"{message}: {response.reason_phrase}"


def parse_records(payload: Any) -> List[RawRecord]:
    """Unwrap an Airtable ``{"records": [...]}`` envelope into raw records."""

    if not isinstance(payload, dict) or not isinstance(payload.get("records"), list):
        raise DataFormatError("Airtable response is missing a 'records' array")
    records: List[RawRecord] = []
    for index, entry in enumerate(payload["records"]):
        if not isinstance(entry, dict):
            raise DataFormatError(f"Airtable record #{index} is not an object")
        record_id = entry.get("id")
        if not isinstance(record_id, str) or not record_id:
            raise DataFormatError(f"Airtable record #{index} has no id")
        fields = entry.get("fields") or {}
        if not isinstance(fields, dict):
            raise DataFormatError(f"Airtable record {record_id} has non-object fields")
        records.append(RawRecord(id=record_id, fields=fields))
    return records


class AirtableClient:
    """Fetch one page of records from the configured Airtable table."""

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._client = client

    @property
    def table_url(self) -> str:
        airtable = self.settings.airtable
        if not airtable.base_id:
            raise UpstreamFetchError("Airtable base id is not configured (set AIRTABLE_BASE_ID)")
        base = airtable.api_base_url.rstrip("/")
        return f"{base}/{airtable.base_id}/{quote(airtable.table, safe='')}"

    def _headers(self) -> dict[str, str]:
        token = self.settings.airtable.token
        if not token:
            raise UpstreamFetchError("Airtable token is not configured (set AIRTABLE_PAT)")
        return {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}

    def fetch_records(self, *, filter_formula: str | None = None) -> List[RawRecord]:
        """Return the raw records for the table.

        Args:
            filter_formula: Server-side ``filterByFormula`` expression; falls
                back to the configured formula.

        Raises:
            UpstreamFetchError: The request failed or returned a non-2xx status.
            DataFormatError: The body was not JSON or not an Airtable envelope.
        """

        url = self.table_url
        headers = self._headers()
        formula = filter_formula or self.settings.airtable.filter_formula
        params = {"filterByFormula": formula} if formula else None

        LOGGER.info("Fetching Airtable records from %s", url)
        try:
            if self._client is not None:
                response = self._client.get(url, headers=headers, params=params)
            else:
                with httpx.Client(timeout=self.settings.airtable.timeout_seconds) as client:
                    response = client.get(url, headers=headers, params=params)
        except httpx.HTTPError as exc:
            raise UpstreamFetchError(f"Airtable request failed: {exc}") from exc

        if not response.is_success:
            raise UpstreamFetchError(_describe_failure(response), status_code=response.status_code)

        try:
            payload = response.json()
        except ValueError as exc:
            raise DataFormatError("Airtable response is not valid JSON") from exc
        return parse_records(payload)


__all__ = ["AirtableClient", "parse_records"]
