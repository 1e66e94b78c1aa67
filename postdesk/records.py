"""
Record store abstraction for post metadata.

Production records live in a spreadsheet fronted by a Google Apps Script web
app reached through one URL; the in-memory client is used for development
and tests. The remote side owns row identity and ordering.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Dict, Optional, Protocol

import requests

from postdesk.errors import Outcome, UpstreamFailure, ValidationError

logger = logging.getLogger(__name__)

# Row 1 of the sheet holds the column headers.
FIRST_DATA_ROW = 2


@dataclass
class PostRecord:
    title: str
    post_url: str
    url: str = ""
    labels: str = ""
    author: str = ""
    video_link: str = ""
    feature_image: str = ""
    published: Optional[str] = None
    views: Optional[int] = None
    row_index: Optional[int] = None

    @classmethod
    def from_wire(cls, data: dict) -> "PostRecord":
        """Raises ValueError when `rowIndex` is present but not an integer."""
        row_index = data.get("rowIndex")
        if row_index in (None, ""):
            row_index = None
        elif isinstance(row_index, float) and row_index.is_integer():
            row_index = int(row_index)
        elif isinstance(row_index, bool) or not isinstance(row_index, (int, str)):
            raise ValueError(f"invalid rowIndex {row_index!r}")
        else:
            row_index = int(row_index)
        try:
            views = int(data.get("views") or 0)
        except (TypeError, ValueError):
            views = 0
        return cls(
            title=str(data.get("title") or ""),
            post_url=str(data.get("postUrl") or ""),
            url=str(data.get("url") or ""),
            labels=str(data.get("labels") or ""),
            author=str(data.get("author") or ""),
            video_link=str(data.get("videoLink") or ""),
            feature_image=str(data.get("featureImage") or ""),
            published=data.get("published") or None,
            views=views,
            row_index=row_index,
        )

    def as_wire(self) -> dict:
        payload = {
            "title": self.title,
            "postUrl": self.post_url,
            "url": self.url,
            "labels": self.labels,
            "author": self.author,
            "videoLink": self.video_link,
            "featureImage": self.feature_image,
            "published": self.published,
            "views": self.views,
        }
        # Unset fields are left for the store to keep or fill in.
        payload = {key: value for key, value in payload.items() if value is not None}
        if self.row_index is not None:
            payload["rowIndex"] = self.row_index
        return payload


def check_record_shape(record: PostRecord) -> Optional[ValidationError]:
    missing = [
        name
        for name, value in (("title", record.title), ("postUrl", record.post_url))
        if not (value or "").strip()
    ]
    if missing:
        return ValidationError(f"Missing fields: {', '.join(missing)}")
    return None


def check_row_index(row_index: object) -> Optional[ValidationError]:
    if isinstance(row_index, bool) or not isinstance(row_index, int) or row_index < 1:
        return ValidationError("rowIndex must be a positive integer")
    return None


class RecordStoreClient(Protocol):
    """Operations the orchestrator needs from the record store."""

    def list(self) -> Outcome[list[PostRecord]]:
        ...

    def create(self, record: PostRecord) -> Outcome[None]:
        ...

    def update(self, row_index: int, record: PostRecord) -> Outcome[None]:
        ...

    def delete(self, row_index: int) -> Outcome[None]:
        ...


class InMemoryRecordStore:
    """Simple in-memory sheet for development and tests."""

    def __init__(self):
        self.rows: Dict[int, PostRecord] = {}
        self._next_row = FIRST_DATA_ROW

    def list(self) -> Outcome[list[PostRecord]]:
        return Outcome.success(
            [replace(self.rows[index]) for index in sorted(self.rows)]
        )

    def create(self, record: PostRecord) -> Outcome[None]:
        error = check_record_shape(record)
        if error:
            return Outcome.failure(error)
        row_index = self._next_row
        self._next_row += 1
        self.rows[row_index] = replace(record, row_index=row_index)
        return Outcome.success()

    def update(self, row_index: int, record: PostRecord) -> Outcome[None]:
        error = check_row_index(row_index) or check_record_shape(record)
        if error:
            return Outcome.failure(error)
        if row_index not in self.rows:
            return Outcome.failure(UpstreamFailure(f"Row {row_index} not found"))
        self.rows[row_index] = replace(record, row_index=row_index)
        return Outcome.success()

    def delete(self, row_index: int) -> Outcome[None]:
        error = check_row_index(row_index)
        if error:
            return Outcome.failure(error)
        if self.rows.pop(row_index, None) is None:
            return Outcome.failure(UpstreamFailure(f"Row {row_index} not found"))
        return Outcome.success()

    def reset(self) -> None:
        """Clear all stored rows (useful in tests)."""
        self.rows.clear()
        self._next_row = FIRST_DATA_ROW


@dataclass
class AppsScriptRecordStore:
    """
    Record store reached through a deployed Apps Script web app.

    The script authenticates calls with a shared `key` query parameter and
    dispatches on the HTTP method: GET lists, POST appends, PUT updates the
    row named by `rowIndex`, DELETE removes it.
    """

    script_url: str
    secret_key: str
    timeout: float = 30

    def __post_init__(self):
        self._session = requests.Session()

    def _call(self, method: str, body: Optional[dict] = None) -> Outcome[object]:
        try:
            response = self._session.request(
                method,
                self.script_url,
                params={"key": self.secret_key},
                json=body,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error("Record store %s failed: %s", method, exc)
            return Outcome.failure(UpstreamFailure("Record store unreachable"))

        if not response.ok:
            logger.error(
                "Record store %s returned HTTP %s", method, response.status_code
            )
            return Outcome.failure(
                UpstreamFailure(f"Record store returned HTTP {response.status_code}")
            )

        if not response.content:
            return Outcome.success(None)
        try:
            data = response.json()
        except ValueError:
            logger.error("Record store %s returned a non-JSON body", method)
            return Outcome.failure(
                UpstreamFailure("Record store returned invalid JSON")
            )

        rejected = isinstance(data, dict) and (
            data.get("error") or data.get("success") is False
        )
        if rejected:
            message = data.get("error") or data.get("message") or "request rejected"
            logger.error("Record store %s rejected: %s", method, message)
            return Outcome.failure(UpstreamFailure(f"Record store: {message}"))
        return Outcome.success(data)

    def list(self) -> Outcome[list[PostRecord]]:
        result = self._call("GET")
        if not result.ok:
            return Outcome.failure(result.error)
        data = result.value
        rows = data.get("posts", []) if isinstance(data, dict) else data
        if not isinstance(rows, list):
            return Outcome.failure(UpstreamFailure("Record store returned no posts"))
        records = []
        for row in rows:
            if not isinstance(row, dict):
                continue
            try:
                records.append(PostRecord.from_wire(row))
            except ValueError as exc:
                logger.warning("Skipping malformed sheet row: %s", exc)
        return Outcome.success(records)

    def create(self, record: PostRecord) -> Outcome[None]:
        error = check_record_shape(record)
        if error:
            return Outcome.failure(error)
        payload = record.as_wire()
        payload.pop("rowIndex", None)
        result = self._call("POST", payload)
        return Outcome.success() if result.ok else Outcome.failure(result.error)

    def update(self, row_index: int, record: PostRecord) -> Outcome[None]:
        error = check_row_index(row_index) or check_record_shape(record)
        if error:
            return Outcome.failure(error)
        payload = record.as_wire()
        payload["rowIndex"] = row_index
        result = self._call("PUT", payload)
        return Outcome.success() if result.ok else Outcome.failure(result.error)

    def delete(self, row_index: int) -> Outcome[None]:
        error = check_row_index(row_index)
        if error:
            return Outcome.failure(error)
        result = self._call("DELETE", {"rowIndex": row_index})
        return Outcome.success() if result.ok else Outcome.failure(result.error)
