"""
Pydantic Schemas - Backup Data Models

Defines the models passed between pipeline stages:
- API responses and per-resource shape declarations
- Run log entries consumed by the report builder
- Backup artifacts and media sync statistics
- Report email messages and send results

Usage:
    from utils.schemas import ApiResponse, ResponseShape

    response = client.call("GET", "templates")
    templates = response.records(ResponseShape.LIST)
"""

from collections.abc import Iterator
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from utils.errors import MailError, ResponseShapeError


class ResponseShape(str, Enum):
    """Where a listing endpoint puts its records inside the response body."""

    RESULTS = "results"  # {"data": {"results": [...]}}
    LIST = "list"  # {"data": [...]}


class ApiResponse(BaseModel):
    """Status code and decoded JSON body of an API call.

    Non-2xx responses are returned as-is; callers check `ok` themselves.
    """

    status: int
    body: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def records(self, shape: ResponseShape) -> list[dict[str, Any]]:
        """Extract the record list for the given shape.

        Raises:
            ResponseShapeError: If the body does not match the shape
        """
        if not isinstance(self.body, dict) or "data" not in self.body:
            raise ResponseShapeError("Response body has no 'data' member")

        data = self.body["data"]
        if shape is ResponseShape.RESULTS:
            if not isinstance(data, dict) or "results" not in data:
                raise ResponseShapeError("Expected 'data.results' in response body")
            data = data["results"]

        # listmonk answers an empty listing with null
        if data is None:
            return []
        if not isinstance(data, list):
            raise ResponseShapeError(
                f"Expected a list of records for shape '{shape.value}', got {type(data).__name__}"
            )
        if not all(isinstance(item, dict) for item in data):
            raise ResponseShapeError("Expected every record to be an object")
        return data


class Resource(BaseModel):
    """A backed-up collection and how to list it."""

    model_config = ConfigDict(frozen=True)

    name: str
    endpoint: str
    shape: ResponseShape = ResponseShape.RESULTS
    query: dict[str, str] = Field(default_factory=lambda: {"per_page": "all"})


class ResourceOutcome(BaseModel):
    """Outcome of one resource backup; a single run log entry."""

    count: Optional[int] = None
    file: Optional[str] = None
    media_downloaded: Optional[int] = None
    media_failed: Optional[int] = None
    error: Optional[str] = None


class RunLog:
    """Insertion-ordered outcomes of one run, keyed by resource name."""

    def __init__(self) -> None:
        self._entries: dict[str, ResourceOutcome] = {}

    def record(self, name: str, outcome: ResourceOutcome) -> None:
        self._entries[name] = outcome

    def items(self) -> Iterator[tuple[str, ResourceOutcome]]:
        return iter(self._entries.items())

    @property
    def has_errors(self) -> bool:
        return any(entry.error is not None for entry in self._entries.values())

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, name: str) -> ResourceOutcome:
        return self._entries[name]


class BackupArtifact(BaseModel):
    """A CSV export written for one resource in one run."""

    model_config = ConfigDict(frozen=True)

    resource_name: str
    file_path: str
    record_count: int
    created_at: datetime


class MediaSyncStats(BaseModel):
    """Per-run counters of the media synchronizer."""

    downloaded: int = 0
    unchanged: int = 0
    skipped: int = 0
    failed: int = 0

    @property
    def local_copies(self) -> int:
        return self.downloaded + self.unchanged


class MailMessage(BaseModel):
    """Report email handed to the mail sender."""

    to: str
    sender: str
    subject: str
    html_body: str
    text_body: str


class MailResult(BaseModel):
    """Result of a send attempt: ok, or the error that prevented delivery."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    ok: bool
    error: Optional[MailError] = None

    @classmethod
    def success(cls) -> "MailResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, error: MailError) -> "MailResult":
        return cls(ok=False, error=error)
