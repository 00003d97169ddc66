"""Verification request storage with owner-scoped access.

Follows the same pattern as the other stores:
- Request id as primary key, O(1) lookup
- Owner index (client_id -> request ids) for client views
- Async lock around every read and write
- Optional JSON persistence

Request ids have the form REQ-<year>-<sequence>, where the six-digit
sequence is global and never reused, so ids sort by creation order.

Usage:
    from verifivue.data_management.request_store import RequestStore

    store = RequestStore()
    request_id = await store.next_request_id()
    await store.create(request)
    mine = await store.list_by_owner("client-1")
"""

import asyncio
import json
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import structlog

from verifivue.data_management.repository import RequestRepository
from verifivue.data_management.schemas import VerificationRequest
from verifivue.lifecycle.errors import RecordNotFoundError

_ID_PATTERN = re.compile(r"^REQ-\d{4}-(\d+)$")


class RequestStore(RequestRepository):
    """Storage for verification requests.

    Data structure:
    {
        request_id: VerificationRequest,
        ...
    }
    """

    def __init__(self, persistence_path: Optional[str] = None) -> None:
        """Initialize RequestStore.

        Args:
            persistence_path: Optional path to JSON file for persistence.
                            If None, storage is memory-only.
        """
        self._requests: dict[str, VerificationRequest] = {}
        self._owner_index: dict[str, list[str]] = {}
        self._sequence = 0
        self._lock = asyncio.Lock()
        self._persistence_path = Path(persistence_path) if persistence_path else None
        self._logger = structlog.get_logger().bind(component="RequestStore")

        if self._persistence_path and self._persistence_path.exists():
            self._load_from_file()

    async def next_request_id(self, now: Optional[datetime] = None) -> str:
        """Allocate the next request id.

        The sequence advances even if the id is never used, so a failed
        submission can't cause a later one to reuse its id.
        """
        now = now or datetime.now(timezone.utc)
        async with self._lock:
            self._sequence += 1
            return f"REQ-{now.year}-{self._sequence:06d}"

    async def create(self, request: VerificationRequest) -> VerificationRequest:
        """Store a new request.

        Raises:
            ValueError: A request with the same id already exists.
        """
        async with self._lock:
            if request.id in self._requests:
                raise ValueError(f"Request {request.id} already exists")
            self._requests[request.id] = request
            self._owner_index.setdefault(request.client_id, []).append(request.id)
            self._bump_sequence(request.id)

            self._logger.debug(
                "request_created",
                request_id=request.id,
                client_id=request.client_id,
                status=request.status.value,
            )

            if self._persistence_path:
                self._save_to_file()
            return request

    async def get(self, request_id: str) -> Optional[VerificationRequest]:
        async with self._lock:
            return self._requests.get(request_id)

    async def update(self, request: VerificationRequest) -> VerificationRequest:
        """Replace a stored request with a newer snapshot.

        Ownership and submission date are carried over from the stored copy.

        Raises:
            RecordNotFoundError: No request with this id.
        """
        async with self._lock:
            existing = self._requests.get(request.id)
            if existing is None:
                raise RecordNotFoundError("request", request.id)
            request = request.model_copy(
                update={
                    "client_id": existing.client_id,
                    "client_name": existing.client_name,
                    "submission_date": existing.submission_date,
                }
            )
            self._requests[request.id] = request

            self._logger.debug(
                "request_updated",
                request_id=request.id,
                status=request.status.value,
            )

            if self._persistence_path:
                self._save_to_file()
            return request

    async def list_by_owner(self, client_id: str) -> list[VerificationRequest]:
        """Requests owned by ``client_id``, newest first."""
        async with self._lock:
            ids = self._owner_index.get(client_id, [])
            return self._newest_first(self._requests[rid] for rid in ids)

    async def list_all(self) -> list[VerificationRequest]:
        """Every request, newest first."""
        async with self._lock:
            return self._newest_first(self._requests.values())

    async def get_stats(self) -> dict[str, Any]:
        """Request counts by status."""
        async with self._lock:
            status_counts: dict[str, int] = {}
            for request in self._requests.values():
                key = request.status.value
                status_counts[key] = status_counts.get(key, 0) + 1
            return {
                "total": len(self._requests),
                "owners": len(self._owner_index),
                "status_counts": status_counts,
            }

    @staticmethod
    def _newest_first(requests) -> list[VerificationRequest]:
        return sorted(
            requests,
            key=lambda r: (r.submission_date, r.id),
            reverse=True,
        )

    def _bump_sequence(self, request_id: str) -> None:
        match = _ID_PATTERN.match(request_id)
        if match:
            self._sequence = max(self._sequence, int(match.group(1)))

    def _save_to_file(self) -> None:
        """Save to JSON file (synchronous)."""
        if not self._persistence_path:
            return
        try:
            self._persistence_path.parent.mkdir(parents=True, exist_ok=True)
            data = {
                "sequence": self._sequence,
                "requests": {
                    rid: request.model_dump(mode="json")
                    for rid, request in self._requests.items()
                },
            }
            with open(self._persistence_path, "w") as f:
                json.dump(data, f, indent=2, default=str)
        except OSError as e:
            self._logger.error("persistence_failed", error=str(e))

    def _load_from_file(self) -> None:
        """Load requests from JSON file and rebuild the owner index (synchronous)."""
        with open(self._persistence_path, "r") as f:
            data = json.load(f)

        self._requests = {
            rid: VerificationRequest.model_validate(raw)
            for rid, raw in data.get("requests", {}).items()
        }
        self._owner_index = {}
        for request in self._requests.values():
            self._owner_index.setdefault(request.client_id, []).append(request.id)
            self._bump_sequence(request.id)
        self._sequence = max(self._sequence, int(data.get("sequence", 0)))

        self._logger.info(
            "requests_loaded",
            path=str(self._persistence_path),
            requests=len(self._requests),
        )
