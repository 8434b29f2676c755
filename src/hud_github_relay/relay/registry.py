"""Customer → installation registry.

Maps opaque customer identifiers to the GitHub installation that serves them
and the repositories issues may be filed in. Registration is an upsert: the
last write for a customer wins and nothing is merged.

The in-memory implementation keeps records for the lifetime of the process
only. A persistent backend can implement :class:`InstallationRegistry`
without touching the relay or the HTTP layer.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from datetime import UTC, datetime

from pydantic import BaseModel, Field


class CustomerRecord(BaseModel):
    customer_id: str
    installation_id: int
    repos: list[str] = Field(default_factory=list)
    created_at: datetime


class InstallationRegistry(ABC):
    """Storage interface for customer installation records."""

    @abstractmethod
    def register(
        self, customer_id: str, installation_id: int, repos: list[str]
    ) -> CustomerRecord:
        """Create or overwrite the record for `customer_id`."""

    @abstractmethod
    def lookup(self, customer_id: str) -> CustomerRecord | None:
        """Return the record for `customer_id`, or None if it was never registered."""


class InMemoryInstallationRegistry(InstallationRegistry):
    """Dict-backed registry; contents are lost on restart."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: dict[str, CustomerRecord] = {}

    def register(
        self, customer_id: str, installation_id: int, repos: list[str]
    ) -> CustomerRecord:
        record = CustomerRecord(
            customer_id=customer_id,
            installation_id=installation_id,
            repos=list(repos),
            created_at=datetime.now(tz=UTC),
        )
        with self._lock:
            self._records[customer_id] = record
        return record

    def lookup(self, customer_id: str) -> CustomerRecord | None:
        with self._lock:
            record = self._records.get(customer_id)
        # Callers get a copy so they cannot mutate stored state.
        return record.model_copy(deep=True) if record is not None else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
