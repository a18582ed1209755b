"""Typed error taxonomy for the retrieval engine."""
from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from domain.entities import StrategyFailure


class MaterialSearchError(Exception):
    """Base class for engine errors."""


class CollaboratorUnavailable(MaterialSearchError):
    """A document store, vector index or embedding provider could not be reached."""

    def __init__(self, collaborator: str, reason: str = "") -> None:
        self.collaborator = collaborator
        self.reason = reason
        message = f"{collaborator} unavailable"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class StrategyTimeout(CollaboratorUnavailable):
    def __init__(self, strategy: str, collection: str, timeout: float) -> None:
        self.strategy = strategy
        self.collection = collection
        self.timeout = timeout
        super().__init__(strategy, f"no answer from '{collection}' within {timeout:.2f}s")


class AllStrategiesFailed(MaterialSearchError):
    """Every launched strategy failed or timed out for one query.

    Returned on `SearchOutcome.error`, never raised out of `search`.
    """

    def __init__(self, failures: Sequence[StrategyFailure]) -> None:
        self.failures = list(failures)
        summary = ", ".join(f"{f.strategy.value}@{f.collection}" for f in self.failures)
        super().__init__(f"all strategies failed ({summary or 'none launched'})")


class MalformedRecord(MaterialSearchError):
    def __init__(self, record_id: str | None, reason: str) -> None:
        self.record_id = record_id
        self.reason = reason
        super().__init__(f"malformed record {record_id or '<no id>'}: {reason}")


__all__ = [
    "AllStrategiesFailed",
    "CollaboratorUnavailable",
    "MalformedRecord",
    "MaterialSearchError",
    "StrategyTimeout",
]
