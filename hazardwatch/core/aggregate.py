"""Feed aggregation - Pure functions.

Merges the batches produced by the feed adapters into one ordered
collection and decides whether the cycle as a whole succeeded.
"""

from dataclasses import dataclass
from typing import Sequence

from hazardwatch.core.errors import CycleFailure
from hazardwatch.core.records import HazardRecord, RecordKey


@dataclass(frozen=True)
class FeedBatch:
    """Records produced by one feed in one cycle.

    Attributes:
        feed: Feed name
        records: Normalized records in feed order
        dropped: Number of payload entries that failed to parse
    """
    feed: str
    records: tuple[HazardRecord, ...] = ()
    dropped: int = 0


@dataclass(frozen=True)
class FeedOutcome:
    """Result of fetching one feed: either a batch or an error.

    Attributes:
        feed: Feed name
        batch: The batch if the fetch succeeded
        error: Error message if the fetch failed
    """
    feed: str
    batch: FeedBatch | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        """Returns True if the feed produced a batch."""
        return self.batch is not None


@dataclass(frozen=True)
class AggregateResult:
    """Merged output of one cycle.

    Attributes:
        records: Records of all successful feeds, in declaration order
        succeeded_feeds: Names of feeds that produced a batch
        failed_feeds: (feed, error) pairs for feeds that failed
        dropped: Total malformed entries dropped across feeds
    """
    records: tuple[HazardRecord, ...]
    succeeded_feeds: tuple[str, ...] = ()
    failed_feeds: tuple[tuple[str, str], ...] = ()
    dropped: int = 0

    @property
    def partial(self) -> bool:
        """Returns True if some, but not all, feeds failed."""
        return bool(self.failed_feeds) and bool(self.succeeded_feeds)


def merge(
    batches: Sequence[tuple[str, Sequence[HazardRecord]]],
) -> list[HazardRecord]:
    """Concatenate feed batches into one ordered collection.

    Pure function. Batches are taken in declaration order and records
    keep their order within a feed. Identity is (feed, id), so equal ids
    from different feeds never collide; a repeated id within one feed
    keeps its first occurrence.

    Args:
        batches: (feed name, records) pairs in feed-declaration order

    Returns:
        Merged list of records
    """
    seen: set[RecordKey] = set()
    merged: list[HazardRecord] = []

    for feed, records in batches:
        for record in records:
            key = (feed, record.id)
            if key in seen:
                continue
            seen.add(key)
            merged.append(record)

    return merged


def aggregate(outcomes: Sequence[FeedOutcome]) -> AggregateResult:
    """Merge the outcomes of one cycle's fetches.

    Pure function. Failed feeds contribute no records but do not affect
    the others.

    Args:
        outcomes: One outcome per configured feed, in declaration order

    Returns:
        AggregateResult with merged records and per-feed status

    Raises:
        CycleFailure: If at least one feed is configured and all of them failed
    """
    failed = tuple(
        (outcome.feed, outcome.error or "unknown error")
        for outcome in outcomes
        if not outcome.succeeded
    )

    if outcomes and len(failed) == len(outcomes):
        raise CycleFailure(list(failed))

    batches = [outcome.batch for outcome in outcomes if outcome.batch is not None]

    return AggregateResult(
        records=tuple(merge([(batch.feed, batch.records) for batch in batches])),
        succeeded_feeds=tuple(batch.feed for batch in batches),
        failed_feeds=failed,
        dropped=sum(batch.dropped for batch in batches),
    )
