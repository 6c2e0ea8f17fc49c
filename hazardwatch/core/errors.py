"""Error taxonomy - Pure data.

Every failure the pipeline can surface is one of these types. None of
them is fatal to the process: the shell turns them into dropped records,
failed feed outcomes or notifications.
"""


class HazardWatchError(Exception):
    """Base class for all hazard pipeline errors."""


class FetchError(HazardWatchError):
    """A feed could not produce a batch of records.

    Attributes:
        feed: Name of the feed that failed
    """

    def __init__(self, feed: str, message: str) -> None:
        super().__init__(f"{feed}: {message}")
        self.feed = feed
        self.message = message


class TransientFetchError(FetchError):
    """Network or timeout failure. Retried on the next scheduled tick."""


class FeedSchemaError(FetchError):
    """The feed answered, but the payload does not have the expected shape."""


class RecordParseError(HazardWatchError):
    """A single entry in a payload could not be normalized.

    The entry is dropped; the rest of the batch is unaffected.

    Attributes:
        record_id: Source identifier of the entry, if it had one
        reason: Human-readable description of the problem
    """

    def __init__(self, record_id: str | None, reason: str) -> None:
        super().__init__(f"{record_id or '<no id>'}: {reason}")
        self.record_id = record_id
        self.reason = reason


class CycleFailure(HazardWatchError):
    """A refresh cycle produced nothing usable.

    Raised when every configured feed failed, or when aggregation itself
    raised.

    Attributes:
        failures: (feed, error message) pairs for each failed feed
    """

    def __init__(self, failures: list[tuple[str, str]], message: str | None = None) -> None:
        if message is None:
            names = ", ".join(feed for feed, _ in failures) or "no feeds"
            message = f"All feeds failed: {names}"
        super().__init__(message)
        self.failures = failures
