"""
Error taxonomy for the reporting core.

InvalidFilter is a programming error (filter states are built through the
transition helpers, so it should never reach a user). AggregationFailure and
MutationFailure are recoverable and are turned into explicit result values
before they cross into the HTTP layer. NotFoundLocally never leaves a
subscriber.
"""


class ReportingError(Exception):
    """Base error for the reporting core."""


class InvalidFilter(ReportingError):
    """Filter state is malformed or contradictory."""


class StoreError(ReportingError):
    """The record store could not serve a read or a write."""

    def __init__(self, message: str, table: str | None = None, record_id: str | None = None):
        self.table = table
        self.record_id = record_id
        super().__init__(message)


class AggregationFailure(ReportingError):
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class MutationFailure(ReportingError):
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundLocally(ReportingError):
    """A broadcast referenced a record the subscriber has not loaded."""

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"Record '{record_id}' is not loaded locally.")
