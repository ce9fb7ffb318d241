from __future__ import annotations


class StatusboardError(Exception):
    """Base class for dashboard errors."""


class MetricUnavailable(StatusboardError):
    """The local OS query for system metrics failed."""


class ProbeError(StatusboardError):
    """A health probe did not produce a successful response."""


class ProbeTimeout(ProbeError):
    pass


class ProbeUnreachable(ProbeError):
    pass


class ProbeHTTPError(ProbeError):
    def __init__(self, status_code: int) -> None:
        super().__init__(f"HTTP {status_code}")
        self.status_code = status_code


class HistoryWriteFailure(StatusboardError):
    """The history file could not be written."""


class UnknownServiceRequested(StatusboardError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown service: {name}")
        self.name = name
