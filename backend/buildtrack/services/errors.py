"""Errors surfaced by the aggregation engine."""


class EngineError(Exception):
    """Base class for errors raised by the BuildTrack engine."""


class MissingDataError(EngineError):
    """
    Raised when there is nothing to aggregate: the BOM or project document is
    absent, or is not shaped like one at all.

    Callers decide what to show (e.g. "No BOM available").
    """

    def __init__(self, what: str, message: str = ""):
        self.what = what
        super().__init__(message or f"No {what} data available")
