"""
Error kinds raised by the feed pipeline.

Every pipeline error derives from FeedError and carries a short `kind` tag so
callers (e.g. the HTTP layer) can branch on it without string matching.
DataSourceError is the boundary error raised by data-source implementations;
the candidate source translates it into SourceUnavailable.

An empty Timeline or notification list is a valid result, never an error.
"""

from typing import Optional


class FeedError(Exception):
    """Base class for all typed pipeline errors."""

    kind = "feed_error"


class SourceUnavailable(FeedError):
    """An origin fetch failed or timed out and the run could not degrade."""

    kind = "source_unavailable"

    def __init__(self, message: str, origin: Optional[str] = None, transient: bool = False):
        super().__init__(message)
        self.origin = origin
        self.transient = transient


class InvalidConfiguration(FeedError):
    """Weights out of range, negative limits, or an unparseable config file."""

    kind = "invalid_configuration"


class ModelLoadFailure(FeedError):
    """Scoring model weights are missing, malformed, or have the wrong shape."""

    kind = "model_load_failure"


class PipelineError(FeedError):
    """A stage failed unexpectedly; `stage` names which one."""

    kind = "pipeline_error"

    def __init__(self, message: str, stage: str):
        super().__init__(message)
        self.stage = stage


class DataSourceError(Exception):
    """
    Raised by DataSource implementations.

    transient=True marks errors worth retrying (timeouts, throttling);
    transient=False marks permanent failures (unknown user, bad request).
    """

    def __init__(self, message: str, transient: bool = True):
        super().__init__(message)
        self.transient = transient
