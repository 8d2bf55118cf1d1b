"""Error types shared by the fetch layer, the service and the renderers."""


class SparklineError(Exception):
    """Base class for sparkline failures."""


class NoDataError(SparklineError, ValueError):
    """No price data: every tier came back empty, or an empty series was analyzed."""


class UpstreamFailure(SparklineError):
    """A provider (or a whole ordered provider list) failed to answer."""
