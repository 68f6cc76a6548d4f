"""Error taxonomy for product resolution and extraction."""


class ScannerError(Exception):
    """Base class for errors surfaced to callers of the scanner."""


class NotFoundError(ScannerError):
    """No source could resolve the requested product."""


class ValidationError(ScannerError):
    """Structured data was malformed or incomplete."""


class ExtractionError(ValidationError):
    """Vision model output could not be turned into a product."""


class NetworkTimeoutError(ScannerError):
    """An upstream call did not finish within its timeout."""


class UpstreamError(ScannerError):
    """An upstream service failed or rejected the request."""
