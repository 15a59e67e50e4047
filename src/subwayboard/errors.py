"""Exceptions raised while polling the MTA feed."""


class IngestError(Exception):
    """Base class for failures that should leave the previous snapshot in place."""


class TransportError(IngestError):
    """Raised when the upstream feed is unreachable, times out, or returns non-2xx."""


class DecodeError(IngestError):
    """Raised when feed bytes cannot be decoded or carry an unexpected time shape."""
