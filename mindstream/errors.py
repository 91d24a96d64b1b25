"""Exceptions raised across the gateway's collaborators."""


class MindstreamError(Exception):
    """Base class for all errors raised by mindstream."""


class AuthError(MindstreamError):
    """No authenticated user is attached to the request."""


class WriteError(MindstreamError):
    """A persistence write (insert, upsert or delete) did not complete."""


class GenerationError(MindstreamError):
    """The summarizer failed: network, quota, or a malformed/empty reply."""


class RecognizerError(MindstreamError):
    """The page's speech recognizer could not be driven."""


class ReadError(MindstreamError):
    """A persistence read could not be served."""
