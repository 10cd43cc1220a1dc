"""Failures raised while materializing a request body."""


class BodySealError(Exception):
    pass


class BodySizeExceeded(BodySealError):
    """Request body larger than the configured maximum; the partial buffer is discarded.

    Callers should reject the request (413) rather than treat this as a transport failure.
    """

    def __init__(self, limit: int, observed: int):
        super().__init__(f"Request body too large: more than {limit} bytes (read {observed})")
        self.limit = limit
        self.observed = observed


class BodyReadError(BodySealError, OSError):
    """The source stream failed while being read."""


class BodyStateError(BodySealError, RuntimeError):
    """Buffering was re-entered while already in progress."""
