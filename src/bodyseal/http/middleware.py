"""Content digest verification middleware.

For the configured methods the request body is wrapped in a DigestingRequest.
When the client declares integrity headers (or digests are required) the body
is buffered once in a worker thread, checked against the headers, and replayed
to the downstream app. Otherwise the request passes through untouched.
"""

from typing import Iterable, Optional

from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message

from ..body.errors import BodyReadError, BodySizeExceeded
from ..body.wrapper import DigestingRequest
from ..config import ENFORCE_MODES, load_settings
from ..obs.prom import observe_buffering, observe_digest_check
from ..utils.logging import get_logger
from .models import DigestCheck
from .source import IncomingRequest
from .verify import has_integrity_headers, verify_content_digests

log = get_logger()


class ContentDigestMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app: ASGIApp,
        maximum_length: Optional[int] = None,
        methods: Optional[Iterable[str]] = None,
        enforce: Optional[str] = None,
        chunk_size: Optional[int] = None,
    ):
        super().__init__(app)
        if enforce is not None and enforce not in ENFORCE_MODES:
            raise ValueError(f"enforce must be one of {ENFORCE_MODES}")
        self.maximum_length = maximum_length
        self.methods = {m.upper() for m in methods} if methods is not None else None
        self.enforce = enforce
        self.chunk_size = chunk_size

    async def dispatch(self, request: Request, call_next):
        # Unset options are re-read from the env each request so monkeypatched tests see them
        settings = load_settings()
        maximum_length = self.maximum_length if self.maximum_length is not None else settings.max_body_bytes
        methods = self.methods if self.methods is not None else set(settings.methods)
        enforce = self.enforce or settings.enforce
        chunk_size = self.chunk_size or settings.chunk_size
        route = request.url.path

        if request.method.upper() not in methods:
            return await call_next(request)

        if not has_integrity_headers(request.headers):
            request.state.content = None
            request.state.content_digest = DigestCheck(present=False, verified=False, failure_reason="missing_digest")
            if enforce == "require":
                observe_digest_check(False, "missing_digest")
                log.info(f"content digest required but missing route={route}")
                return JSONResponse({"error": "content_digest_required"}, status_code=400)
            return await call_next(request)

        original_receive = request.receive
        wrapped = DigestingRequest(IncomingRequest(request.scope, original_receive), maximum_length, chunk_size)
        try:
            check = await run_in_threadpool(buffer_and_verify, wrapped)
        except BodySizeExceeded as exc:
            observe_buffering("too_large")
            log.info(f"rejected oversized body route={route} limit={exc.limit} observed>={exc.observed}")
            return JSONResponse({"error": "body_too_large", "limit": exc.limit}, status_code=413)
        except BodyReadError as exc:
            observe_buffering("read_error")
            log.warning(f"request body read failed route={route}: {exc}")
            return JSONResponse({"error": "body_read_failed"}, status_code=500)

        observe_buffering("buffered", len(wrapped.body or b""))
        observe_digest_check(check.verified, check.failure_reason, [a.value for a in wrapped.computed_digests()])
        request.state.content = wrapped
        request.state.content_digest = check
        if not check.verified:
            log.info(f"content digest check failed route={route} reason={check.failure_reason} mode={enforce}")
            if enforce != "advisory":
                return JSONResponse(
                    {"error": "content_digest_mismatch", "reason": check.failure_reason},
                    status_code=400,
                )

        request._receive = replay_receive(wrapped, original_receive, chunk_size)
        return await call_next(request)


def buffer_and_verify(wrapped: DigestingRequest) -> DigestCheck:
    # buffer even when the headers turn out unusable, so the replay never touches the raw channel
    wrapped.ensure_buffered()
    return verify_content_digests(wrapped)


def replay_receive(wrapped: DigestingRequest, original_receive, chunk_size: int):
    """ASGI receive callable serving the buffered body, then deferring to the client channel."""
    stream = wrapped.open_stream()
    done = False

    async def receive() -> Message:
        nonlocal done
        if done:
            # only http.disconnect remains on the real channel
            return await original_receive()
        chunk = stream.read(chunk_size)
        done = stream.is_finished()
        return {"type": "http.request", "body": chunk, "more_body": not done}

    return receive
