from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from dotenv import load_dotenv
from .config import FEATURE_BODY_DIGEST
from .crypto.digest import DigestAlgorithm, compute
from .http.middleware import ContentDigestMiddleware
from .http.models import DigestCheck
from .obs.prom import prometheus_latest
from .utils.logging import get_logger

load_dotenv()

app = FastAPI(title="bodyseal: request content digest cache")
log = get_logger()

# Digest middleware (advisory by default; DIGEST_ENFORCE=enforce|require tightens it)
if FEATURE_BODY_DIGEST:
    app.add_middleware(ContentDigestMiddleware)


@app.get("/__health")
async def health():
    return {"status": "ok"}


@app.get("/__metrics")
async def metrics():
    payload, content_type = prometheus_latest()
    return Response(content=payload, media_type=content_type)


@app.post("/digest/echo")
async def digest_echo(request: Request):
    # Body arrives through the middleware's replay (or straight from the client when no digest was sent)
    body = await request.body()
    check = getattr(request.state, "content_digest", None) or DigestCheck(
        present=False, verified=False, failure_reason="no_middleware"
    )
    wrapped = getattr(request.state, "content", None)
    digests = {}
    for alg in DigestAlgorithm:
        value = wrapped.get_digest(alg) if wrapped is not None else (compute(alg, body) if body else None)
        digests[alg.value] = value.hex() if value is not None else None
    return JSONResponse({"length": len(body), "digests": digests, "check": check.model_dump()})
