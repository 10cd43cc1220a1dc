import os
from dataclasses import dataclass
from typing import Tuple
from dotenv import load_dotenv

load_dotenv()

# Request body guardrails
BODY_MAX_BYTES = int(os.getenv("BODY_MAX_BYTES", "1048576"))
BODY_READ_CHUNK_BYTES = int(os.getenv("BODY_READ_CHUNK_BYTES", "4096"))

# Content digest verification
DIGEST_METHODS = [m.strip().upper() for m in os.getenv("DIGEST_METHODS", "POST,PUT,PATCH").split(",") if m.strip()]
DIGEST_ENFORCE = os.getenv("DIGEST_ENFORCE", "advisory").lower()  # advisory|enforce|require

FEATURE_BODY_DIGEST = os.getenv("FEATURE_BODY_DIGEST", "true").lower() == "true"

ENFORCE_MODES = ("advisory", "enforce", "require")


@dataclass(frozen=True)
class Settings:
    max_body_bytes: int
    chunk_size: int
    methods: Tuple[str, ...]
    enforce: str


def load_settings() -> Settings:
    """Re-read the environment (tests flip these with monkeypatch.setenv)."""
    enforce = os.getenv("DIGEST_ENFORCE", DIGEST_ENFORCE).lower()
    if enforce not in ENFORCE_MODES:
        raise ValueError(f"DIGEST_ENFORCE must be one of {ENFORCE_MODES}, got {enforce!r}")
    methods = os.getenv("DIGEST_METHODS")
    return Settings(
        max_body_bytes=int(os.getenv("BODY_MAX_BYTES", str(BODY_MAX_BYTES))),
        chunk_size=int(os.getenv("BODY_READ_CHUNK_BYTES", str(BODY_READ_CHUNK_BYTES))),
        methods=tuple(
            [m.strip().upper() for m in methods.split(",") if m.strip()] if methods is not None else DIGEST_METHODS
        ),
        enforce=enforce,
    )
