"""Privacy helpers shared by the analytics collector."""

import hashlib
import os
import platform
import time
import uuid
from typing import Any

SENSITIVE_KEYS = {"api_key", "apikey", "key", "secret", "token", "open_router_api_key"}


def content_hash(text: str) -> str:
    """Stable, non-reversible 16-hex-char fingerprint of some text."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:16]


def generate_session_id() -> str:
    return f"session-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"


def detect_runtime() -> str:
    if os.environ.get("AWS_LAMBDA_FUNCTION_NAME"):
        return "aws-lambda"
    if os.environ.get("K_SERVICE"):
        return "cloud-run"
    if os.environ.get("VERCEL"):
        return "vercel"
    return "python"


def system_info() -> dict[str, Any]:
    """Coarse, anonymous description of the host."""
    return {
        "platform": platform.system().lower(),
        "arch": platform.machine(),
        "python_version": platform.python_version().rsplit(".", 1)[0],
        "cpu_count": os.cpu_count() or 0,
        "runtime": detect_runtime(),
    }


def user_fingerprint() -> str:
    """Anonymous per-machine id derived from coarse system characteristics."""
    info = system_info()
    joined = "|".join(str(info[k]) for k in sorted(info))
    return content_hash(joined)


def sanitize_config(config: dict[str, Any]) -> dict[str, Any]:
    """Copy of a config mapping with credential-like fields removed."""
    sanitized = {}
    for key, value in config.items():
        if key.lower() in SENSITIVE_KEYS or key.lower().endswith("_key"):
            continue
        if isinstance(value, dict):
            value = sanitize_config(value)
        sanitized[key] = value
    return sanitized


def library_version() -> str:
    from importlib.metadata import PackageNotFoundError, version

    try:
        return version("promptroute")
    except PackageNotFoundError:
        from promptroute import __version__
        return __version__
