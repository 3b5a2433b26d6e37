from __future__ import annotations

import re


_RE_BEARER = re.compile(r"(?i)\bBearer\s+([A-Za-z0-9._\-+/=]{8,})")
_RE_OPENROUTER_SK = re.compile(r"\bsk-or-v1-[A-Za-z0-9_\-]{10,}\b")
_RE_PROVIDER_SK = re.compile(r"\bsk-(?:ant-|proj-)?[A-Za-z0-9_\-]{10,}\b")
_RE_GOOGLE_KEY = re.compile(r"\bAIza[0-9A-Za-z_\-]{30,}\b")


def redact_secrets(text: str) -> str:
    """
    Best-effort secret redaction for log lines and upstream error text.

    Upstream error messages sometimes echo the Authorization header or a
    provider key back; anything shaped like one is replaced before logging.
    """
    if not text:
        return text

    out = text
    out = _RE_BEARER.sub("Bearer [REDACTED]", out)
    out = _RE_OPENROUTER_SK.sub("[REDACTED]", out)
    out = _RE_PROVIDER_SK.sub("[REDACTED]", out)
    out = _RE_GOOGLE_KEY.sub("[REDACTED]", out)
    return out
