from __future__ import annotations

import hashlib
import html
import re
from datetime import datetime, timezone


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def normalize_whitespace(value: str) -> str:
    return re.sub(r"\s+", " ", value or "").strip()


def strip_html(value: str) -> str:
    text = re.sub(r"<[^>]+>", " ", value or "")
    text = html.unescape(text)
    return normalize_whitespace(text)


def stable_id(*parts: str, length: int = 16) -> str:
    payload = "|".join(part for part in parts if part)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:length]
