"""
CWC Web: Utility Helpers
==========================

Pure helpers shared by the tabs: passphrase strength, payload parsing,
duration formatting and metadata rows for display. Nothing here touches
Streamlit, so it can be tested directly.
"""

from __future__ import annotations

import json
import math
import re
from datetime import datetime, timezone
from typing import Any, List, Optional, Tuple

import cwc
from cwc.core import serialize


# ---------------------------------------------------------------------------
# Passphrase strength
# ---------------------------------------------------------------------------

_POOLS = (
    (re.compile(r"[a-z]"), 26),
    (re.compile(r"[A-Z]"), 26),
    (re.compile(r"[0-9]"), 10),
    (re.compile(r"[^a-zA-Z0-9]"), 32),
)


def passphrase_strength(passphrase: str) -> Tuple[int, str, str]:
    """
    Estimate passphrase strength from character-pool entropy.

    Returns
    -------
    (score, label, color)
        score is 0-100 against a 128-bit target; label is one of
        "Weak" / "Fair" / "Good" / "Strong" or "" for empty input.
    """
    if not passphrase:
        return 0, "", "#6c6c80"

    pool = max(sum(size for pattern, size in _POOLS if pattern.search(passphrase)), 1)
    entropy = len(passphrase) * math.log2(pool)
    score = min(int(entropy * 100 / 128), 100)

    if score < 25:
        return score, "Weak", "#e74c3c"
    if score < 50:
        return score, "Fair", "#f39c12"
    if score < 75:
        return score, "Good", "#3498db"
    return score, "Strong", "#2ecc71"


# ---------------------------------------------------------------------------
# Payload input / output
# ---------------------------------------------------------------------------

def parse_payload(text: str, as_json: bool = True) -> Any:
    """
    Turn the text box contents into the value to encode.

    With *as_json* the text must be a JSON document; otherwise it is
    encoded as a plain string.
    """
    if not as_json:
        return text
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Input is not valid JSON (line {exc.lineno}, column {exc.colno}).") from exc


def pretty_payload(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, indent=2, ensure_ascii=False)


def size_summary(value: Any, token: str) -> str:
    """One-line comparison of serialized JSON size and token length."""
    json_len = len(serialize(value).encode("utf-8"))
    ratio = len(token) / json_len if json_len else 0.0
    return f"JSON {json_len:,} B  →  token {len(token):,} chars  ({ratio:.2f}×)"


# ---------------------------------------------------------------------------
# Time
# ---------------------------------------------------------------------------

def format_duration(seconds: Optional[float]) -> str:
    """``3725 -> '1h 2m 5s'``; ``None -> '∞'``."""
    if seconds is None:
        return "∞"
    remaining = int(max(seconds, 0))
    if remaining == 0:
        return "0s"
    parts = []
    for unit, size in (("d", 86400), ("h", 3600), ("m", 60), ("s", 1)):
        count, remaining = divmod(remaining, size)
        if count:
            parts.append(f"{count}{unit}")
    return " ".join(parts)


def format_timestamp(epoch: Optional[int]) -> str:
    if epoch is None:
        return "—"
    return datetime.fromtimestamp(epoch, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def metadata_rows(metadata: cwc.TokenMetadata) -> List[Tuple[str, str]]:
    """Label / value pairs describing a token header."""
    return [
        ("Version", str(metadata.version)),
        ("Algorithm", metadata.algorithm.value),
        ("Compression", metadata.compression.value),
        ("Issued", format_timestamp(metadata.timestamp)),
        ("TTL", format_duration(metadata.ttl) if metadata.ttl is not None else "—"),
        ("Expires", format_timestamp(metadata.expires_at)),
    ]
