"""Address, identifier and day-bucket helpers shared by every component."""

from __future__ import annotations

ADDRESS_ZERO = "0x0000000000000000000000000000000000000000"
SECONDS_PER_DAY = 86400


def normalize_address(s: str) -> str:
    """Canonicalize an address or hash: trimmed, 0x-prefixed, lowercase hex."""
    s = (s or "").strip()
    if not s:
        return s
    if s[:2].lower() == "0x":
        s = s[2:]
    return "0x" + s.lower()


def is_null_address(s: str) -> bool:
    return normalize_address(s) == ADDRESS_ZERO


def timestamp_to_day(timestamp: int) -> int:
    """Day bucket (days since epoch) for a block timestamp in seconds."""
    return timestamp // SECONDS_PER_DAY


def event_key(transaction_hash: str, log_index: int, kind: str) -> str:
    """Identity of one economic event. Unique even when a transaction emits several of one kind."""
    return f"{normalize_address(transaction_hash)}-{log_index}-{kind}"


def join_id(*parts: object) -> str:
    return "-".join(str(p) for p in parts)
