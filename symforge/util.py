"""Proposal identifiers."""

from __future__ import annotations

import secrets
from datetime import datetime, timezone

# Crockford base32: no I, L, O or U.
_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"


def new_proposal_id(now: datetime | None = None) -> str:
    """
    Governance proposal id: GP-<YYYYMMDD>-<ULID>.

    The ULID suffix is 26 base32 characters: the 48-bit millisecond
    timestamp of `now` followed by 80 random bits, so ids from the same
    day sort by creation time.
    """
    now = now or datetime.now(timezone.utc)
    millis = int(now.timestamp() * 1000)
    if not 0 <= millis < 1 << 48:
        raise ValueError(f"timestamp out of range for a proposal id: {now.isoformat()}")

    value = millis << 80 | secrets.randbits(80)
    digits = []
    for _ in range(26):
        value, rem = divmod(value, 32)
        digits.append(_ALPHABET[rem])
    return f"GP-{now:%Y%m%d}-{''.join(reversed(digits))}"
