"""
Identifier minting for feedback submissions.

Reference codes are short and human-facing (``FB-YYYYMMDD-XXXXX``) and may
collide; survey tokens are 122-bit random hex strings and are treated as
unguessable.
"""

import secrets
import uuid
from datetime import datetime, timezone
from typing import Optional

from common.constants import (
    REFERENCE_CODE_ALPHABET,
    REFERENCE_CODE_PREFIX,
    REFERENCE_CODE_SUFFIX_LENGTH,
)


def mint_reference_code(now: Optional[datetime] = None) -> str:
    """
    Build a reference code dated with the UTC day of ``now``.

    Naive datetimes are taken to be UTC already.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is not None:
        now = now.astimezone(timezone.utc)

    suffix = "".join(
        secrets.choice(REFERENCE_CODE_ALPHABET) for _ in range(REFERENCE_CODE_SUFFIX_LENGTH)
    )
    return f"{REFERENCE_CODE_PREFIX}-{now.strftime('%Y%m%d')}-{suffix}"


def mint_survey_token() -> str:
    return uuid.uuid4().hex


def normalize_reference_code(code: str) -> str:
    """Reference codes are case-insensitive on lookup."""
    return (code or "").strip().upper()
