import secrets
from datetime import datetime, timezone
from typing import Optional

TRACKING_PREFIX = "PRCL"


def generate_tracking_id(now: Optional[datetime] = None) -> str:
    """
    Generate a receipt code like PRCL-20250114-3FA9C2.

    The date is the UTC day; the suffix is 3 random bytes in uppercase hex.
    """
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return f"{TRACKING_PREFIX}-{now.strftime('%Y%m%d')}-{secrets.token_hex(3).upper()}"
