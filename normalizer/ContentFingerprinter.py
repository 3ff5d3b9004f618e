# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-01-21
# Description: ContentFingerprinter
# -----------------------------------------------------------------------------
import hashlib
from datetime import datetime, timedelta, timezone
from typing import Optional


def content_hash(normalized_text: str) -> str:
    """SHA-256 hex digest of normalized text. The only cache-validity signal."""
    return hashlib.sha256(normalized_text.encode("utf-8")).hexdigest()


def is_expired(
    generated_at: Optional[datetime],
    max_age_days: int,
    now: Optional[datetime] = None,
) -> bool:
    """
    Secondary invalidation path: a cached vector older than max_age_days may be
    regenerated even when its hash still matches (e.g. to pick up model upgrades).
    max_age_days <= 0 disables the check.
    """
    if max_age_days <= 0 or generated_at is None:
        return False
    now = now or datetime.now(timezone.utc)
    if generated_at.tzinfo is None:
        generated_at = generated_at.replace(tzinfo=timezone.utc)
    return now - generated_at > timedelta(days=max_age_days)
