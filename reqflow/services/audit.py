"""
audit.py — Transaction identifiers and append-only requisition history

Business Rules:
- Transaction IDs look like PR-YYYYMMDD-XXXXXX (upper-case alphanumeric
  suffix from `secrets`); the DB unique constraint is the real guarantee,
  the store retries on collision
- Split children append a sequence number to the parent's ID, so they
  still match the PR-YYYYMMDD-XXXXXX shape
- append_history never mutates its input and never reorders entries
- A new entry's timestamp is clamped to the last entry's so timestamps
  never decrease along the sequence

Called by: services/store.py, approval_service, split_service,
           quote_service, invoice_service
Depends on: config (suffix length), schemas/records
"""

from __future__ import annotations

import re
import secrets
import string
from datetime import date, datetime, timezone
from typing import Iterable

from ..config import settings
from ..schemas.records import HistoryEntry

_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits

TRANSACTION_ID_RE = re.compile(r"^PR-\d{8}-[A-Z0-9]+$")


def generate_transaction_id(today: date | None = None, length: int | None = None) -> str:
    """PR-{yyyymmdd}-{random suffix}."""
    today = today or datetime.now(timezone.utc).date()
    n = length or settings.transaction_id_suffix_length
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(n))
    return f"PR-{today:%Y%m%d}-{suffix}"


def split_transaction_id(parent_transaction_id: str, sequence: int) -> str:
    """Child ID derived from the parent's: PR-20260101-ABC1232."""
    return f"{parent_transaction_id}{sequence}"


def history_entry(action: str, actor, details: str = "", at: datetime | None = None) -> HistoryEntry:
    return HistoryEntry(
        action=action,
        actor_id=actor.id,
        actor_name=actor.name,
        timestamp=at or datetime.now(timezone.utc),
        details=details or "",
    )


def append_history(current: Iterable[HistoryEntry], entry: HistoryEntry) -> tuple[HistoryEntry, ...]:
    """Return a new sequence with `entry` appended."""
    existing = tuple(current or ())
    if existing and entry.timestamp < existing[-1].timestamp:
        entry = entry.model_copy(update={"timestamp": existing[-1].timestamp})
    return existing + (entry,)
