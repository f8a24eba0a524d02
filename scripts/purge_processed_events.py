#!/usr/bin/env python
"""
Delete processed-event ledger rows older than DEDUP_TTL_SECONDS.

Usage:
    python scripts/purge_processed_events.py
"""
from paypal_webhooks.core.config import get_settings
from paypal_webhooks.db import crud
from paypal_webhooks.db.session import SessionLocal


def main() -> None:
    settings = get_settings()
    db = SessionLocal()
    try:
        deleted = crud.purge_processed_events(
            db, crud.ttl_cutoff(settings.dedup_ttl_seconds)
        )
    finally:
        db.close()
    print(f"Purged {deleted} processed events older than {settings.dedup_ttl_seconds}s")


if __name__ == "__main__":
    main()
