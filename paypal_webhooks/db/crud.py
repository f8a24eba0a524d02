from datetime import datetime, timedelta

from paypal_webhooks.db import models
from sqlalchemy.orm import Session


def get_processed_event(
    db: Session, event_id: str, since: datetime | None = None
) -> models.ProcessedEvent | None:
    query = db.query(models.ProcessedEvent).filter_by(event_id=event_id)
    if since is not None:
        query = query.filter(models.ProcessedEvent.processed_at >= since)
    return query.first()


def record_processed_event(
    db: Session, event_id: str, event_type: str
) -> models.ProcessedEvent:
    """Insert or refresh the ledger row for an event id.

    An expired row for the same id is reused so the unique constraint only
    rejects genuinely concurrent deliveries.
    """
    row = db.query(models.ProcessedEvent).filter_by(event_id=event_id).first()
    if row:
        row.event_type = event_type
        row.processed_at = models.utc_now()
    else:
        row = models.ProcessedEvent(event_id=event_id, event_type=event_type)
        db.add(row)
    db.commit()
    db.refresh(row)
    return row


def purge_processed_events(db: Session, older_than: datetime) -> int:
    deleted = (
        db.query(models.ProcessedEvent)
        .filter(models.ProcessedEvent.processed_at < older_than)
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted


def ttl_cutoff(ttl_seconds: int) -> datetime:
    return models.utc_now() - timedelta(seconds=ttl_seconds)
