import enum
import logging

import sqlalchemy.exc
from paypal_webhooks.db import crud
from paypal_webhooks.schemas.ingest import EventType, Resource, WebhookEvent
from paypal_webhooks.services.handlers import HANDLERS, Handler, HandlerContext
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


class DispatchOutcome(str, enum.Enum):
    HANDLED = "handled"
    DUPLICATE = "duplicate"
    IGNORED = "ignored"


class ProcessedEventLedger:
    """Remembers which event ids were handled within the last ttl_seconds."""

    def __init__(self, db: Session, ttl_seconds: int):
        self.db = db
        self.ttl_seconds = ttl_seconds

    def seen(self, event_id: str) -> bool:
        since = crud.ttl_cutoff(self.ttl_seconds)
        return crud.get_processed_event(self.db, event_id, since=since) is not None

    def record(self, event_id: str, event_type: str) -> bool:
        """Record an event id. Return False if another delivery got there first."""
        try:
            crud.record_processed_event(self.db, event_id, event_type)
        except sqlalchemy.exc.IntegrityError:
            self.db.rollback()
            logger.info(f"Event {event_id} recorded concurrently by another delivery")
            return False
        return True


class EventDispatcher:
    def __init__(
        self,
        context: HandlerContext,
        ledger: ProcessedEventLedger | None = None,
        handlers: dict[EventType, Handler] | None = None,
    ):
        self.context = context
        self.ledger = ledger
        self.handlers = HANDLERS if handlers is None else handlers

    def dispatch(self, event: WebhookEvent) -> DispatchOutcome:
        logger.info(
            f"Processing webhook event: {event.event_type} "
            f"(id={event.id}, created={event.create_time})"
        )

        event_type = EventType.parse(event.event_type)
        handler = self.handlers.get(event_type) if event_type else None
        if handler is None:
            logger.info(f"Unhandled webhook event type: {event.event_type}")
            return DispatchOutcome.IGNORED

        if self.ledger is not None and event.id and self.ledger.seen(event.id):
            logger.info(f"Event {event.id} ({event.event_type}) already processed")
            return DispatchOutcome.DUPLICATE

        handler(event.resource or Resource(), event, self.context)

        if self.ledger is not None and event.id:
            if not self.ledger.record(event.id, event_type.value):
                return DispatchOutcome.DUPLICATE
        return DispatchOutcome.HANDLED
