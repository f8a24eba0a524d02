import logging
from collections.abc import Callable
from dataclasses import dataclass

from paypal_webhooks.schemas.ingest import EventType, Resource, WebhookEvent
from paypal_webhooks.services.collaborators import Notifier, OrderStatus, OrderStore

logger = logging.getLogger(__name__)


@dataclass
class HandlerContext:
    orders: OrderStore
    notifier: Notifier


Handler = Callable[[Resource, WebhookEvent, HandlerContext], None]


def _amount(resource: Resource) -> tuple[str | None, str | None]:
    if resource.amount is None:
        return None, None
    return resource.amount.value, resource.amount.currency_code


def _missing_order(resource: Resource, event: WebhookEvent) -> bool:
    if resource.order_id:
        return False
    logger.warning(
        f"No order_id on {event.event_type} event {event.id} "
        f"(transaction {resource.id}); nothing to update"
    )
    return True


def handle_capture_completed(
    resource: Resource, event: WebhookEvent, ctx: HandlerContext
) -> None:
    amount, currency = _amount(resource)
    logger.info(
        f"Payment captured: transaction={resource.id} order={resource.order_id} "
        f"amount={amount} {currency} status={resource.status} "
        f"final_capture={resource.final_capture} event={event.id}"
    )
    if _missing_order(resource, event):
        return

    details = {
        "transaction_id": resource.id,
        "amount": amount,
        "currency": currency,
        "status": resource.status,
        "final_capture": resource.final_capture,
        "payer": resource.payer,
        "event_id": event.id,
    }
    changed = ctx.orders.upsert_order_status(
        resource.order_id, OrderStatus.CONFIRMED, details
    )
    if not changed:
        logger.info(f"Order {resource.order_id} already confirmed; skipping notification")
        return
    ctx.notifier.send_confirmation(resource.order_id, details)


def handle_capture_denied(
    resource: Resource, event: WebhookEvent, ctx: HandlerContext
) -> None:
    reason = resource.denial_reason
    logger.info(
        f"Payment capture denied: transaction={resource.id} "
        f"order={resource.order_id} reason={reason} event={event.id}"
    )
    if _missing_order(resource, event):
        return
    ctx.orders.upsert_order_status(
        resource.order_id,
        OrderStatus.FAILED,
        {"transaction_id": resource.id, "reason": reason, "event_id": event.id},
    )


def handle_capture_refunded(
    resource: Resource, event: WebhookEvent, ctx: HandlerContext
) -> None:
    amount, currency = _amount(resource)
    logger.info(
        f"Payment refunded: transaction={resource.id} order={resource.order_id} "
        f"amount={amount} {currency} event={event.id}"
    )
    if _missing_order(resource, event):
        return
    ctx.orders.upsert_order_status(
        resource.order_id,
        OrderStatus.REFUNDED,
        {
            "transaction_id": resource.id,
            "amount": amount,
            "currency": currency,
            "event_id": event.id,
        },
    )


def handle_capture_pending(
    resource: Resource, event: WebhookEvent, ctx: HandlerContext
) -> None:
    logger.info(
        f"Payment capture pending: transaction={resource.id} "
        f"order={resource.order_id} event={event.id}"
    )
    if _missing_order(resource, event):
        return
    ctx.orders.upsert_order_status(
        resource.order_id,
        OrderStatus.PENDING,
        {"transaction_id": resource.id, "event_id": event.id},
    )


def handle_capture_reversed(
    resource: Resource, event: WebhookEvent, ctx: HandlerContext
) -> None:
    logger.info(
        f"Payment capture reversed: transaction={resource.id} "
        f"order={resource.order_id} event={event.id}"
    )
    if _missing_order(resource, event):
        return
    ctx.orders.upsert_order_status(
        resource.order_id,
        OrderStatus.REVERSED,
        {"transaction_id": resource.id, "event_id": event.id},
    )


HANDLERS: dict[EventType, Handler] = {
    EventType.CAPTURE_COMPLETED: handle_capture_completed,
    EventType.CAPTURE_DENIED: handle_capture_denied,
    EventType.CAPTURE_REFUNDED: handle_capture_refunded,
    EventType.CAPTURE_PENDING: handle_capture_pending,
    EventType.CAPTURE_REVERSED: handle_capture_reversed,
}
