"""Interfaces the handlers call for side effects, plus log-only defaults.

Persisting order state and sending email live outside this service. Wire real
implementations in through the ``get_order_store`` / ``get_notifier``
dependencies in ``paypal_webhooks.main``.
"""
import enum
import logging
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class OrderStatus(str, enum.Enum):
    CONFIRMED = "confirmed"
    FAILED = "failed"
    REFUNDED = "refunded"
    PENDING = "pending"
    REVERSED = "reversed"


class OrderStore(Protocol):
    def upsert_order_status(
        self, order_id: str, status: OrderStatus, metadata: dict[str, Any]
    ) -> bool:
        """Set the order's status. Return True if the stored record changed."""
        ...


class Notifier(Protocol):
    def send_confirmation(self, order_id: str, details: dict[str, Any]) -> None:
        ...


class LoggingOrderStore:
    def upsert_order_status(
        self, order_id: str, status: OrderStatus, metadata: dict[str, Any]
    ) -> bool:
        logger.info(f"Order {order_id} -> {status.value} {metadata}")
        return True


class LoggingNotifier:
    def send_confirmation(self, order_id: str, details: dict[str, Any]) -> None:
        logger.info(f"Payment confirmed for order {order_id}, notification pending: {details}")
