import enum
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class EventType(str, enum.Enum):
    CAPTURE_COMPLETED = "PAYMENT.CAPTURE.COMPLETED"
    CAPTURE_DENIED = "PAYMENT.CAPTURE.DENIED"
    CAPTURE_REFUNDED = "PAYMENT.CAPTURE.REFUNDED"
    CAPTURE_PENDING = "PAYMENT.CAPTURE.PENDING"
    CAPTURE_REVERSED = "PAYMENT.CAPTURE.REVERSED"

    @classmethod
    def parse(cls, value: str) -> "EventType | None":
        """Return the matching member, or None for types we don't handle."""
        try:
            return cls(value)
        except ValueError:
            return None


class Amount(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    value: str | None = None
    currency_code: str | None = None


class RelatedIds(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    order_id: str | None = None


class SupplementaryData(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    related_ids: RelatedIds | None = None


class StatusDetails(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    reason: str | None = None


class Resource(BaseModel):
    """The capture object carried by PAYMENT.CAPTURE.* events.

    Only the fields the handlers read are declared; everything else PayPal
    sends is kept as extra attributes.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    id: str | None = Field(None, description="Capture (transaction) ID")
    status: str | None = None
    amount: Amount | None = None
    final_capture: bool | None = None
    reason_code: str | None = None
    status_details: StatusDetails | None = None
    payer: dict[str, Any] | None = None
    supplementary_data: SupplementaryData | None = None

    @property
    def order_id(self) -> str | None:
        if self.supplementary_data and self.supplementary_data.related_ids:
            return self.supplementary_data.related_ids.order_id
        return None

    @property
    def denial_reason(self) -> str | None:
        if self.reason_code:
            return self.reason_code
        if self.status_details:
            return self.status_details.reason
        return None


class WebhookEvent(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    id: str | None = Field(None, description="PayPal event ID")
    event_type: str = Field(..., min_length=1, description="Event type / name")
    create_time: datetime | None = None
    resource_type: str | None = None
    summary: str | None = None
    resource: Resource | None = None


class WebhookAck(BaseModel):
    received: bool = True
    eventId: str | None
    eventType: str
