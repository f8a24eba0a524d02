import enum
import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx
from paypal_webhooks.core.config import Settings
from paypal_webhooks.errors import UpstreamError, UpstreamTimeout
from paypal_webhooks.services.paypal_auth import fetch_access_token

logger = logging.getLogger(__name__)

VERIFY_PATH = "/notifications/verify-webhook-signature"

# verification payload field -> transport header
SIGNATURE_HEADERS = {
    "auth_algo": "paypal-auth-algo",
    "cert_url": "paypal-cert-url",
    "transmission_id": "paypal-transmission-id",
    "transmission_sig": "paypal-transmission-sig",
    "transmission_time": "paypal-transmission-time",
}


class VerificationFailure(str, enum.Enum):
    MISSING_HEADERS = "missing_headers"
    INVALID_BODY = "invalid_body"
    TOKEN_FAILED = "token_failed"
    TIMEOUT = "timeout"
    UNREACHABLE = "unreachable"
    REJECTED = "rejected"
    MALFORMED_RESPONSE = "malformed_response"
    NOT_SUCCESS = "not_success"


@dataclass(frozen=True)
class VerificationResult:
    verified: bool
    reason: VerificationFailure | None = None
    detail: str = ""

    def __bool__(self) -> bool:
        return self.verified


def _fail(reason: VerificationFailure, detail: str = "") -> VerificationResult:
    return VerificationResult(verified=False, reason=reason, detail=detail)


def extract_signature_headers(headers: Mapping[str, str]) -> dict[str, str] | None:
    """Pick the five PayPal signature headers, or None if any is absent."""
    lowered = {k.lower(): v for k, v in headers.items()}
    found = {field: lowered.get(name) for field, name in SIGNATURE_HEADERS.items()}
    if not all(found.values()):
        return None
    return found


def _as_event_dict(event: Any) -> dict[str, Any]:
    if isinstance(event, (bytes, bytearray)):
        event = event.decode("utf-8")
    if isinstance(event, str):
        event = json.loads(event)
    if not isinstance(event, dict):
        raise ValueError("webhook event must be a JSON object")
    return event


class PayPalSignatureVerifier:
    """Asks PayPal's verify-webhook-signature API whether a delivery is genuine.

    The result is a plain boolean at the trust boundary. The reason for a
    rejection is only ever written to the log.
    """

    def __init__(self, client: httpx.AsyncClient, settings: Settings):
        self.client = client
        self.settings = settings

    async def verify(
        self, headers: Mapping[str, str], event: Any, webhook_id: str
    ) -> bool:
        result = await self.check(headers, event, webhook_id)
        if not result:
            logger.error(
                f"Webhook signature verification failed "
                f"({result.reason.value}): {result.detail}"
            )
        return result.verified

    async def check(
        self, headers: Mapping[str, str], event: Any, webhook_id: str
    ) -> VerificationResult:
        sig = extract_signature_headers(headers)
        if sig is None:
            return _fail(
                VerificationFailure.MISSING_HEADERS,
                "Missing PayPal webhook signature headers",
            )

        try:
            webhook_event = _as_event_dict(event)
        except ValueError as exc:
            return _fail(VerificationFailure.INVALID_BODY, str(exc))

        try:
            access_token = await fetch_access_token(self.client, self.settings)
        except UpstreamTimeout as exc:
            return _fail(VerificationFailure.TIMEOUT, str(exc))
        except UpstreamError as exc:
            return _fail(VerificationFailure.TOKEN_FAILED, str(exc))

        payload = {**sig, "webhook_id": webhook_id, "webhook_event": webhook_event}

        try:
            r = await self.client.post(
                VERIFY_PATH,
                json=payload,
                headers={"Authorization": f"Bearer {access_token}"},
            )
        except httpx.TimeoutException as exc:
            return _fail(VerificationFailure.TIMEOUT, f"Verify call timed out: {exc}")
        except httpx.HTTPError as exc:
            return _fail(VerificationFailure.UNREACHABLE, str(exc))

        if not r.is_success:
            return _fail(VerificationFailure.REJECTED, f"{r.status_code} {r.text}")

        try:
            body = r.json()
        except ValueError:
            return _fail(VerificationFailure.MALFORMED_RESPONSE, r.text)

        status = body.get("verification_status") if isinstance(body, dict) else None
        if status != "SUCCESS":
            return _fail(
                VerificationFailure.NOT_SUCCESS, f"verification_status={status!r}"
            )

        logger.info(f"Webhook signature verified (transmission {sig['transmission_id']})")
        return VerificationResult(verified=True)
