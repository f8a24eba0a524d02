import json
import logging
from contextlib import asynccontextmanager

import httpx
import sqlalchemy.exc
from fastapi import Depends, FastAPI, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from paypal_webhooks.core.config import Settings, get_settings
from paypal_webhooks.db.session import SessionLocal
from paypal_webhooks.errors import (
    AuthenticationError,
    ConfigurationError,
    MalformedRequestError,
    ProcessingError,
    ServiceUnavailableError,
    WebhookError,
)
from paypal_webhooks.middleware.body_size import BodySizeLimitMiddleware
from paypal_webhooks.schemas.ingest import WebhookAck, WebhookEvent
from paypal_webhooks.services.collaborators import (
    LoggingNotifier,
    LoggingOrderStore,
    Notifier,
    OrderStore,
)
from paypal_webhooks.services.dispatcher import EventDispatcher, ProcessedEventLedger
from paypal_webhooks.services.handlers import HandlerContext
from paypal_webhooks.services.paypal_auth import new_paypal_client
from paypal_webhooks.services.paypal_verify import PayPalSignatureVerifier
from pydantic import ValidationError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging and report the verification mode on startup."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not settings.has_credentials:
        logger.warning("PAYPAL_CLIENT_ID / PAYPAL_CLIENT_SECRET not set")
    if not settings.paypal_webhook_id:
        if settings.production_mode:
            logger.error("PAYPAL_WEBHOOK_ID not set - webhooks will be rejected")
        else:
            logger.warning(
                "PAYPAL_WEBHOOK_ID not set - signature verification will be skipped"
            )
    yield


app = FastAPI(
    title="PayPal Webhook Receiver",
    description="Verifies PayPal webhook deliveries and dispatches payment events",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(BodySizeLimitMiddleware)


@app.exception_handler(WebhookError)
async def webhook_error_handler(request: Request, exc: WebhookError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.error, "message": exc.message},
    )


# ---------- dependencies ----------
def db_session():
    db: Session = SessionLocal()
    try:
        yield db
    finally:
        db.close()


async def get_paypal_client(settings: Settings = Depends(get_settings)):
    async with new_paypal_client(settings) as client:
        yield client


def get_verifier(
    client: httpx.AsyncClient = Depends(get_paypal_client),
    settings: Settings = Depends(get_settings),
) -> PayPalSignatureVerifier:
    return PayPalSignatureVerifier(client, settings)


def get_order_store() -> OrderStore:
    return LoggingOrderStore()


def get_notifier() -> Notifier:
    return LoggingNotifier()


def get_dispatcher(
    db: Session = Depends(db_session),
    settings: Settings = Depends(get_settings),
    orders: OrderStore = Depends(get_order_store),
    notifier: Notifier = Depends(get_notifier),
) -> EventDispatcher:
    ledger = ProcessedEventLedger(db, settings.dedup_ttl_seconds)
    return EventDispatcher(HandlerContext(orders=orders, notifier=notifier), ledger)


def parse_event(raw: bytes) -> tuple[dict, WebhookEvent]:
    """Return the JSON body as sent and its validated model."""
    if not raw:
        logger.warning("Rejected webhook with empty body")
        raise MalformedRequestError("Missing event_type")
    try:
        payload = json.loads(raw)
    except ValueError as e:
        logger.warning(f"Rejected webhook with invalid JSON: {e}")
        raise MalformedRequestError("Invalid JSON payload")
    if not isinstance(payload, dict):
        logger.warning(f"Rejected webhook body of type {type(payload).__name__}")
        raise MalformedRequestError("Missing event_type")
    if not payload.get("event_type"):
        logger.warning(f"Rejected webhook event {payload.get('id')}: missing event_type")
        raise MalformedRequestError("Missing event_type")
    try:
        event = WebhookEvent.model_validate(payload)
    except ValidationError as ve:
        logger.warning(f"Malformed webhook event {payload.get('id')}: {ve}")
        raise MalformedRequestError("Malformed event payload")
    return payload, event


@app.get("/health", include_in_schema=False)
async def health(settings: Settings = Depends(get_settings)):
    return {
        "status": "ok",
        "environment": settings.paypal_env,
        "signature_verification": bool(settings.paypal_webhook_id),
    }


# ---------- ingress ----------
@app.api_route(
    "/webhooks/paypal",
    methods=["GET", "PUT", "PATCH", "DELETE"],
    include_in_schema=False,
)
async def paypal_webhook_method_not_allowed():
    return JSONResponse(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        content={"error": "Method not allowed", "allowed": ["POST"]},
        headers={"Allow": "POST"},
    )


@app.post("/webhooks/paypal", response_model=WebhookAck)
async def paypal_webhook(
    request: Request,
    settings: Settings = Depends(get_settings),
    verifier: PayPalSignatureVerifier = Depends(get_verifier),
    dispatcher: EventDispatcher = Depends(get_dispatcher),
):
    if not settings.has_credentials:
        logger.error("Missing PayPal Client ID or Secret")
        raise ConfigurationError("PayPal credentials not configured")

    webhook_id = settings.paypal_webhook_id
    if not webhook_id and settings.production_mode:
        logger.error("PAYPAL_WEBHOOK_ID not set in production mode")
        raise ConfigurationError("Webhook ID not configured")

    payload, event = parse_event(await request.body())

    try:
        if webhook_id:
            if not await verifier.verify(request.headers, payload, webhook_id):
                logger.error(
                    f"Invalid webhook signature: event={event.id} type={event.event_type}"
                )
                raise AuthenticationError("Webhook signature verification failed")
            logger.info(f"Webhook signature verified for event {event.id}")
        else:
            logger.warning(
                f"Webhook signature verification skipped for event {event.id} "
                "(webhook ID not configured)"
            )

        # ledger queries and collaborator calls are blocking
        outcome = await run_in_threadpool(dispatcher.dispatch, event)
    except WebhookError:
        raise
    except sqlalchemy.exc.OperationalError as exc:
        logger.error(
            f"Database unavailable: event={event.id} type={event.event_type}: {exc}"
        )
        raise ServiceUnavailableError("Database connection failed") from exc
    except Exception as exc:
        logger.error(
            f"Webhook processing error: event={event.id} type={event.event_type}: {exc}",
            exc_info=True,
        )
        raise ProcessingError(str(exc)) from exc

    logger.info(f"Event {event.id} ({event.event_type}) {outcome.value}")
    return WebhookAck(eventId=event.id, eventType=event.event_type)
