import logging

import httpx
from paypal_webhooks.core.config import Settings
from paypal_webhooks.errors import CredentialError, UpstreamTimeout

logger = logging.getLogger(__name__)

TOKEN_PATH = "/oauth2/token"


def new_paypal_client(settings: Settings) -> httpx.AsyncClient:
    """Client bound to the PayPal API host for the configured environment."""
    return httpx.AsyncClient(
        base_url=settings.paypal_base_url,
        timeout=httpx.Timeout(settings.paypal_timeout_seconds),
    )


async def fetch_access_token(client: httpx.AsyncClient, settings: Settings) -> str:
    """
    Exchange the client credentials for a bearer token.

    Raise CredentialError if the token endpoint rejects the credentials, is
    unreachable or returns something without an access_token.
    """
    if not settings.has_credentials:
        raise CredentialError("PayPal client credentials not configured")

    try:
        r = await client.post(
            TOKEN_PATH,
            data={"grant_type": "client_credentials"},
            auth=(settings.paypal_client_id, settings.paypal_client_secret),
            headers={"Accept": "application/json"},
        )
    except httpx.TimeoutException as exc:
        raise UpstreamTimeout(f"Token request timed out: {exc}") from exc
    except httpx.HTTPError as exc:
        raise CredentialError(f"Token endpoint unreachable: {exc}") from exc

    if not r.is_success:
        logger.error(f"Failed to get PayPal access token: {r.status_code} {r.text}")
        raise CredentialError(f"Token endpoint returned {r.status_code}")

    try:
        body = r.json()
    except ValueError as exc:
        raise CredentialError("Token endpoint returned invalid JSON") from exc

    token = body.get("access_token") if isinstance(body, dict) else None
    if not token:
        raise CredentialError("Token response missing access_token")
    return token
