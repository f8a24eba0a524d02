#!/usr/bin/env python3
"""
Post sample PayPal capture events to a running receiver.

No signature headers are sent, so the receiver must run without
PAYPAL_WEBHOOK_ID (verification skipped) for these to be accepted.

Usage:
    python scripts/send_test_webhook.py [url] [multiple]

WEBHOOK_URL is used when no url is given.
"""
import json
import os
import sys
import time
from datetime import UTC, datetime

import httpx

DEFAULT_URL = "http://localhost:8000/webhooks/paypal"


def sample_event(event_type: str = "PAYMENT.CAPTURE.COMPLETED") -> dict:
    stamp = int(time.time() * 1000)
    now = datetime.now(UTC).isoformat()
    resource = {
        "id": f"TEST-TRANSACTION-{stamp}",
        "status": "COMPLETED",
        "amount": {"currency_code": "USD", "value": "0.05"},
        "final_capture": True,
        "supplementary_data": {"related_ids": {"order_id": f"TEST-ORDER-{stamp}"}},
        "create_time": now,
        "update_time": now,
    }
    if event_type == "PAYMENT.CAPTURE.DENIED":
        resource["status"] = "DENIED"
        resource["reason_code"] = "INSTRUMENT_DECLINED"
    elif event_type == "PAYMENT.CAPTURE.PENDING":
        resource["status"] = "PENDING"

    return {
        "id": f"WH-TEST-{stamp}-{event_type}",
        "event_version": "1.0",
        "create_time": now,
        "resource_type": "capture",
        "resource_version": "2.0",
        "event_type": event_type,
        "summary": f"Test {event_type} event",
        "resource": resource,
    }


def send(url: str, event: dict) -> bool:
    print(f"Sending {event['event_type']} (order {event['resource']['supplementary_data']['related_ids']['order_id']})")
    try:
        r = httpx.post(url, json=event, timeout=10)
    except httpx.ConnectError as exc:
        print(f"  Error: {exc}", file=sys.stderr)
        print("  Is the receiver running? uvicorn paypal_webhooks.main:app", file=sys.stderr)
        return False

    try:
        body = r.json()
    except ValueError:
        body = r.text
    print(f"  Status: {r.status_code}")
    print(f"  Response: {json.dumps(body) if isinstance(body, dict) else body}")
    return r.is_success


if __name__ == "__main__":
    url = sys.argv[1] if len(sys.argv) > 1 else os.getenv("WEBHOOK_URL", DEFAULT_URL)
    multiple = len(sys.argv) > 2 and sys.argv[2] == "multiple"

    if multiple:
        types = [
            "PAYMENT.CAPTURE.COMPLETED",
            "PAYMENT.CAPTURE.DENIED",
            "PAYMENT.CAPTURE.PENDING",
        ]
        ok = True
        for event_type in types:
            ok = send(url, sample_event(event_type)) and ok
            time.sleep(1)
    else:
        ok = send(url, sample_event())

    sys.exit(0 if ok else 1)
