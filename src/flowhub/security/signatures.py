"""
Webhook signature verification.

``verify_hmac_signature`` checks the internal ``X-Webhook-Signature`` header.
``verify_provider_signature`` checks the signature scheme of a known sender
(GitHub, Stripe, Shopify, Slack, Webflow) or a custom HMAC header.
"""

import base64
import hashlib
import hmac
import time
from dataclasses import dataclass
from typing import Callable, Mapping

from flowhub.observability import get_logger


logger = get_logger(__name__)

DEFAULT_TOLERANCE_S = 300

HASHES = {
    "sha1": hashlib.sha1,
    "sha256": hashlib.sha256,
    "sha512": hashlib.sha512,
}


@dataclass
class SignatureResult:
    """Outcome of a provider check. ``skipped`` is set when no secret is configured."""
    valid: bool
    skipped: bool = False
    error: str | None = None


def _digest(secret: str, payload: str, algorithm: str = "sha256") -> bytes:
    return hmac.new(secret.encode("utf-8"), payload.encode("utf-8"), HASHES[algorithm]).digest()


def _same(expected: str, received: str) -> bool:
    return hmac.compare_digest(expected.encode("utf-8"), received.encode("utf-8"))


def _hex_matches(expected: bytes, received: str) -> bool:
    return _same(expected.hex(), received.strip().lower())


def verify_hmac_signature(body: str, signature: str, secret: str) -> bool:
    """Hex HMAC-SHA256 of the raw body; a ``sha256=`` prefix is accepted."""
    if not signature or not secret:
        return False
    received = signature[len("sha256="):] if signature.startswith("sha256=") else signature
    return _hex_matches(_digest(secret, body), received)


def _timestamp_fresh(timestamp: str, tolerance: int, now: float, millis: bool = False) -> bool:
    try:
        value = int(timestamp)
    except (TypeError, ValueError):
        return False
    if millis:
        value = value // 1000
    return abs(now - value) <= tolerance


# ==============================================================================
# Providers
# ==============================================================================

def _github(body, headers, secret, options) -> SignatureResult:
    signature = headers.get("x-hub-signature-256")
    if not signature:
        return SignatureResult(False, error="Missing X-Hub-Signature-256 header")
    if not signature.startswith("sha256="):
        return SignatureResult(False, error="Unsupported signature format")
    if not _hex_matches(_digest(secret, body), signature[len("sha256="):]):
        return SignatureResult(False, error="Signature mismatch")
    return SignatureResult(True)


def _stripe(body, headers, secret, options) -> SignatureResult:
    header = headers.get("stripe-signature")
    if not header:
        return SignatureResult(False, error="Missing Stripe-Signature header")

    timestamp = None
    signatures = []
    for part in header.split(","):
        key, _, value = part.strip().partition("=")
        if key == "t":
            timestamp = value
        elif key == "v1":
            signatures.append(value)

    if not timestamp or not signatures:
        return SignatureResult(False, error="Malformed Stripe-Signature header")
    if not _timestamp_fresh(timestamp, options["tolerance"], options["now"]):
        return SignatureResult(False, error="Timestamp outside tolerance")

    expected = _digest(secret, f"{timestamp}.{body}")
    if not any(_hex_matches(expected, sig) for sig in signatures):
        return SignatureResult(False, error="Signature mismatch")
    return SignatureResult(True)


def _shopify(body, headers, secret, options) -> SignatureResult:
    signature = headers.get("x-shopify-hmac-sha256")
    if not signature:
        return SignatureResult(False, error="Missing X-Shopify-Hmac-Sha256 header")
    expected = base64.b64encode(_digest(secret, body)).decode("ascii")
    if not _same(expected, signature.strip()):
        return SignatureResult(False, error="Signature mismatch")
    return SignatureResult(True)


def _slack(body, headers, secret, options) -> SignatureResult:
    signature = headers.get("x-slack-signature")
    timestamp = headers.get("x-slack-request-timestamp")
    if not signature or not timestamp:
        return SignatureResult(False, error="Missing X-Slack-Signature or X-Slack-Request-Timestamp header")
    if not _timestamp_fresh(timestamp, options["tolerance"], options["now"]):
        return SignatureResult(False, error="Timestamp outside tolerance")
    expected = "v0=" + _digest(secret, f"v0:{timestamp}:{body}").hex()
    if not _same(expected, signature.strip()):
        return SignatureResult(False, error="Signature mismatch")
    return SignatureResult(True)


def _webflow(body, headers, secret, options) -> SignatureResult:
    signature = headers.get("x-webflow-signature")
    timestamp = headers.get("x-webflow-timestamp")
    if not signature or not timestamp:
        return SignatureResult(False, error="Missing X-Webflow-Signature or X-Webflow-Timestamp header")
    # Webflow timestamps are in milliseconds
    if not _timestamp_fresh(timestamp, options["tolerance"], options["now"], millis=True):
        return SignatureResult(False, error="Timestamp outside tolerance")
    if not _hex_matches(_digest(secret, f"{timestamp}:{body}"), signature):
        return SignatureResult(False, error="Signature mismatch")
    return SignatureResult(True)


def _custom(body, headers, secret, options) -> SignatureResult:
    header_name = (options.get("header_name") or "x-webhook-signature").lower()
    algorithm = (options.get("algorithm") or "sha256").lower()
    if algorithm not in HASHES:
        return SignatureResult(False, error=f"Unsupported algorithm: {algorithm}")

    signature = headers.get(header_name)
    if not signature:
        return SignatureResult(False, error=f"Missing {header_name} header")

    received = signature.strip()
    if received.lower().startswith(f"{algorithm}="):
        received = received[len(algorithm) + 1:]

    expected = _digest(secret, body, algorithm)
    # hex or base64
    if _hex_matches(expected, received) or _same(
        base64.b64encode(expected).decode("ascii"), received
    ):
        return SignatureResult(True)
    return SignatureResult(False, error="Signature mismatch")


PROVIDERS: dict[str, Callable[..., SignatureResult]] = {
    "github": _github,
    "stripe": _stripe,
    "shopify": _shopify,
    "slack": _slack,
    "webflow": _webflow,
    "custom": _custom,
}


def verify_provider_signature(
    provider: str,
    body: str,
    headers: Mapping[str, str],
    secret: str | None,
    header_name: str | None = None,
    algorithm: str | None = None,
    timestamp_tolerance: int | None = None,
    now: float | None = None,
) -> SignatureResult:
    """
    Verify a webhook signature for ``provider``.

    Args:
        provider: One of PROVIDERS
        body: Raw request body
        headers: Request headers (matched case-insensitively)
        secret: Shared secret; empty means verification is skipped
        header_name: Signature header for the custom provider
        algorithm: Hash for the custom provider (sha1, sha256, sha512)
        timestamp_tolerance: Max clock skew in seconds for timestamped schemes
        now: Current unix time (for testing)
    """
    if not secret:
        return SignatureResult(valid=False, skipped=True)

    check = PROVIDERS.get((provider or "").lower())
    if check is None:
        return SignatureResult(False, error=f"Unknown signature provider: {provider}")

    lowered = {str(k).lower(): v for k, v in headers.items()}
    options = {
        "header_name": header_name,
        "algorithm": algorithm,
        "tolerance": timestamp_tolerance or DEFAULT_TOLERANCE_S,
        "now": now if now is not None else time.time(),
    }
    result = check(body, lowered, secret, options)
    if not result.valid:
        logger.warning(f"{provider} signature rejected: {result.error}")
    return result
