"""Security package."""
from flowhub.security.signatures import (
    PROVIDERS,
    SignatureResult,
    verify_hmac_signature,
    verify_provider_signature,
)

__all__ = ["PROVIDERS", "SignatureResult", "verify_hmac_signature", "verify_provider_signature"]
