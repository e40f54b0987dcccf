"""
External services used by the bridge.

Only the trust-validation backend client lives here; the backend itself is
a separate deployment.
"""

from .trust_client import HostAuthentication, TrustClient, TrustValidator

__all__ = [
    "HostAuthentication",
    "TrustClient",
    "TrustValidator",
]
