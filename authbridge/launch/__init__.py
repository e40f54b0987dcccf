"""Credential delivery and the per-invocation launch flow."""

from .relay import CredentialBundle, launch, launch_inline, launch_with_relay, relay_loop
from .orchestrator import BridgeLauncher, Target, main, parse_target, probe_auth_fd

__all__ = [
    "CredentialBundle",
    "launch",
    "launch_inline",
    "launch_with_relay",
    "relay_loop",
    "BridgeLauncher",
    "Target",
    "main",
    "parse_target",
    "probe_auth_fd",
]
