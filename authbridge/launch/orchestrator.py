"""
Launch orchestrator: the single-shot flow of one bridge invocation.

    probe auth fd -> token handshake -> backend verdict -> fill missing
    credentials -> deliver credentials and exec the SSH client

Every failure ends the process: it is reported once to the caller as an
init problem and the exit status is 1.
"""

import argparse
import logging
import os
from dataclasses import dataclass
from typing import List, Optional

from authbridge.config import settings
from authbridge.errors import AuthenticationFailed, BackendFault, BridgeError, UnknownHost
from authbridge.launch.relay import CredentialBundle, client_environment, launch, ssh_argv
from authbridge.protocol.channel import AuthChannel
from authbridge.protocol.handshake import (
    fetch_authorization_token,
    prompt_for_password,
    prompt_for_username,
)
from authbridge.services.trust_client import TrustClient, TrustValidator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Target:
    """Parsed ``[user@]host[:port]`` argument."""

    host: str
    user: Optional[str] = None
    port: Optional[int] = None


def parse_target(value: str) -> Target:
    user = None
    if "@" in value:
        user, _, value = value.rpartition("@")
        user = user or None

    port = None
    if value.startswith("["):
        # [v6-address]:port
        host, _, rest = value[1:].partition("]")
        if rest.startswith(":") and rest[1:]:
            port = int(rest[1:])
    elif value.count(":") == 1:
        host, _, port_text = value.partition(":")
        port = int(port_text) if port_text else None
    else:
        host = value

    if not host:
        raise ValueError(f"Invalid target: {value!r}")
    return Target(host=host, user=user, port=port)


def probe_auth_fd(fd: int) -> Optional[int]:
    """Return ``fd`` if a legacy caller handed us an auxiliary descriptor."""
    try:
        os.fstat(fd)
    except OSError:
        return None
    return fd


class BridgeLauncher:
    """
    Drives one authentication and hands off to the SSH client.

    Args:
        channel: Auth channel to the caller (mode already decided).
        validator: Trust-validation backend.
        ssh_command: Overrides the backend's SSH client command when set.
    """

    def __init__(
        self,
        channel: AuthChannel,
        validator: TrustValidator,
        ssh_command: Optional[str] = None,
    ):
        self.channel = channel
        self.validator = validator
        self.ssh_command = ssh_command

    def resolve_credentials(self, target: Target) -> CredentialBundle:
        """Exchange the caller's token for credentials to ``target``."""
        token = fetch_authorization_token(self.channel)

        try:
            result = self.validator.authenticate_for_host(token, target.host)
        except BackendFault:
            raise
        except Exception as e:
            logger.exception("Trust backend call failed")
            raise BackendFault(str(e)) from e

        if not result.valid:
            logger.warning("Token rejected for host %s", target.host)
            raise AuthenticationFailed()
        if not result.known:
            logger.warning("Host %s is not known to the backend", target.host)
            raise UnknownHost(f"Unknown host: {target.host}")

        return CredentialBundle(
            user=result.userid or target.user,
            password=result.password,
            key=result.key,
        )

    def fill_missing(self, credentials: CredentialBundle, target: Target) -> CredentialBundle:
        if not credentials.user:
            credentials.user = prompt_for_username(self.channel, target.host)
        if not credentials.key and not credentials.password:
            credentials.password = prompt_for_password(self.channel, credentials.user, target.host)
        return credentials

    def resolve_ssh_command(self) -> str:
        if self.ssh_command:
            return self.ssh_command
        try:
            return self.validator.ssh_command()
        except BackendFault:
            raise
        except Exception as e:
            raise BackendFault(str(e)) from e

    def run(self, target: Target) -> None:
        """Authenticate and exec the SSH client. Returns only by raising."""
        logger.info("Authenticating %s in %s mode", target.host, self.channel.mode.value)
        credentials = self.resolve_credentials(target)
        credentials = self.fill_missing(credentials, target)

        argv = ssh_argv(self.resolve_ssh_command(), credentials.user, target.host, target.port)
        env = client_environment(self.channel.mode, credentials)
        launch(self.channel, credentials, argv, env)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=settings.PROJECT_NAME,
        description="Resolve SSH credentials through the trust backend and launch the SSH client",
    )
    parser.add_argument("target", help="[user@]host[:port] to connect to")
    parser.add_argument("--ssh-command", default=settings.SSH_COMMAND, help="SSH client command line")
    parser.add_argument("--backend-url", default=None, help="Trust backend base URL")
    return parser


def main(
    argv: Optional[List[str]] = None,
    channel: Optional[AuthChannel] = None,
    validator: Optional[TrustValidator] = None,
) -> int:
    args = build_parser().parse_args(argv)

    if channel is None:
        channel = AuthChannel(auth_fd=probe_auth_fd(settings.AUTH_FD))

    client = None
    try:
        target = parse_target(args.target)
        if validator is None:
            validator = client = TrustClient(base_url=args.backend_url)
        BridgeLauncher(channel, validator, ssh_command=args.ssh_command).run(target)
    except BridgeError as e:
        logger.error("Authentication bridge failed: %s", e)
        channel.report(e)
        return 1
    except (OSError, ValueError) as e:
        logger.error("Authentication bridge failed: %s", e)
        channel.report(BridgeError(str(e)))
        return 1
    finally:
        if client is not None:
            client.close()

    # exec replaces the process image; reaching here means nothing was launched
    return 1
