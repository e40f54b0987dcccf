"""
Credential relay: deliver resolved credentials to the SSH client and exec it.

Two strategies, chosen by the channel mode:

- inline (stdio callers): push the authorization as a one-shot authorize
  response on the framed channel, then exec the client on our own stdio.
- auth-fd relay (legacy callers): write the credential bytes into a socket
  pair whose far end becomes descriptor 3 of the client, and fork a dumb
  byte-forwarding child bridging that socket to the caller's auxiliary
  descriptor for the rest of the session.
"""

import base64
import logging
import os
import select
import shlex
import signal
import socket
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional

from authbridge.config import settings
from authbridge.constants import (
    CLIENT_AUTH_FD,
    ENV_ALLOW_UNKNOWN,
    ENV_AUTH_MESSAGE_TYPE,
    ENV_SUPPORTS_HOST_KEY_PROMPT,
    MESSAGE_TYPE_PASSWORD,
    MESSAGE_TYPE_PRIVATE_KEY,
)
from authbridge.protocol.channel import AuthChannel, AuthMode

logger = logging.getLogger(__name__)


@dataclass
class CredentialBundle:
    """Resolved credentials; a private key takes precedence over a password."""

    user: Optional[str] = None
    password: Optional[str] = None
    key: Optional[str] = None

    @property
    def message_type(self) -> str:
        return MESSAGE_TYPE_PRIVATE_KEY if self.key else MESSAGE_TYPE_PASSWORD

    @property
    def material(self) -> bytes:
        """The secret handed to the client in auth-fd mode."""
        return (self.key or self.password or "").encode("utf-8")


def build_authorization(credentials: CredentialBundle) -> str:
    """Authorization string pushed to stdio callers."""
    if credentials.key:
        return f"host-key {credentials.key}"
    userpass = f"{credentials.user or ''}:{credentials.password or ''}"
    return "Basic " + base64.b64encode(userpass.encode("utf-8")).decode("ascii")


def client_environment(
    mode: AuthMode,
    credentials: CredentialBundle,
    base_env: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """Environment for the SSH client, with the out-of-band markers set."""
    env = dict(os.environ if base_env is None else base_env)
    env[ENV_ALLOW_UNKNOWN] = "1"
    if mode == AuthMode.AUTH_FD:
        env[ENV_SUPPORTS_HOST_KEY_PROMPT] = "1"
        env[ENV_AUTH_MESSAGE_TYPE] = credentials.message_type
    return env


def ssh_argv(ssh_command: str, user: str, host: str, port: Optional[int] = None) -> List[str]:
    argv = shlex.split(ssh_command)
    if not argv:
        raise ValueError("Empty SSH command")
    if port is not None:
        argv += ["-p", str(port)]
    argv.append(f"{user}@{host}")
    return argv


def restore_default_signals() -> None:
    """
    Put back the default action of the signals the interpreter ignores.

    Python starts with SIGPIPE (and SIGXFSZ where it exists) ignored, and an
    ignored disposition survives exec. SIGCHLD is left alone: the relay child
    is still not reaped.
    """
    for name in ("SIGPIPE", "SIGXFSZ"):
        if hasattr(signal, name):
            signal.signal(getattr(signal, name), signal.SIG_DFL)


def launch_inline(
    channel: AuthChannel,
    credentials: CredentialBundle,
    argv: List[str],
    env: Dict[str, str],
) -> None:
    """Push the authorization on the framed channel and exec the client. Never returns."""
    channel.send_auth_command(response=build_authorization(credentials))
    restore_default_signals()
    logger.info("Executing %s for %s (inline credentials)", argv[0], argv[-1])
    os.execvpe(argv[0], argv, env)


def relay_loop(sock: socket.socket, fd: int, chunk_size: Optional[int] = None) -> None:
    """
    Forward bytes between ``sock`` and ``fd`` until either side closes.

    Runs in the forked child, which has no channel back to the caller: I/O
    errors end the loop and are only logged. Both ends are closed on exit.
    """
    size = chunk_size or settings.RELAY_CHUNK_SIZE
    sock_fd = sock.fileno()
    try:
        while True:
            readable, _, _ = select.select([sock_fd, fd], [], [])
            if sock_fd in readable:
                data = sock.recv(size)
                if not data:
                    return
                _write_all(fd, data)
            if fd in readable:
                data = os.read(fd, size)
                if not data:
                    return
                sock.sendall(data)
    except OSError as e:
        logger.debug("Relay stopped: %s", e)
    finally:
        sock.close()
        try:
            os.close(fd)
        except OSError:
            pass


def _write_all(fd: int, data: bytes) -> None:
    view = memoryview(data)
    while view:
        written = os.write(fd, view)
        view = view[written:]


def launch_with_relay(
    auth_fd: int,
    credentials: CredentialBundle,
    argv: List[str],
    env: Dict[str, str],
) -> None:
    """
    Hand credentials to the client over descriptor 3 through a relay child.

    Never returns in the parent (exec) nor in the child (_exit).
    """
    relay_end, client_end = socket.socketpair(socket.AF_UNIX, socket.SOCK_STREAM)
    relay_end.sendall(credentials.material)

    # The relay child is never waited for: it has no result to report.
    # Ignoring SIGCHLD lets the kernel reap it; set once, right before the
    # only fork this process makes. The exec'd client inherits the setting.
    signal.signal(signal.SIGCHLD, signal.SIG_IGN)

    pid = os.fork()
    if pid == 0:
        client_end.close()
        try:
            relay_loop(relay_end, auth_fd)
        finally:
            os._exit(0)

    logger.debug("Started credential relay child %d", pid)
    relay_end.close()
    if auth_fd != CLIENT_AUTH_FD:
        # Only the relay child talks to the caller from here on
        os.close(auth_fd)
    os.dup2(client_end.fileno(), CLIENT_AUTH_FD)
    client_end.close()
    restore_default_signals()

    logger.info("Executing %s for %s (auth-fd relay)", argv[0], argv[-1])
    os.execvpe(argv[0], argv, env)


def launch(
    channel: AuthChannel,
    credentials: CredentialBundle,
    argv: List[str],
    env: Dict[str, str],
) -> None:
    """Deliver credentials with the strategy matching the channel mode."""
    if channel.mode == AuthMode.AUTH_FD:
        launch_with_relay(channel.auth_fd, credentials, argv, env)
    else:
        launch_inline(channel, credentials, argv, env)
