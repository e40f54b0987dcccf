"""
Shared test fixtures for the authentication bridge tests.

No real caller, backend or SSH client is involved: channels run on in-memory
streams, the backend is a MagicMock or an httpx MockTransport, and fork/exec
are patched.
"""
import socket
from unittest.mock import MagicMock, patch

import pytest

from authbridge.services.trust_client import HostAuthentication
from tests.utils.frame_test_utils import RecordingChannel


@pytest.fixture
def make_channel():
    """Factory for channels preloaded with caller reply frames."""

    def _make(*replies: bytes, auth_fd=None) -> RecordingChannel:
        return RecordingChannel(b"".join(replies), auth_fd=auth_fd)

    return _make


@pytest.fixture
def socket_pair():
    """Connected UNIX stream sockets, closed after the test."""
    a, b = socket.socketpair(socket.AF_UNIX, socket.SOCK_STREAM)
    yield a, b
    for sock in (a, b):
        try:
            sock.close()
        except OSError:
            pass


@pytest.fixture
def mock_validator():
    """Backend that accepts the token and knows every host."""
    validator = MagicMock()
    validator.authenticate_for_host.return_value = HostAuthentication(
        valid=True, known=True, userid="bob", password="secret"
    )
    validator.ssh_command.return_value = "/usr/bin/ssh-client"
    return validator


@pytest.fixture
def signal_calls():
    """Patched signal.signal so launch code never changes the test process's handlers."""
    with patch("authbridge.launch.relay.signal.signal") as mock_signal:
        yield mock_signal
