"""
Auth channel: the framed control conversation with the session broker.

Frames are always exchanged over the process stdin/stdout. The optional
auxiliary descriptor marks a legacy caller; its presence is captured once in
``mode`` and every downstream component branches on that tag.
"""

import io
import json
import logging
import os
import time
from enum import Enum
from typing import Any, BinaryIO, Dict, Optional

from authbridge.constants import COMMAND_AUTHORIZE, COMMAND_INIT, PROBLEM_INTERNAL_ERROR
from authbridge.errors import BridgeError, FramingError, InvalidReply
from authbridge.protocol.framing import read_frame, write_frame

logger = logging.getLogger(__name__)


class AuthMode(str, Enum):
    """Transport mode, decided once at startup."""

    # Legacy caller: credential bytes travel over an auxiliary descriptor
    AUTH_FD = "auth-fd"
    # Current caller: everything goes through framed stdio
    STDIO = "stdio"


def make_cookie() -> str:
    """Session-unique nonce for a challenge."""
    return f"session{os.getpid()}{int(time.time())}"


class AuthChannel:
    """
    Framed auth conversation with the caller.

    Args:
        auth_fd: Auxiliary descriptor of a legacy caller, or None.
        reader: Binary stream frames are read from (default: stdin).
        writer: Binary stream frames are written to (default: stdout).
    """

    def __init__(
        self,
        auth_fd: Optional[int] = None,
        reader: Optional[BinaryIO] = None,
        writer: Optional[BinaryIO] = None,
    ):
        self.auth_fd = auth_fd
        self.mode = AuthMode.STDIO if auth_fd is None else AuthMode.AUTH_FD
        # closefd=False: descriptors 0 and 1 are inherited by the exec'd client
        self._reader = reader if reader is not None else io.FileIO(0, "rb", closefd=False)
        self._writer = writer if writer is not None else io.FileIO(1, "wb", closefd=False)

    def send_auth_command(
        self,
        challenge: Optional[str] = None,
        response: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Send an authorize command; a challenge gets a fresh cookie."""
        message: Dict[str, Any] = {"command": COMMAND_AUTHORIZE}
        if challenge is not None:
            message["cookie"] = make_cookie()
            message["challenge"] = challenge
        if response is not None:
            message["response"] = response
        if extra:
            message.update(extra)
        write_frame(self._writer, message)

    def send_problem_init(
        self,
        problem: str,
        message: Optional[str] = None,
        auth_results: Optional[Dict[str, str]] = None,
    ) -> None:
        """Send an init message reporting a problem to the caller."""
        init: Dict[str, Any] = {"command": COMMAND_INIT, "problem": problem}
        if message:
            init["message"] = message
        if auth_results:
            init["auth-method-results"] = auth_results
        logger.info("Reporting problem to caller: %s (%s)", problem, message or "")
        write_frame(self._writer, init)

    def report(self, error: BridgeError) -> None:
        """Report an error as a problem init unless it was already reported."""
        if error.reported:
            return
        self.send_problem_init(error.problem, str(error) or None, error.auth_results)
        error.reported = True

    def read_auth_reply(self) -> str:
        """
        Read an authorize reply and return its ``response`` field.

        Any failure is reported to the caller as an internal-error problem
        before it propagates.

        Raises:
            FramingError: If the frame itself is malformed.
            InvalidReply: If the payload is not a valid authorize reply.
        """
        try:
            data = read_frame(self._reader)
            try:
                reply = json.loads(data.decode("utf-8"))
            except (UnicodeDecodeError, json.JSONDecodeError) as e:
                raise InvalidReply(f"Invalid authorize reply: {e}") from e

            if not isinstance(reply, dict) or reply.get("command") != COMMAND_AUTHORIZE:
                raise InvalidReply("Expected an authorize command in reply")
            if "cookie" not in reply or "response" not in reply:
                raise InvalidReply("Authorize reply is missing cookie or response")
        except (FramingError, InvalidReply) as e:
            logger.error("Failed to read authorize reply: %s", e)
            self.send_problem_init(PROBLEM_INTERNAL_ERROR, str(e))
            e.reported = True
            raise

        return str(reply["response"])
