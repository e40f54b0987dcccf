"""
Challenge/response handshake and interactive prompts.

The token handshake asks the caller for any cached authorization (challenge
"*"). Prompts for missing credentials take one of two paths depending on the
channel mode:

- auth-fd: the raw JSON request is written to the auxiliary descriptor and
  the caller answers with raw bytes on the same descriptor.
- stdio: an "x-conversation" challenge carrying the base64 prompt is sent as
  an authorize command; the caller answers with the same id and a base64
  answer.
"""

import base64
import binascii
import json
import logging
import os
import uuid
from typing import Any, Dict, Tuple

from authbridge.config import settings
from authbridge.constants import CHALLENGE_ANY, CONVERSATION_TAG
from authbridge.errors import ProtocolViolation
from authbridge.protocol.channel import AuthChannel, AuthMode

logger = logging.getLogger(__name__)


def parse_authorization(reply: str) -> Tuple[str, str]:
    """Split an authorization reply into (scheme, token) on the first space."""
    scheme, _, token = reply.partition(" ")
    return scheme, token


def fetch_authorization_token(channel: AuthChannel) -> str:
    """
    Ask the caller for an authorization token.

    Returns the part after the scheme (e.g. "abc123" for "Bearer abc123"),
    or "" when the reply carries no token.
    """
    channel.send_auth_command(challenge=CHALLENGE_ANY)
    reply = channel.read_auth_reply()
    scheme, token = parse_authorization(reply)
    logger.debug("Received authorization with scheme %r", scheme)
    return token


def new_conversation_id() -> str:
    return uuid.uuid4().hex


def _prompt_over_auth_fd(auth_fd: int, request: Dict[str, Any]) -> str:
    os.write(auth_fd, json.dumps(request).encode("utf-8"))
    answer = os.read(auth_fd, settings.PROMPT_MAX_BYTES)
    return answer.decode("utf-8")


def _prompt_over_conversation(channel: AuthChannel, request: Dict[str, Any]) -> str:
    prompt = str(request.get("prompt", ""))
    encoded_prompt = base64.b64encode(prompt.encode("utf-8")).decode("ascii")
    conversation_id = new_conversation_id()

    channel.send_auth_command(
        challenge=f"{CONVERSATION_TAG} {conversation_id} {encoded_prompt}",
        extra=request,
    )
    reply = channel.read_auth_reply()

    parts = reply.split(" ", 2)
    if len(parts) != 3 or parts[0].lower() != CONVERSATION_TAG:
        raise ProtocolViolation("Invalid conversation reply: missing x-conversation tag")
    if parts[1] != conversation_id:
        raise ProtocolViolation("Invalid conversation reply: conversation id mismatch")

    try:
        return base64.b64decode(parts[2]).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise ProtocolViolation(f"Invalid conversation answer: {e}") from e


def prompt_for_data(channel: AuthChannel, request: Dict[str, Any]) -> str:
    """
    Ask the caller a question and return the answer.

    Args:
        channel: The auth channel; its mode selects the prompt path.
        request: Prompt fields, at least "prompt" (also "echo", "message").

    Raises:
        ProtocolViolation: If a conversation reply does not match the request.
    """
    if channel.mode == AuthMode.AUTH_FD:
        return _prompt_over_auth_fd(channel.auth_fd, request)
    return _prompt_over_conversation(channel, request)


def prompt_for_username(channel: AuthChannel, host: str) -> str:
    return prompt_for_data(
        channel,
        {"prompt": "Username:", "echo": True, "message": f"Login to {host}"},
    ).strip()


def prompt_for_password(channel: AuthChannel, user: str, host: str) -> str:
    return prompt_for_data(
        channel,
        {"prompt": "Password:", "echo": False, "message": f"Password for {user}@{host}"},
    )
