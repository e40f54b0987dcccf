"""Framed auth protocol: frame codec, auth channel and handshake."""

from .framing import decode_body, decode_size, encode_frame, read_frame, write_frame
from .channel import AuthChannel, AuthMode
from .handshake import fetch_authorization_token, prompt_for_data

__all__ = [
    "decode_body",
    "decode_size",
    "encode_frame",
    "read_frame",
    "write_frame",
    "AuthChannel",
    "AuthMode",
    "fetch_authorization_token",
    "prompt_for_data",
]
