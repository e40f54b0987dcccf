"""
Length-prefixed JSON frames shared by both directions of the auth protocol.

Wire format:
    <digits>\\n\\n<json>

<digits> is the ASCII decimal byte length of the payload that follows the
first newline, i.e. the JSON text plus the leading empty channel line. At most
8 digits are allowed.

Reads are byte-at-a-time so a frame is never over-read from a shared pipe or
socket; the process hands its stdin to the SSH client afterwards.
"""

import io
import json
import logging
from typing import Any, BinaryIO, Dict, Union

from authbridge.constants import MAX_SIZE_DIGITS
from authbridge.errors import FramingError

logger = logging.getLogger(__name__)


def encode_frame(message: Dict[str, Any]) -> bytes:
    """Serialize a message into a complete frame."""
    payload = json.dumps(message).encode("utf-8")
    # +1 for the newline separating the (empty) channel from the JSON
    header = f"{len(payload) + 1}\n\n".encode("ascii")
    return header + payload


def write_frame(stream: BinaryIO, message: Dict[str, Any]) -> None:
    """Write a complete frame and flush before returning."""
    # Raw descriptor streams may accept fewer bytes than offered
    view = memoryview(encode_frame(message))
    while view:
        written = stream.write(view)
        view = view[written:]
    stream.flush()


def decode_size(stream: BinaryIO) -> int:
    """
    Read the decimal length header.

    Returns 0 if the stream is already at end-of-input.

    Raises:
        FramingError: On a non-digit byte, a 9th digit, an empty header or
            end-of-input inside the header.
    """
    digits = b""
    while True:
        byte = stream.read(1)
        if not byte:
            if not digits:
                return 0
            raise FramingError("Truncated frame header")
        if byte == b"\n":
            break
        if not byte.isdigit():
            raise FramingError(f"Invalid frame header byte: {byte!r}")
        if len(digits) == MAX_SIZE_DIGITS:
            raise FramingError(f"Frame header longer than {MAX_SIZE_DIGITS} digits")
        digits += byte

    if not digits:
        raise FramingError("Empty frame header")
    return int(digits)


def decode_body(stream: BinaryIO, size: int) -> bytes:
    """Read exactly ``size`` payload bytes."""
    body = bytearray()
    while len(body) < size:
        byte = stream.read(1)
        if not byte:
            raise FramingError(f"Truncated frame: expected {size} bytes, got {len(body)}")
        body += byte
    return bytes(body)


def read_frame(source: Union[int, BinaryIO]) -> bytes:
    """
    Read one frame from a descriptor or binary stream.

    Descriptors get a fresh unbuffered view that does not close them.
    Returns b"" when no frame is available (end-of-input).
    """
    if isinstance(source, int):
        stream = io.FileIO(source, "rb", closefd=False)
    else:
        stream = source
    size = decode_size(stream)
    if size == 0:
        logger.debug("No frame available (end of input)")
        return b""
    return decode_body(stream, size)

