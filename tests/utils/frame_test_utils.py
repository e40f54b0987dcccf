"""
Frame helpers used only by tests.

The caller side of the protocol is simulated with in-memory streams: a
RecordingChannel reads preloaded reply frames and captures every frame the
bridge writes.
"""
import io
import json
from typing import List

from authbridge.protocol.channel import AuthChannel
from authbridge.protocol.framing import decode_body, decode_size, encode_frame


def authorize_reply(response: str, cookie: str = "session1231700000000") -> bytes:
    """Frame an authorize reply the way the caller sends it."""
    return encode_frame({"command": "authorize", "cookie": cookie, "response": response})


def sent_messages(writer: io.BytesIO) -> List[dict]:
    """Decode every frame written to ``writer``."""
    stream = io.BytesIO(writer.getvalue())
    messages = []
    while True:
        size = decode_size(stream)
        if size == 0:
            return messages
        messages.append(json.loads(decode_body(stream, size)))


class RecordingChannel(AuthChannel):
    """AuthChannel over in-memory streams."""

    def __init__(self, replies: bytes = b"", auth_fd=None):
        self.output = io.BytesIO()
        super().__init__(auth_fd=auth_fd, reader=io.BytesIO(replies), writer=self.output)

    @property
    def sent(self) -> List[dict]:
        return sent_messages(self.output)
