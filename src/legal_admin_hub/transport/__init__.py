"""Transport adapter: request decoding, stream framing and the HTTP app."""

from __future__ import annotations

from .app import create_app
from .data_stream import StreamFrame, decode_line, decode_stream, encode_event
from .request import decode_request

__all__ = ["StreamFrame", "create_app", "decode_line", "decode_request", "decode_stream", "encode_event"]
