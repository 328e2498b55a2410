"""Domain services - Stream decoding and error classification."""

from .error_mapper import map_http_error
from .stream_decoder import SSEDecoder, decode_stream

__all__ = ["map_http_error", "SSEDecoder", "decode_stream"]
