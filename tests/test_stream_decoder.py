from goto_client.domain.models.chat import Connected, End, ErrorEvent, ResponseChunk
from goto_client.domain.services.stream_decoder import SSEDecoder, decode_stream, parse_event


def test_frame_split_mid_line_emits_exactly_one_event():
    decoder = SSEDecoder()
    assert decoder.feed(b'data: {"type": "response-chunk", "da') == []
    assert decoder.pending_bytes > 0
    events = decoder.feed(b'ta": "Hello"}\n\n')
    assert events == [ResponseChunk(data="Hello")]
    assert decoder.flush() == []


def test_full_stream_across_arbitrary_boundaries():
    body = (
        b'data: {"type": "connected", "message": "Connected to chat stream"}\n\n'
        b'data: {"type": "response-chunk", "data": "Glass "}\n\n'
        b'data: {"type": "response-chunk", "data": "doors"}\n\n'
        b'data: {"type": "end"}\n\n'
    )
    # Split every 7 bytes so frames never line up with reads
    chunks = [body[i:i + 7] for i in range(0, len(body), 7)]
    events = list(decode_stream(chunks))
    assert events == [
        Connected(message="Connected to chat stream"),
        ResponseChunk(data="Glass "),
        ResponseChunk(data="doors"),
        End(),
    ]


def test_crlf_and_comments_are_tolerated():
    events = list(decode_stream([
        b': keep-alive\r\n\r\n',
        b'event: message\r\ndata: {"type": "end"}\r\n\r\n',
    ]))
    assert events == [End()]


def test_multibyte_character_split_between_reads():
    payload = '{"type": "response-chunk", "data": "café"}'.encode("utf-8")
    cut = payload.index(b"\xc3") + 1
    events = list(decode_stream([b"data: " + payload[:cut], payload[cut:] + b"\n\n"]))
    assert events == [ResponseChunk(data="café")]


def test_unknown_type_surfaces_as_error_event():
    assert parse_event('{"type": "products", "items": []}') == ErrorEvent(message="unknown event type: products")


def test_malformed_json_surfaces_as_error_event():
    event = parse_event("{not json")
    assert isinstance(event, ErrorEvent)
    assert event.message.startswith("malformed event payload")


def test_error_event_carries_server_message():
    assert parse_event('{"type": "error", "message": "model overloaded"}') == ErrorEvent(message="model overloaded")


def test_trailing_frame_without_blank_line_is_flushed():
    events = list(decode_stream([b'data: {"type": "end"}']))
    assert events == [End()]
