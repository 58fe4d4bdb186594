from chat_core.domain.exceptions import BusinessError, DecodeError, InvalidStateError, ServerError, TransportError


def test_error_kinds_carry_code_and_fields():
    cause = OSError("refused")
    err = TransportError("down", cause=cause, base_url="http://x")
    assert err.code == "TRANSPORT_ERROR"
    assert err.cause is cause
    assert err.extra == {"base_url": "http://x"}
    assert not hasattr(err, "http_status")

    server = ServerError("boom", status_code=404, body="nope", model="m")
    assert (server.code, server.status_code, server.body) == ("SERVER_ERROR", 404, "nope")
    assert server.extra == {"model": "m"}

    assert DecodeError("bad", body="x").code == "DECODE_ERROR"
    assert isinstance(InvalidStateError("busy"), BusinessError)
