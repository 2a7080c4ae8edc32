from timelockwatch.errors import (
    ErrorCode,
    MalformedPayloadError,
    RecordFetchError,
    UnknownSelectorError,
)


def test_structured_error_fields():
    error = UnknownSelectorError("Selector 0xdeadbeef not in dialect x", selector="0xdeadbeef")

    assert error.code is ErrorCode.DECODE_UNKNOWN_SELECTOR
    assert str(error) == "[DECODE_001] Selector 0xdeadbeef not in dialect x"
    assert error.record_hash is None
    assert error.to_dict() == {
        "code": "DECODE_001",
        "message": "Selector 0xdeadbeef not in dialect x",
        "details": {"selector": "0xdeadbeef"},
    }


def test_for_record_attaches_hash_without_mutating():
    original = MalformedPayloadError("bad offset", types=["bytes"])

    attributed = original.for_record("0xabc")

    assert isinstance(attributed, MalformedPayloadError)
    assert attributed.record_hash == "0xabc"
    assert attributed.details == {"types": ["bytes"], "record_hash": "0xabc"}
    assert original.record_hash is None
    assert "record_hash" not in original.details


def test_fetch_error_code_override():
    error = RecordFetchError("timeout", code=ErrorCode.FETCH_TRANSPORT_FAILED, details={"address": "0x1"})

    assert error.code is ErrorCode.FETCH_TRANSPORT_FAILED
    assert error.details["address"] == "0x1"
