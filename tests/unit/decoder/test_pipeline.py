from dataclasses import replace

import pytest

from timelockwatch.decoder.pipeline import RecordDecoder
from timelockwatch.decoder.registry import (
    COMPOUND_TIMELOCK,
    GNOSIS_SAFE,
    Dialect,
    SignatureRegistry,
    default_registry,
    function,
)
from timelockwatch.decoder.abi import encode_call
from timelockwatch.errors import (
    MalformedPayloadError,
    UnknownSelectorError,
    UnsupportedGovernanceActionError,
)
from timelockwatch.lifecycle.models import OperationKind, operation_fingerprint


@pytest.fixture
def decoder(payloads):
    return RecordDecoder(default_registry(), [payloads.timelock])


def test_queue_record_becomes_governance_operation(decoder, payloads):
    record = payloads.governance_record(
        "queueTransaction", tx_hash="0xq1", timestamp=1_600_000_123, block=321, value=5, eta=1_700_000_000
    )

    op = decoder.decode_record(record)

    assert op.kind is OperationKind.QUEUE
    assert op.source_hash == "0xq1"
    assert op.target.lower() == payloads.masterchef
    assert op.timelock.lower() == payloads.timelock
    assert op.value == 5
    assert op.signature == "transfer(address,uint256)"
    assert op.data == payloads.transfer_data()
    assert op.decoded_args[0].lower() == payloads.recipient
    assert op.decoded_args[1] == "1000"
    assert op.data_display.endswith(", 1000]")
    assert op.eta == 1_700_000_000
    assert (op.timestamp, op.block_number) == (1_600_000_123, 321)
    assert op.fingerprint == operation_fingerprint(
        payloads.masterchef, 5, "transfer(address,uint256)", payloads.transfer_data(), 1_700_000_000
    )


def test_timelock_address_comparison_ignores_case(payloads):
    decoder = RecordDecoder(default_registry(), [payloads.timelock.upper().replace("0X", "0x")])
    assert decoder.decode_record(payloads.governance_record("executeTransaction")) is not None


def test_calls_to_other_contracts_are_noise(decoder, payloads):
    inner = payloads.timelock_call("queueTransaction")
    record = payloads.record(payloads.multisig_call(inner, to=payloads.other), tx_hash="0xnoise")

    assert decoder.decode_record(record) is None

    batch = decoder.decode_batch([record])
    assert batch.operations == []
    assert batch.errors == []
    assert batch.filtered == 1


def test_non_forwarding_multisig_call_is_noise(decoder, payloads):
    payload = encode_call(GNOSIS_SAFE.entry("changeThreshold"), [2])
    assert decoder.decode_record(payloads.record(payload)) is None


def test_untracked_timelock_function_is_filtered_silently(decoder, payloads):
    inner = encode_call(COMPOUND_TIMELOCK.entry("setDelay"), [86400])
    record = payloads.record(payloads.multisig_call(inner), tx_hash="0xdelay")

    with pytest.raises(UnsupportedGovernanceActionError) as exc:
        decoder.decode_record(record)
    assert exc.value.record_hash == "0xdelay"

    batch = decoder.decode_batch([record])
    assert batch.errors == []
    assert batch.filtered == 1


def test_undecodable_data_keeps_the_operation(decoder, payloads):
    record = payloads.governance_record("queueTransaction", data=b"\x01\x02\x03")

    op = decoder.decode_record(record)

    assert op is not None
    assert op.decoded_args is None
    assert not op.data_decoded
    assert op.data_error
    assert op.data_display == "0x010203"
    assert op.raw_data == "0x010203"


def test_empty_signature_uses_known_selectors(decoder, payloads):
    data = bytes.fromhex("a9059cbb") + payloads.transfer_data(amount=7)
    op = decoder.decode_record(payloads.governance_record("queueTransaction", signature="", data=data))

    assert op.decoded_args[1] == "7"
    assert op.data_error is None


def test_empty_signature_with_unknown_selector_stays_raw(decoder, payloads):
    data = bytes.fromhex("deadbeef") + b"\x00" * 32
    op = decoder.decode_record(payloads.governance_record("queueTransaction", signature="", data=data))

    assert op.decoded_args is None
    assert "empty signature" in op.data_error


def test_empty_forwarded_payload_is_dropped_with_error(decoder, payloads):
    record = payloads.record(payloads.multisig_call(b""), tx_hash="0xempty")

    with pytest.raises(MalformedPayloadError) as exc:
        decoder.decode_record(record)
    assert exc.value.record_hash == "0xempty"
    assert exc.value.details["record_hash"] == "0xempty"


def test_batch_survives_a_record_with_unknown_selector(decoder, payloads):
    records = [
        payloads.governance_record("queueTransaction", tx_hash="0x01", eta=1),
        payloads.governance_record("queueTransaction", tx_hash="0x02", eta=2),
        payloads.record(bytes.fromhex("deadbeef") + b"\x00" * 64, tx_hash="0x03"),
        payloads.governance_record("cancelTransaction", tx_hash="0x04", eta=1),
        payloads.governance_record("executeTransaction", tx_hash="0x05", eta=2),
    ]

    batch = decoder.decode_batch(records)

    assert [op.source_hash for op in batch.operations] == ["0x01", "0x02", "0x04", "0x05"]
    assert len(batch.errors) == 1
    error = batch.errors[0]
    assert isinstance(error, UnknownSelectorError)
    assert error.record_hash == "0x03"
    assert error.to_dict()["details"]["record_hash"] == "0x03"
    assert batch.total == 5


def test_malformed_inner_payload_is_reported(decoder, payloads):
    inner = payloads.timelock_call("queueTransaction")[:40]
    batch = decoder.decode_batch([payloads.record(payloads.multisig_call(inner), tx_hash="0xbad")])

    assert batch.operations == []
    assert isinstance(batch.errors[0], MalformedPayloadError)
    assert batch.errors[0].record_hash == "0xbad"


def test_unreadable_ledger_payload_is_reported_per_record(decoder, payloads):
    records = [
        payloads.governance_record("queueTransaction", tx_hash="0x01"),
        replace(payloads.record(b"", tx_hash="0xhex"), payload_error="input is not valid hex (Odd-length string)"),
    ]

    batch = decoder.decode_batch(records)

    assert [op.source_hash for op in batch.operations] == ["0x01"]
    assert len(batch.errors) == 1
    assert isinstance(batch.errors[0], MalformedPayloadError)
    assert batch.errors[0].record_hash == "0xhex"
    assert "Odd-length" in batch.errors[0].message


def test_parallel_decoding_keeps_input_order(decoder, payloads):
    records = [
        payloads.governance_record("queueTransaction", tx_hash=f"0x{i:02x}", eta=i)
        for i in range(12)
    ]
    records.insert(5, payloads.record(b"\x00\x01", tx_hash="0xshort"))

    sequential = decoder.decode_batch(records)
    parallel = decoder.decode_batch(records, workers=4)

    assert parallel.operations == sequential.operations
    assert [e.record_hash for e in parallel.errors] == ["0xshort"]


def test_timelock_dialect_must_carry_five_tracked_params(payloads):
    bogus = Dialect(
        name="compound_timelock",
        entries=(function("queueTransaction", (("target", "address"),)),),
    )
    with pytest.raises(ValueError):
        RecordDecoder(SignatureRegistry([GNOSIS_SAFE, bogus]), [payloads.timelock])


def test_forwarded_data_is_not_the_fingerprint_source(decoder, payloads):
    # Same timelock action forwarded with different multisig signatures
    inner = payloads.timelock_call("queueTransaction")
    a = decoder.decode_record(payloads.record(payloads.multisig_call(inner), tx_hash="0xa"))
    other_sig = encode_call(
        GNOSIS_SAFE.entry("execTransaction"),
        [payloads.timelock, 0, inner, 0, 0, 0, 0, payloads.other, payloads.other, b"\x02" * 65],
    )
    b = decoder.decode_record(payloads.record(other_sig, tx_hash="0xb"))

    assert a.fingerprint == b.fingerprint
