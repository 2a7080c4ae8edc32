"""Pytest configuration for timelockwatch."""
import eth_abi
import pytest

from timelockwatch.base.config import set_config
from timelockwatch.decoder.abi import encode_call
from timelockwatch.decoder.registry import COMPOUND_TIMELOCK, GNOSIS_SAFE
from timelockwatch.lifecycle.models import RawRecord

TIMELOCK = "0xafa2c40df28768eab8add6f2572b32a7f8c86a5e"
MASTERCHEF = "0xdb9daa0a50b33e4fe9d0ac16a1df1d335f96595e"
OTHER_CONTRACT = "0x1111111111111111111111111111111111111111"
RECIPIENT = "0x2222222222222222222222222222222222222222"
ZERO = "0x0000000000000000000000000000000000000000"
OWNER = "0x3333333333333333333333333333333333333333"


class PayloadFactory:
    """Builds synthetic executor transactions with the encode inverse of the decoder."""

    timelock = TIMELOCK
    masterchef = MASTERCHEF
    other = OTHER_CONTRACT
    recipient = RECIPIENT

    def timelock_call(self, function, target=MASTERCHEF, value=0,
                      signature="transfer(address,uint256)", data=None, eta=1_700_000_000):
        if data is None:
            data = self.transfer_data()
        entry = COMPOUND_TIMELOCK.entry(function)
        return encode_call(entry, [target, value, signature, data, eta])

    def transfer_data(self, to=RECIPIENT, amount=1000):
        return eth_abi.encode(["address", "uint256"], [to, amount])

    def multisig_call(self, inner, to=TIMELOCK):
        entry = GNOSIS_SAFE.entry("execTransaction")
        return encode_call(entry, [to, 0, inner, 0, 0, 0, 0, ZERO, ZERO, b"\x01" * 65])

    def record(self, payload, tx_hash="0x01", timestamp=1_600_000_000, block=100):
        return RawRecord(
            hash=tx_hash,
            from_address=OWNER,
            block_number=block,
            timestamp=timestamp,
            payload=payload,
        )

    def governance_record(self, function, tx_hash="0x01", timestamp=1_600_000_000, block=100, **call):
        return self.record(
            self.multisig_call(self.timelock_call(function, **call)),
            tx_hash=tx_hash,
            timestamp=timestamp,
            block=block,
        )


@pytest.fixture
def payloads():
    return PayloadFactory()


@pytest.fixture(autouse=True)
def reset_config():
    set_config(None)
    yield
    set_config(None)
