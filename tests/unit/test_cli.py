import json

import pytest

from timelockwatch.base.config import ChainConfig, TimelockWatchConfig, set_config
from timelockwatch.cli import main as cli
from timelockwatch.net.etherscan import EtherscanHistorySource


def test_decode_command_prints_every_layer(payloads, capsys):
    payload = payloads.multisig_call(payloads.timelock_call("queueTransaction", eta=123))

    assert cli.main(["decode", "0x" + payload.hex()]) == 0

    out = capsys.readouterr().out
    assert out.startswith("execTransaction(")
    assert "-> queueTransaction(" in out
    assert "eta=123" in out
    assert "transfer(address,uint256) [" in out


def test_decode_command_reports_unknown_selector(capsys):
    assert cli.main(["decode", "deadbeef"]) == 1
    assert json.loads(capsys.readouterr().err.strip().splitlines()[-1])["code"] == "DECODE_001"


def test_decode_command_rejects_bad_hex(capsys):
    assert cli.main(["decode", "0xzz"]) == 2


def test_history_command_json(payloads, capsys, monkeypatch):
    records = [payloads.governance_record("queueTransaction", tx_hash="0xq", eta=1_000)]

    async def fake_fetch(self, address):
        return records

    monkeypatch.setattr(EtherscanHistorySource, "fetch", fake_fetch)
    set_config(TimelockWatchConfig(chain=ChainConfig(timelock_addresses=(payloads.timelock,))))

    assert cli.main(["history", "--json", "--kind", "queue"]) == 0

    rows = json.loads(capsys.readouterr().out)
    assert [r["hash"] for r in rows] == ["0xq"]
    assert rows[0]["status"] == "queued"
    assert rows[0]["target"] == "Masterchef"


def test_history_command_requires_subcommand():
    with pytest.raises(SystemExit):
        cli.main([])
