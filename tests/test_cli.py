"""
Tests for the CLI interface.
"""
import json
from unittest.mock import patch

import pytest
import yaml
from typer.testing import CliRunner

from soroban_fees.cli.main import app, EXIT_CODE_PASS, EXIT_CODE_FAIL

from fakes import b64

runner = CliRunner()

RESPONSE = {
    "jsonrpc": "2.0",
    "id": 1,
    "result": {
        "transactionData": "tx-data",
        "minResourceFee": "90000",
        "events": ["contract-event", "diagnostic-event"],
        "results": [{"auth": [], "xdr": b64(20)}],
        "cost": {"cpuInsns": "1500000", "memBytes": "2048"},
        "stateChanges": [
            {"type": "created", "key": "new-p", "after": "new-persistent"},
            {"type": "created", "key": "new-t", "after": "new-temporary"},
            {"type": "updated", "key": "counter", "before": "counter-before", "after": "counter-after"},
            {"type": "updated", "key": "balance", "before": "balance-before", "after": "balance-after"},
            {"type": "deleted", "key": "gone", "before": "counter-before"},
        ],
        "latestLedger": 5000,
    },
}

NEW_ENTRY = {
    "key": "balance",
    "is_persistent": True,
    "old_size_bytes": 0,
    "new_size_bytes": 1000,
    "old_live_until_ledger": 0,
    "new_live_until_ledger": 100000,
    "entry_type": "created",
}


@pytest.fixture
def mock_codec(codec):
    """Replace the XDR codec with the in-memory one."""
    with patch('soroban_fees.cli.main.StellarXdrCodec') as mock:
        mock.return_value = codec
        yield mock


def _write_json(tmp_path, data, name="response.json"):
    path = tmp_path / name
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


def _write_yaml(tmp_path, data, name="changes.yaml"):
    path = tmp_path / name
    path.write_text(yaml.dump(data), encoding="utf-8")
    return str(path)


class TestResourceCommand:
    """Test the resource command."""

    def test_golden_usage(self):
        result = runner.invoke(app, [
            "resource", "--cpu", "10000", "--reads", "1", "--writes", "1",
            "--read-bytes", "1024", "--write-bytes", "1024", "--txn-size", "512",
        ])

        assert result.exit_code == EXIT_CODE_PASS
        assert "43,547" in result.output
        assert "Resource fee: 0.0043547 XLM" in result.output

    def test_negative_counter_fails(self):
        result = runner.invoke(app, ["resource", "--cpu", "-1"])
        assert result.exit_code == EXIT_CODE_FAIL
        assert "cpu_instructions must be >= 0" in result.output

    def test_custom_rates_file(self, tmp_path):
        rates_path = _write_yaml(tmp_path, {"rates": {"fee_per_read_entry": 1}}, "rates.yaml")
        result = runner.invoke(app, ["resource", "--reads", "3", "--rates", rates_path])
        assert result.exit_code == EXIT_CODE_PASS
        # 3 read entries + ceil(300 * 16235 / 1024) historical
        assert "4,760" in result.output

    def test_usage_file(self, tmp_path):
        usage_path = _write_yaml(tmp_path, {
            "cpu_instructions": 10000,
            "ledger_entries_read": 1,
            "ledger_entries_written": 1,
            "bytes_read": 1024,
            "bytes_written": 1024,
            "transaction_size_bytes": "512",
        }, "usage.yaml")
        result = runner.invoke(app, ["resource", "--usage", usage_path])
        assert result.exit_code == EXIT_CODE_PASS
        assert "43,547" in result.output

    def test_invalid_usage_file_fails(self, tmp_path):
        usage_path = _write_yaml(tmp_path, {"cpu": 1}, "usage.yaml")
        result = runner.invoke(app, ["resource", "--usage", usage_path])
        assert result.exit_code == EXIT_CODE_FAIL
        assert "Unknown usage keys" in result.output


class TestRentCommand:
    """Test the rent command."""

    def test_new_entry_with_ledger_flag(self, tmp_path):
        changes_path = _write_yaml(tmp_path, [NEW_ENTRY])
        result = runner.invoke(app, ["rent", "--changes", changes_path, "--ledger", "0"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Total rent: 558,507 stroops" in result.output
        assert "Rent fee: 0.0558507 XLM" in result.output
        assert "Extended entries: 1" in result.output

    def test_ledger_from_file(self, tmp_path):
        changes_path = _write_yaml(tmp_path, {"current_ledger": 0, "entries": [NEW_ENTRY]})
        result = runner.invoke(app, ["rent", "--changes", changes_path])
        assert result.exit_code == EXIT_CODE_PASS
        assert "Total rent: 558,507 stroops" in result.output

    def test_missing_ledger_fails(self, tmp_path):
        changes_path = _write_yaml(tmp_path, [NEW_ENTRY])
        result = runner.invoke(app, ["rent", "--changes", changes_path])
        assert result.exit_code == EXIT_CODE_FAIL
        assert "Current ledger is required" in result.output

    def test_missing_file_fails(self):
        result = runner.invoke(app, ["rent", "--changes", "missing.yaml", "--ledger", "1"])
        assert result.exit_code == EXIT_CODE_FAIL
        assert "not found" in result.output


class TestRatesCommand:
    """Test the rates command."""

    def test_default_rates(self):
        result = runner.invoke(app, ["rates"])
        assert result.exit_code == EXIT_CODE_PASS
        assert "Fee schedule: default" in result.output
        assert "fee_per_write_1kb" in result.output
        assert "11,800" in result.output

    def test_invalid_rates_file(self, tmp_path):
        rates_path = _write_yaml(tmp_path, {"rates": {"fee_per_write_kb": 1}}, "rates.yaml")
        result = runner.invoke(app, ["rates", "--rates", rates_path])
        assert result.exit_code == EXIT_CODE_FAIL
        assert "Error loading fee schedule" in result.output


class TestSimulateCommand:
    """Test the simulate command."""

    def test_complete_simulation(self, tmp_path, mock_codec):
        response_path = _write_json(tmp_path, RESPONSE)
        result = runner.invoke(app, ["simulate", "--response", response_path, "-t", b64(600)])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Soroban Fee Simulation Result" in result.output
        assert "CPU instructions: 1,500,000" in result.output
        assert "Deleted entries: 1" in result.output
        assert "59,889" in result.output
        assert "Total rent: 36,378 stroops" in result.output
        assert "96,267" in result.output
        assert "Status: COMPLETE" in result.output

    def test_envelope_from_file(self, tmp_path, mock_codec):
        response_path = _write_json(tmp_path, RESPONSE)
        envelope = tmp_path / "tx.b64"
        envelope.write_text(b64(600) + "\n", encoding="utf-8")

        result = runner.invoke(app, [
            "simulate", "--response", response_path, "--transaction", f"@{envelope}",
        ])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Transaction size: 600" in result.output

    def test_partial_simulation_exits_zero(self, tmp_path, mock_codec):
        response = json.loads(json.dumps(RESPONSE))
        response["result"]["stateChanges"].append(
            {"type": "created", "key": "bad", "after": "garbage"}
        )
        response_path = _write_json(tmp_path, response)

        result = runner.invoke(app, ["simulate", "--response", response_path, "-t", b64(600)])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Skipped state change 5" in result.output
        assert "Status: PARTIAL" in result.output

    def test_partial_simulation_strict_fails(self, tmp_path, mock_codec):
        response = json.loads(json.dumps(RESPONSE))
        response["result"]["stateChanges"].append(
            {"type": "created", "key": "bad", "after": "garbage"}
        )
        response_path = _write_json(tmp_path, response)

        result = runner.invoke(app, [
            "simulate", "--response", response_path, "-t", b64(600), "--strict",
        ])

        assert result.exit_code == EXIT_CODE_FAIL

    def test_failed_simulation(self, tmp_path, mock_codec):
        response_path = _write_json(tmp_path, {"error": {"code": -32602, "message": "bad"}})
        result = runner.invoke(app, ["simulate", "--response", response_path, "-t", b64(600)])
        assert result.exit_code == EXIT_CODE_FAIL
        assert "Simulation request failed" in result.output

    def test_missing_response_file(self, mock_codec):
        result = runner.invoke(app, ["simulate", "--response", "missing.json", "-t", b64(600)])
        assert result.exit_code == EXIT_CODE_FAIL

    def test_inclusion_fee(self, tmp_path, mock_codec):
        response_path = _write_json(tmp_path, RESPONSE)
        result = runner.invoke(app, [
            "simulate", "--response", response_path, "-t", b64(600), "--inclusion-fee", "100",
        ])
        assert result.exit_code == EXIT_CODE_PASS
        assert "96,367" in result.output

    def test_inclusion_fee_in_xlm(self, tmp_path, mock_codec):
        response_path = _write_json(tmp_path, RESPONSE)
        result = runner.invoke(app, [
            "simulate", "--response", response_path, "-t", b64(600),
            "--inclusion-fee-xlm", "0.00001",
        ])
        assert result.exit_code == EXIT_CODE_PASS
        assert "96,367" in result.output

    def test_sub_stroop_inclusion_fee_fails(self, tmp_path, mock_codec):
        response_path = _write_json(tmp_path, RESPONSE)
        result = runner.invoke(app, [
            "simulate", "--response", response_path, "-t", b64(600),
            "--inclusion-fee-xlm", "0.00000001",
        ])
        assert result.exit_code == EXIT_CODE_FAIL
        assert "not a whole number of stroops" in result.output

    def test_non_object_response_fails_cleanly(self, tmp_path, mock_codec):
        response_path = _write_json(tmp_path, [1, 2])
        result = runner.invoke(app, ["simulate", "--response", response_path, "-t", b64(600)])
        assert result.exit_code == EXIT_CODE_FAIL
        assert isinstance(result.exception, SystemExit)
        assert "must be a JSON object" in result.output

    def test_non_object_state_change_fails_cleanly(self, tmp_path, mock_codec):
        response = json.loads(json.dumps(RESPONSE))
        response["result"]["stateChanges"].append("oops")
        response_path = _write_json(tmp_path, response)

        result = runner.invoke(app, ["simulate", "--response", response_path, "-t", b64(600)])

        assert result.exit_code == EXIT_CODE_FAIL
        assert isinstance(result.exception, SystemExit)
        assert "stateChanges[5] must be an object" in result.output
