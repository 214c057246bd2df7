"""
Tests for the CLI interface.
"""
import os
import tempfile

import pytest
import yaml
from typer.testing import CliRunner

from wallet_ledger.cli.main import app, EXIT_CODE_PASS, EXIT_CODE_FAIL
from wallet_ledger.demo.seed_demo_history import write_demo_history

runner = CliRunner()

PRINCIPAL = "ryjl3-tyaaa-aaaaa-aaaba-cai"


@pytest.fixture
def temp_dir():
    """Create a temporary directory for files used by a test."""
    path = tempfile.mkdtemp()
    yield path
    import shutil
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def history_file(temp_dir):
    """Write the 25-record demo history."""
    path = os.path.join(temp_dir, "history.yaml")
    write_demo_history(path)
    return path


@pytest.fixture
def rules_file(temp_dir):
    """Write a rule file with a second token."""
    path = os.path.join(temp_dir, "tokens.yaml")
    with open(path, 'w', encoding='utf-8') as f:
        yaml.safe_dump({
            "tokens": {
                "ckTestBTC": {"decimals": 8, "min_transfer": "0.00001", "fee": "0.00001"},
                "GLD": {"decimals": 2, "min_transfer": "1.00", "fee": "0.10"},
            }
        }, f)
    return path


class TestCLI:
    """Test CLI commands."""

    def test_no_command(self):
        """Test running without a subcommand."""
        result = runner.invoke(app, [])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Use --help" in result.output

    def test_tokens(self):
        """Test listing the built-in tokens."""
        result = runner.invoke(app, ["tokens"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "ckTestBTC" in result.output
        assert "0.00001500" in result.output

    def test_tokens_with_rules_file(self, rules_file):
        """Test listing tokens from a rule file."""
        result = runner.invoke(app, ["--rules", rules_file, "tokens"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "GLD" in result.output

    def test_rules_from_environment(self, rules_file):
        """Test the rule file environment variable."""
        result = runner.invoke(app, ["to-units", "2.5", "--token", "GLD"],
                               env={"WALLET_LEDGER_RULES": rules_file})

        assert result.exit_code == EXIT_CODE_PASS
        assert result.output.strip() == "250"

    def test_missing_rules_file(self, temp_dir):
        """Test error for a missing rule file."""
        result = runner.invoke(app, ["--rules", os.path.join(temp_dir, "nope.yaml"), "tokens"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Cannot load token rules" in result.output

    def test_to_units(self):
        """Test decimal to smallest unit conversion."""
        result = runner.invoke(app, ["to-units", "0.00000001"])

        assert result.exit_code == EXIT_CODE_PASS
        assert result.output.strip() == "1"

    def test_to_units_too_precise(self):
        """Test that excess precision fails."""
        result = runner.invoke(app, ["to-units", "0.000000001"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Error:" in result.output

    def test_from_units(self):
        """Test smallest unit to decimal conversion."""
        result = runner.invoke(app, ["from-units", "150000000"])

        assert result.exit_code == EXIT_CODE_PASS
        assert result.output.strip() == "1.50000000"

    def test_unknown_token(self):
        """Test error for an unknown token."""
        result = runner.invoke(app, ["from-units", "1", "--token", "DOGE"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Unsupported token: DOGE" in result.output

    def test_validate_address(self):
        """Test a valid principal."""
        result = runner.invoke(app, ["validate-address", PRINCIPAL])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Valid" in result.output

    def test_validate_address_for_withdraw(self):
        """Test that withdrawals need a testnet address."""
        result = runner.invoke(app, ["validate-address", PRINCIPAL, "--operation", "withdraw"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Invalid TestBTC address format" in result.output

    def test_invalid_operation(self):
        """Test error for an unknown operation."""
        result = runner.invoke(app, ["validate-address", PRINCIPAL, "--operation", "stake"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Operation must be one of" in result.output

    def test_validate_amount_insufficient(self):
        """Test an amount over the balance."""
        result = runner.invoke(app, ["validate-amount", "1.0", "--balance", "0.5"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "InsufficientBalance" in result.output

    def test_validate_amount_without_fees(self):
        """Test that --no-fees ignores the fee."""
        args = ["validate-amount", "1.0", "--balance", "1.0"]

        assert runner.invoke(app, args).exit_code == EXIT_CODE_FAIL
        assert runner.invoke(app, args + ["--no-fees"]).exit_code == EXIT_CODE_PASS

    def test_max_sendable(self):
        """Test the maximum sendable amount for a withdrawal."""
        result = runner.invoke(app, ["max-sendable", "--balance", "1.0", "--operation", "WITHDRAW"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "0.99998500 ckTestBTC" in result.output
        assert "0.00001500 ckTestBTC" in result.output


class TestHistoryCommand:
    """Test the history command."""

    def test_first_page(self, history_file):
        """Test the first page with stats over all records."""
        result = runner.invoke(app, ["history", history_file])

        assert result.exit_code == EXIT_CODE_PASS
        assert "total 25" in result.output
        assert "confirmed 20" in result.output
        assert "pending 2" in result.output
        assert "failed 3" in result.output
        assert "Page 1 of 3" in result.output

    def test_last_page(self, history_file):
        """Test the last page of the demo history."""
        result = runner.invoke(app, ["history", history_file, "--page", "3"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Page 3 of 3 (25 matching)" in result.output

    def test_filters(self, history_file):
        """Test filtering by type and status."""
        result = runner.invoke(app, ["history", history_file, "--type", "Send", "--status", "Confirmed"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Page 1 of 1 (4 matching)" in result.output

    def test_no_matches(self, history_file):
        """Test a search with no results."""
        result = runner.invoke(app, ["history", history_file, "--search", "zzzz"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "No transactions match" in result.output

    def test_invalid_type(self, history_file):
        """Test error for an unknown transaction type."""
        result = runner.invoke(app, ["history", history_file, "--type", "Stake"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Transaction type must be one of" in result.output

    def test_missing_file(self, temp_dir):
        """Test error for a missing history file."""
        result = runner.invoke(app, ["history", os.path.join(temp_dir, "nope.yaml")])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Error:" in result.output
