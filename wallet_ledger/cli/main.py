"""
CLI interface for the wallet ledger.

Provides command-line access to amount conversion, validation and
transaction history views.
"""

import logging
import sys
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from wallet_ledger.config.loader import load_token_rules
from wallet_ledger.core.codec import InvalidFormat, to_decimal_string, to_smallest_units
from wallet_ledger.core.formatting import (
    format_address_for_display,
    format_signed_amount,
    format_timestamp,
)
from wallet_ledger.core.history import (
    ALL,
    DEFAULT_PAGE_SIZE,
    HistoryPage,
    HistoryViewState,
    TransactionFilter,
    render_history,
)
from wallet_ledger.core.tokens import (
    DEFAULT_TOKEN,
    DEFAULT_TOKEN_RULES,
    OperationKind,
    TokenRuleTable,
    UnknownToken,
)
from wallet_ledger.core.validator import (
    ValidationResult,
    calculate_fee,
    calculate_max_available,
    validate_address,
    validate_amount,
)
from wallet_ledger.sdk.services import FileHistoryProvider
from wallet_ledger.storage.ledger_store import TransactionLedgerStore

app = typer.Typer()
console = Console()

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1

RULES_ENVVAR = "WALLET_LEDGER_RULES"

_rules: TokenRuleTable = DEFAULT_TOKEN_RULES


def _fail(message: str) -> None:
    console.print(f"[red]Error:[/] {message}")
    sys.exit(EXIT_CODE_FAIL)


def _parse_operation(operation: str) -> OperationKind:
    try:
        return OperationKind(operation.upper())
    except ValueError:
        valid_operations = [op.value for op in OperationKind]
        _fail(f"Operation must be one of: {valid_operations}")


def _report(result: ValidationResult) -> None:
    """Print a validation result and exit with the matching code."""
    if result.valid:
        console.print("[green]✓[/] Valid")
        sys.exit(EXIT_CODE_PASS)
    console.print(f"[red]✗[/] {result.error} [dim]({result.reason.value})[/]")
    if result.details:
        console.print(f"  {result.details}")
    sys.exit(EXIT_CODE_FAIL)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    rules: Optional[str] = typer.Option(
        None,
        "--rules",
        "-r",
        envvar=RULES_ENVVAR,
        help="YAML file with token rules (defaults to the built-in table)"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging"
    )
):
    """Wallet ledger CLI."""
    global _rules
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    if rules:
        try:
            _rules = load_token_rules(rules)
        except Exception as e:
            _fail(f"Cannot load token rules: {e}")
    else:
        _rules = DEFAULT_TOKEN_RULES

    if ctx.invoked_subcommand is None:
        console.print("Wallet Ledger - Use --help to see available commands")


@app.command()
def tokens():
    """List supported tokens and their rules."""
    table = Table(title="Token Rules")
    table.add_column("Token")
    table.add_column("Decimals", justify="right")
    table.add_column("Min transfer", justify="right")
    table.add_column("Fee", justify="right")
    table.add_column("Withdraw fee", justify="right")

    for rule in _rules:
        table.add_row(
            rule.symbol,
            str(rule.decimals),
            rule.min_transfer,
            rule.fee,
            rule.format_units(rule.fee_units(OperationKind.WITHDRAW)),
        )
    console.print(table)


@app.command("to-units")
def to_units(
    amount: str = typer.Argument(..., help="Decimal amount, e.g. 0.5"),
    token: str = typer.Option(DEFAULT_TOKEN, "--token", "-t", help="Token identifier")
):
    """Convert a decimal amount to smallest units."""
    try:
        rule = _rules.lookup(token)
        console.print(str(to_smallest_units(amount, rule.decimals)))
    except (InvalidFormat, UnknownToken) as e:
        _fail(str(e))


@app.command("from-units")
def from_units(
    units: int = typer.Argument(..., help="Amount in smallest units"),
    token: str = typer.Option(DEFAULT_TOKEN, "--token", "-t", help="Token identifier")
):
    """Convert smallest units to a decimal amount."""
    try:
        rule = _rules.lookup(token)
        console.print(to_decimal_string(units, rule.decimals))
    except (InvalidFormat, UnknownToken) as e:
        _fail(str(e))


@app.command("validate-address")
def validate_address_command(
    address: str = typer.Argument(..., help="Destination address"),
    token: str = typer.Option(DEFAULT_TOKEN, "--token", "-t", help="Token identifier"),
    operation: str = typer.Option("TRANSFER", "--operation", "-o", help="TRANSFER, WITHDRAW or DEPOSIT")
):
    """Check the format of a destination address."""
    _report(validate_address(address, token, _parse_operation(operation), rules=_rules))


@app.command("validate-amount")
def validate_amount_command(
    amount: str = typer.Argument(..., help="Amount to send"),
    balance: str = typer.Option(..., "--balance", "-b", help="Available balance"),
    token: str = typer.Option(DEFAULT_TOKEN, "--token", "-t", help="Token identifier"),
    operation: str = typer.Option("TRANSFER", "--operation", "-o", help="TRANSFER, WITHDRAW or DEPOSIT"),
    include_fees: bool = typer.Option(True, "--fees/--no-fees", help="Require the balance to cover fees")
):
    """Check an amount against token rules and a balance."""
    result = validate_amount(
        amount, balance, token,
        operation=_parse_operation(operation),
        includes_fees=include_fees,
        rules=_rules
    )
    _report(result)


@app.command("max-sendable")
def max_sendable(
    balance: str = typer.Option(..., "--balance", "-b", help="Available balance"),
    token: str = typer.Option(DEFAULT_TOKEN, "--token", "-t", help="Token identifier"),
    operation: str = typer.Option("TRANSFER", "--operation", "-o", help="TRANSFER, WITHDRAW or DEPOSIT")
):
    """Show the largest amount sendable once fees are paid."""
    op = _parse_operation(operation)
    try:
        fee = calculate_fee(token, op, rules=_rules)
        maximum = calculate_max_available(balance, token, op, rules=_rules)
    except UnknownToken as e:
        _fail(str(e))
    console.print(f"Fee: {fee.formatted_fee}")
    console.print(f"Max sendable: {maximum} {token}")


@app.command()
def history(
    path: str = typer.Argument(..., help="JSON or YAML file with transaction history"),
    tx_type: str = typer.Option(ALL, "--type", help="All, Send, Receive, Deposit, Withdraw or Mint"),
    token: str = typer.Option(ALL, "--token", "-t", help="Token filter"),
    status: str = typer.Option(ALL, "--status", "-s", help="All, Pending, Confirmed or Failed"),
    search: str = typer.Option("", "--search", "-q", help="Search addresses, ids and block indexes"),
    page: int = typer.Option(1, "--page", "-p", min=1, help="Page number"),
    page_size: int = typer.Option(DEFAULT_PAGE_SIZE, "--page-size", min=1, help="Transactions per page")
):
    """Show a filtered, paginated page of transaction history."""
    try:
        filters = TransactionFilter.parse(kind=tx_type, token=token, status=status, search_query=search)
        store = TransactionLedgerStore()
        store.sync(FileHistoryProvider(path).fetch_history())
    except Exception as e:
        _fail(str(e))

    state = HistoryViewState(filters=filters, page=page, page_size=page_size)
    _display_history(render_history(store.records(), state))


def _display_history(view: HistoryPage) -> None:
    """Display stats and one page of transactions."""
    stats = view.stats
    console.print(
        f"\n[bold]Transactions[/bold]  total {stats.total}  "
        f"[green]confirmed {stats.confirmed}[/]  "
        f"[yellow]pending {stats.pending}[/]  "
        f"[red]failed {stats.failed}[/]"
    )

    if not view.items:
        console.print("\n[dim]No transactions match the current filters.[/]")
        return

    table = Table()
    table.add_column("ID", justify="right")
    table.add_column("Type")
    table.add_column("Amount", justify="right")
    table.add_column("From")
    table.add_column("To")
    table.add_column("Status")
    table.add_column("Time")
    table.add_column("Block")

    for tx in view.items:
        table.add_row(
            str(tx.id),
            tx.kind.value,
            format_signed_amount(tx),
            format_address_for_display(tx.from_address),
            format_address_for_display(tx.to_address),
            tx.status.value,
            format_timestamp(tx.timestamp),
            tx.block_index or "-",
        )
    console.print(table)

    pager = " ".join("…" if p is None else (f"[{p}]" if p == view.page else str(p)) for p in view.window)
    console.print(f"Page {view.page} of {view.total_pages} ({view.filtered_count} matching)  {pager}")


if __name__ == "__main__":
    app()
