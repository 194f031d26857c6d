"""CLI interface for calckit.

Commands:
- run: Feed key tokens through the engine and show the display
- repl: Interactive calculator session
- convert/speed/units: Unit conversion
- base/bits/field/ieee: Programmer operations
- finance: Loan, investment, mortgage, bond and ratio formulas
- history: Inspect the persisted calculation history
- config: Show configuration
"""

import logging
import sys
from pathlib import Path
from typing import Dict, List, Mapping

import click
import questionary
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from . import __version__, financial, programmer, units
from .arithmetic import format_number
from .commands import PRIMARY_INPUT, missing_parameters, suggested_default
from .config import CONFIG_DIR, load_config
from .engine import CalculationEngine
from .errors import CalcResult
from .events import FinancialFunction, FinancialRequest, parse_token
from .history import CalculationHistory, Category, HistoryFile


console = Console()


def _configure_logging(verbose: bool) -> None:
    package_logger = logging.getLogger("calckit")
    package_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    if not any(isinstance(h, RichHandler) for h in package_logger.handlers):
        package_logger.addHandler(
            RichHandler(console=Console(stderr=True), show_path=False)
        )


def _build_engine(project_path: str) -> CalculationEngine:
    """Create an engine whose history persists according to the project config."""
    config = load_config(project_path)
    sink = None
    if config.persist_history:
        sink = HistoryFile(config.history_path(project_path), cap=config.persisted_history_cap)

    history = CalculationHistory(cap=config.live_history_cap, sink=sink)
    if sink is not None:
        history.restore(sink.load())
    return CalculationEngine(history=history)


def _load_history(project_path: str) -> CalculationHistory:
    config = load_config(project_path)
    history = CalculationHistory(cap=config.persisted_history_cap)
    history.restore(
        HistoryFile(config.history_path(project_path), cap=config.persisted_history_cap).load()
    )
    return history


def _print_result(label: str, result: CalcResult, suffix: str = "") -> None:
    """Print ``label = value`` or the error, exiting non-zero on error."""
    if not result.ok:
        console.print(f"[red]Error: {result.error.message}[/red]")
        sys.exit(1)
    value = result.value
    text = format_number(value) if isinstance(value, float) else str(value)
    console.print(f"{label} = [green]{text}[/green]{suffix}")


def _prompt_parameters(
    function: FinancialFunction, params: Mapping[str, float]
) -> Dict[str, float]:
    """Ask for the parameters a financial command is missing."""
    completed = dict(params)
    for name in missing_parameters(function, params):
        default = suggested_default(name)
        while True:
            answer = questionary.text(
                f"{function.value} {name.replace('_', ' ')}:",
                default="" if default is None else format_number(float(default)),
            ).ask()
            if answer is None:
                raise click.Abort()
            try:
                completed[name] = float(answer)
                break
            except ValueError:
                console.print(f"[red]Not a number: {answer}[/red]")
    return completed


@click.group()
@click.version_option(version=__version__, prog_name="calckit")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx, verbose: bool):
    """calckit - calculator core with financial, programmer and unit tools.

    Feed key tokens through the calculation engine, or use the formula
    libraries directly.
    """
    _configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["project_path"] = str(Path.cwd())


# --- Engine Commands ---


@main.command(context_settings={"ignore_unknown_options": True})
@click.argument("tokens", nargs=-1, required=True)
@click.option("--trace", "-t", is_flag=True, help="Show the engine state after every token")
@click.pass_context
def run(ctx, tokens: tuple, trace: bool):
    """Feed key tokens through the engine.

    Examples:
        calckit run 3 + 4 × 2 =
        calckit run 10000 "PMT(rate=5,years=5)"
        calckit run 5 "km->mi"
    """
    engine = _build_engine(ctx.obj["project_path"])

    table = Table(title="Engine trace")
    table.add_column("Token", style="cyan")
    table.add_column("Display")
    table.add_column("Pending", style="dim")

    snapshot = engine.snapshot()
    for token in tokens:
        try:
            event = parse_token(token)
        except ValueError as e:
            console.print(f"[red]Error: {e}[/red]")
            sys.exit(1)
        snapshot = engine.input(event)
        if trace:
            display = f"[red]{snapshot.display_text}[/red]" if snapshot.is_error else snapshot.display_text
            table.add_row(token, display, snapshot.history_text)

    if trace:
        console.print(table)

    if snapshot.is_error:
        console.print(f"[red]{snapshot.display_text}[/red]")
        sys.exit(1)
    console.print(snapshot.display_text)


@main.command()
@click.pass_context
def repl(ctx):
    """Interactive session. Enter space-separated tokens; 'quit' exits.

    Financial commands without parameters prompt for them.
    """
    engine = _build_engine(ctx.obj["project_path"])
    console.print("[bold blue]calckit[/bold blue] [dim](quit to exit)[/dim]")
    last_record = engine.snapshot().last_record
    if last_record:
        console.print(f"[dim]Last: {last_record}[/dim]")

    while True:
        line = questionary.text("›").ask()
        if line is None or line.strip() in ("quit", "exit"):
            break

        for token in line.split():
            try:
                event = parse_token(token)
            except ValueError as e:
                console.print(f"[red]{e}[/red]")
                break
            if isinstance(event, FinancialRequest) and missing_parameters(
                event.function, event.params
            ):
                console.print(
                    f"[dim]{event.function.value} uses the display as "
                    f"{PRIMARY_INPUT[event.function]}[/dim]"
                )
                event = FinancialRequest(
                    event.function, _prompt_parameters(event.function, event.params)
                )
            engine.input(event)

        snapshot = engine.snapshot()
        if snapshot.history_text:
            console.print(f"  [dim]{snapshot.history_text}[/dim]")
        style = "red" if snapshot.is_error else "bold"
        console.print(f"  [{style}]{snapshot.display_text}[/{style}]")


# --- Unit Conversion Commands ---


@main.command()
@click.argument("value", type=float)
@click.argument("from_unit")
@click.argument("to_unit")
def convert(value: float, from_unit: str, to_unit: str):
    """Convert VALUE from one unit to another (e.g. 5 km mi, 100 C F)."""
    _print_result(f"{format_number(value)} {from_unit}", units.convert_any(value, from_unit, to_unit), f" {to_unit}")


@main.command()
@click.argument("value", type=float)
@click.argument("from_length")
@click.argument("from_time")
@click.argument("to_length")
@click.argument("to_time")
def speed(value: float, from_length: str, from_time: str, to_length: str, to_time: str):
    """Convert a speed, e.g. 36 km h m s."""
    result = units.convert_speed(value, from_length, from_time, to_length, to_time)
    _print_result(
        f"{format_number(value)} {from_length}/{from_time}", result, f" {to_length}/{to_time}"
    )


@main.command("units")
@click.argument(
    "family", required=False, type=click.Choice([f.value for f in units.UnitFamily])
)
def list_units(family: str):
    """List unit symbols per measurement family."""
    table = Table(title="Units")
    table.add_column("Family", style="cyan")
    table.add_column("Symbols")

    families = [units.UnitFamily(family)] if family else list(units.UnitFamily)
    for fam in families:
        table.add_row(fam.value, ", ".join(units.list_units(fam)))
    if not family:
        table.add_row("temperature", ", ".join(units.TEMPERATURE_UNITS))
    console.print(table)


# --- Programmer Commands ---


BASE_CHOICES = click.Choice([b.name.lower() for b in programmer.NumberBase])


def _parse_integer(text: str) -> int:
    """Parse an integer literal, accepting 0x/0o/0b prefixes."""
    try:
        return int(text, 0)
    except ValueError:
        raise click.BadParameter(f"Not an integer: {text}")


@main.command()
@click.argument("value")
@click.option("--from", "-f", "from_base", type=BASE_CHOICES, default="dec", help="Base of VALUE")
@click.option("--to", "-t", "to_base", type=BASE_CHOICES, required=True, help="Target base")
def base(value: str, from_base: str, to_base: str):
    """Convert VALUE between binary, octal, decimal and hex."""
    source = programmer.NumberBase[from_base.upper()]
    target = programmer.NumberBase[to_base.upper()]
    _print_result(f"{value} ({source.name})", programmer.convert_base(value, source, target), f" ({target.name})")


BITWISE_OPS = {
    "and": programmer.bit_and,
    "or": programmer.bit_or,
    "xor": programmer.bit_xor,
    "shl": programmer.shift_left,
    "shr": programmer.shift_right,
    "ushr": programmer.unsigned_shift_right,
}


@main.command()
@click.argument("op", type=click.Choice(list(BITWISE_OPS) + ["not"]))
@click.argument("a")
@click.argument("b", required=False)
def bits(op: str, a: str, b: str):
    """Bitwise operation on 64-bit integers (B is the shift distance for shifts).

    Examples:
        calckit bits and 12 10
        calckit bits not 0
        calckit bits ushr -1 60
    """
    left = _parse_integer(a)
    if op == "not":
        result = programmer.bit_not(left)
    else:
        if b is None:
            console.print(f"[red]Error: '{op}' needs two operands[/red]")
            sys.exit(1)
        result = BITWISE_OPS[op](left, _parse_integer(b))

    console.print(f"{op.upper()} = [green]{result}[/green]")
    console.print(f"  hex: {programmer.format_int(result, programmer.NumberBase.HEX)}")
    console.print(f"  bin: {programmer.to_binary_string(result)}")


SINGLE_BIT_OPS = {
    "get": programmer.get_bit,
    "set": programmer.set_bit,
    "clear": programmer.clear_bit,
    "toggle": programmer.toggle_bit,
}


@main.command()
@click.argument("op", type=click.Choice(list(SINGLE_BIT_OPS)))
@click.argument("value")
@click.argument("position", type=int)
def bit(op: str, value: str, position: int):
    """Read or change bit POSITION (0-63) of VALUE.

    Examples:
        calckit bit get 5 0
        calckit bit set 0 63
    """
    result = SINGLE_BIT_OPS[op](_parse_integer(value), position)
    if op == "get" and result.ok:
        _print_result(f"bit {position}", CalcResult.success(int(result.value)))
        return

    _print_result("value", result)
    console.print(f"  bin: {programmer.to_binary_string(result.value)}")


@main.group()
def field():
    """Extract or insert bit fields."""
    pass


@field.command("get")
@click.argument("value")
@click.argument("position", type=int)
@click.argument("length", type=int)
def field_get(value: str, position: int, length: int):
    """Read LENGTH bits of VALUE starting at POSITION."""
    _print_result("field", programmer.get_field(_parse_integer(value), position, length))


@field.command("set")
@click.argument("value")
@click.argument("position", type=int)
@click.argument("length", type=int)
@click.argument("field_value")
def field_set(value: str, position: int, length: int, field_value: str):
    """Write FIELD_VALUE into LENGTH bits of VALUE at POSITION."""
    result = programmer.set_field(
        _parse_integer(value), position, length, _parse_integer(field_value)
    )
    _print_result("value", result)


@main.command()
@click.argument("value", type=float)
@click.option("--single", "-s", is_flag=True, help="Use 32-bit single precision")
def ieee(value: float, single: bool):
    """Show the IEEE-754 sign/exponent/mantissa of VALUE."""
    precision = programmer.Precision.SINGLE if single else programmer.Precision.DOUBLE
    components = programmer.decompose_float(value, precision)
    console.print(f"[bold]{components.binary_representation}[/bold]")
    console.print(components.describe())


# --- Financial Commands ---


@main.group()
def finance():
    """Loan, investment, mortgage, bond and ratio formulas."""
    pass


def _rate_option(f):
    return click.option("--rate", "-r", type=float, required=True, help="Annual rate in percent")(f)


def _years_option(f):
    return click.option("--years", "-y", type=int, required=True, help="Term in years")(f)


@finance.command("payment")
@click.argument("principal", type=float)
@_rate_option
@_years_option
def finance_payment(principal: float, rate: float, years: int):
    """Monthly payment on a loan of PRINCIPAL."""
    _print_result("payment", financial.loan_payment(principal, rate, years))


@finance.command("amount")
@click.argument("payment", type=float)
@_rate_option
@_years_option
def finance_amount(payment: float, rate: float, years: int):
    """Loan amount a monthly PAYMENT can carry."""
    _print_result("loan", financial.loan_amount(payment, rate, years))


@finance.command("term")
@click.argument("payment", type=float)
@click.option("--principal", "-p", type=float, required=True, help="Loan principal")
@_rate_option
def finance_term(payment: float, principal: float, rate: float):
    """Years needed to repay PRINCIPAL with a monthly PAYMENT."""
    _print_result("term", financial.loan_term_years(principal, payment, rate), " years")


@finance.command("future")
@click.argument("present", type=float)
@_rate_option
@_years_option
def finance_future(present: float, rate: float, years: int):
    """Future value of PRESENT with yearly compounding."""
    _print_result("FV", financial.future_value(present, rate, years))


@finance.command("present")
@click.argument("future", type=float)
@_rate_option
@_years_option
def finance_present(future: float, rate: float, years: int):
    """Present value of FUTURE with yearly compounding."""
    _print_result("PV", financial.present_value(future, rate, years))


@finance.command("compound")
@click.argument("principal", type=float)
@_rate_option
@_years_option
@click.option("--periods", "-n", type=int, default=12, help="Compounding periods per year")
@click.option("--continuous", "-c", is_flag=True, help="Compound continuously")
def finance_compound(principal: float, rate: float, years: int, periods: int, continuous: bool):
    """Compound PRINCIPAL over a number of years."""
    if continuous:
        result = financial.continuous_compound_interest(principal, rate, years)
    else:
        result = financial.compound_interest(principal, rate, years, periods)
    _print_result("value", result)


@finance.command("mortgage")
@click.argument("price", type=float)
@_rate_option
@_years_option
@click.option("--down", "-d", type=float, default=0.0, help="Down payment")
@click.option("--schedule", "-s", type=int, default=0, help="Show the first N schedule rows")
def finance_mortgage(price: float, rate: float, years: int, down: float, schedule: int):
    """Mortgage payment, totals and amortization schedule for PRICE."""
    result = financial.mortgage(price, rate, years, down)
    if not result.ok:
        console.print(f"[red]Error: {result.error.message}[/red]")
        sys.exit(1)

    details = result.value
    console.print(f"Monthly payment: [green]{details.monthly_payment:,.2f}[/green]")
    console.print(f"Total payment:   {details.total_payment:,.2f}")
    console.print(f"Total interest:  {details.total_interest:,.2f}")

    if schedule > 0:
        table = Table(title="Amortization schedule")
        table.add_column("Month", justify="right", style="cyan")
        table.add_column("Payment", justify="right")
        table.add_column("Interest", justify="right")
        table.add_column("Principal", justify="right")
        table.add_column("Balance", justify="right")
        for row in details.schedule[:schedule]:
            table.add_row(
                str(row.month),
                f"{row.payment:,.2f}",
                f"{row.interest:,.2f}",
                f"{row.principal:,.2f}",
                f"{max(row.balance, 0.0):,.2f}",
            )
        console.print(table)
        if len(details.schedule) > schedule:
            console.print(f"[dim]... and {len(details.schedule) - schedule} more months[/dim]")


@finance.command("bond")
@click.argument("face", type=float)
@click.option("--coupon", type=float, required=True, help="Coupon rate in percent")
@click.option("--market", type=float, required=True, help="Market rate in percent")
@_years_option
@click.option("--per-year", type=int, default=1, help="Coupon payments per year")
def finance_bond(face: float, coupon: float, market: float, years: int, per_year: int):
    """Price, duration and convexity of a bond with face value FACE."""
    result = financial.analyze_bond(face, coupon, market, years, per_year)
    if not result.ok:
        console.print(f"[red]Error: {result.error.message}[/red]")
        sys.exit(1)

    analysis = result.value
    console.print(f"Price:     [green]{analysis.price:,.2f}[/green]")
    console.print(f"Duration:  {analysis.duration:.4f}")
    console.print(f"Convexity: {analysis.convexity:.4f}")


RATIOS = {
    "pe": (financial.price_to_earnings, 2),
    "de": (financial.debt_to_equity, 2),
    "current": (financial.current_ratio, 2),
    "quick": (financial.quick_ratio, 3),
    "roe": (financial.return_on_equity, 2),
    "roa": (financial.return_on_assets, 2),
    "roi": (financial.return_on_investment, 2),
}


@finance.command("ratio")
@click.argument("kind", type=click.Choice(list(RATIOS)))
@click.argument("values", type=float, nargs=-1, required=True)
def finance_ratio(kind: str, values: tuple):
    """Financial ratio from its inputs.

    Examples:
        calckit finance ratio pe 50 5
        calckit finance ratio quick 200 50 100
    """
    func, arity = RATIOS[kind]
    if len(values) != arity:
        console.print(f"[red]Error: '{kind}' takes {arity} values, got {len(values)}[/red]")
        sys.exit(1)
    _print_result(kind.upper(), func(*values))


def _parse_series(text: str) -> List[float]:
    try:
        return [float(v) for v in text.split(",") if v.strip()]
    except ValueError:
        raise click.BadParameter(f"Expected comma-separated numbers: {text}")


@finance.command("beta")
@click.option("--stock", required=True, help="Comma-separated stock returns")
@click.option("--market", required=True, help="Comma-separated market returns")
def finance_beta(stock: str, market: str):
    """Beta of a stock against the market."""
    _print_result("beta", financial.beta(_parse_series(stock), _parse_series(market)))


# --- History Commands ---


@main.group()
def history():
    """Inspect the persisted calculation history."""
    pass


def _history_table(records, title: str) -> Table:
    table = Table(title=title)
    table.add_column("Time", style="dim")
    table.add_column("Expression")
    table.add_column("Result", style="green")
    table.add_column("Category", style="cyan")
    for r in records:
        stamp = r.timestamp.strftime("%Y-%m-%d %H:%M") if r.timestamp else "-"
        table.add_row(stamp, r.expression_text, r.result_text, r.category.value)
    return table


@history.command("show")
@click.option("--count", "-n", default=10, help="Number of entries to show")
@click.option(
    "--category", "-c", type=click.Choice([c.value for c in Category]), help="Filter by category"
)
@click.pass_context
def history_show(ctx, count: int, category: str):
    """Show the most recent calculations."""
    hist = _load_history(ctx.obj["project_path"])
    records = hist.filter_by_category(Category(category)) if category else hist.records
    if not records:
        console.print("[yellow]No calculations in history.[/yellow]")
        return
    console.print(_history_table(records[:count], f"Last {min(count, len(records))} calculations"))


@history.command("search")
@click.argument("term")
@click.pass_context
def history_search(ctx, term: str):
    """Search expressions, results and categories."""
    matches = _load_history(ctx.obj["project_path"]).search(term)
    if not matches:
        console.print(f"[yellow]No calculations match '{term}'[/yellow]")
        return
    console.print(_history_table(matches, f"Matches for '{term}'"))


@history.command("stats")
@click.pass_context
def history_stats(ctx):
    """Show counts per category."""
    stats = _load_history(ctx.obj["project_path"]).statistics()

    table = Table(title=f"History statistics ({stats.total} calculations)")
    table.add_column("Category", style="cyan")
    table.add_column("Count", justify="right")
    table.add_column("Share", justify="right")
    for category in Category:
        table.add_row(
            category.value, str(stats.count(category)), f"{stats.percentage(category):.1f}%"
        )
    console.print(table)


@history.command("clear")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
def history_clear(ctx, yes: bool):
    """Delete the persisted history."""
    if not yes and not click.confirm("Clear calculation history?", default=False):
        console.print("[yellow]Aborted.[/yellow]")
        return
    project_path = ctx.obj["project_path"]
    HistoryFile(load_config(project_path).history_path(project_path)).clear()
    console.print("[green]History cleared.[/green]")


# --- Config Commands ---


@main.group()
def config():
    """Show calculator configuration."""
    pass


@config.command("show")
@click.pass_context
def config_show(ctx):
    """Show the effective configuration."""
    project_path = ctx.obj["project_path"]
    cfg = load_config(project_path)

    console.print(f"[bold]Config directory:[/bold] {Path(project_path) / CONFIG_DIR}")
    console.print(f"  Live history cap:      {cfg.live_history_cap}")
    console.print(f"  Persisted history cap: {cfg.persisted_history_cap}")
    persist = "[green]yes[/green]" if cfg.persist_history else "[yellow]no[/yellow]"
    console.print(f"  Persist history:       {persist}")
    console.print(f"  History file:          {cfg.history_path(project_path)}")


if __name__ == "__main__":
    main()
