from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Awaitable, Optional

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from goldplan_core.domain import units
from goldplan_core.domain.models import AIAnalysis, SimulationParams, SimulationResult
from goldplan_core.io import config as config_io
from goldplan_core.io import export
from goldplan_core.services import commentary, comparison
from goldplan_core.services import simulator
from goldplan_core.services.session import PlanSession

app = typer.Typer(help="Gold accumulation plan projections with a recurring purchase discount.")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")):
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


def _save_json(path: Path, payload):
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)


def _parse_rate(raw: str) -> float:
    """
    Parse a rate string that may contain a percent sign or plain float.
    Accepts "0.08", "8%", or "8" (treated as 8%). Negative rates keep their sign.
    """
    txt = raw.strip().replace("%", "")
    if not txt:
        return 0.0
    try:
        val = float(txt)
    except ValueError:
        return 0.0
    return val / 100.0 if abs(val) > 1 else val


def _build_params(
    config: Optional[Path],
    initial: Optional[float],
    monthly: Optional[float],
    discount: Optional[float],
    months: Optional[int],
    growth: Optional[float],
    price_per_oz: Optional[float],
    price_per_kg: Optional[float],
) -> SimulationParams:
    if config:
        try:
            base = config_io.load_simulation_params(config)
        except (OSError, json.JSONDecodeError) as exc:
            raise typer.BadParameter(f"Cannot read plan file {config}: {exc}") from exc
    else:
        base = SimulationParams()

    overrides = {
        "initial_investment": initial,
        "monthly_investment": monthly,
        "monthly_discount_rate": discount,
        "duration_months": months,
        "expected_annual_growth": growth,
        "spot_price_per_ounce": price_per_oz,
    }
    if price_per_kg is not None and price_per_oz is None:
        overrides["spot_price_per_ounce"] = units.price_per_ounce(price_per_kg)

    data = config_io.params_to_dict(base)
    data.update({k: v for k, v in overrides.items() if v is not None})
    return simulator.sanitize_params(data)


def _money(value: float) -> str:
    return f"${value:,.2f}"


def _ledger_table(result: SimulationResult) -> Table:
    table = Table(title="Monthly ledger")
    for name in ("Month", "Market", "Purchase", "Invested", "Gold (oz)", "Total gold", "Total invested", "Value", "Profit"):
        table.add_column(name, justify="right")
    for row in result.monthly_data:
        profit_style = "green" if row.profit >= 0 else "red"
        table.add_row(
            str(row.month),
            _money(row.market_price),
            _money(row.purchase_price),
            _money(row.amount_invested),
            f"{row.gold_ounces_purchased:.6f}",
            f"{row.cumulative_gold:.6f}",
            _money(row.cumulative_invested),
            _money(row.portfolio_value),
            f"[{profit_style}]{_money(row.profit)}[/{profit_style}]",
        )
    return table


def _print_summary(console: Console, result: SimulationResult) -> None:
    p = result.params
    console.print("\n[bold yellow]== Gold Plan ==[/bold yellow]")
    console.print(
        f"Spot: [bold]{_money(p.spot_price_per_ounce)}[/bold]/oz "
        f"({_money(units.price_per_kilogram(p.spot_price_per_ounce))}/kg) | "
        f"Growth: {p.expected_annual_growth*100:.1f}%/yr | Discount: {p.monthly_discount_rate*100:.1f}% | "
        f"Months: {p.duration_months}"
    )
    console.print(f"Total invested: [bold]{_money(result.total_invested)}[/bold]")
    console.print(f"Total gold: [bold]{result.total_gold_ounces:.4f} oz[/bold]")
    console.print(f"Final value: [bold]{_money(result.final_portfolio_value)}[/bold]")
    console.print(f"Average cost: [bold]{_money(result.average_cost_per_ounce)}[/bold]/oz")
    style = "green" if result.total_profit >= 0 else "red"
    console.print(
        f"Profit: [{style}]{_money(result.total_profit)}[/{style}] | ROI: [{style}]{result.roi:.2f}%[/{style}]"
    )


def _print_analysis(console: Console, analysis: AIAnalysis) -> None:
    console.print("\n[bold magenta]AI analysis[/bold magenta]")
    console.print(analysis.summary)
    console.print("\n[bold]Recommendations:[/bold]")
    for item in analysis.recommendations:
        console.print(f"- {item}")
    console.print(f"\n[bold]Market context:[/bold] {analysis.market_context}")
    if analysis.sources:
        console.print("\n[bold]Sources:[/bold]")
        for source in analysis.sources:
            console.print(f"- {source.title}: {source.uri}")


def _run_analysis(console: Console, pending: Awaitable[Optional[AIAnalysis]]) -> Optional[AIAnalysis]:
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        transient=True,
        console=console,
    ) as progress:
        progress.add_task("Requesting AI analysis...", total=None)
        return asyncio.run(pending)


@app.command()
def simulate(
    config: Optional[Path] = typer.Option(None, help="Plan JSON (missing keys use defaults)"),
    initial: Optional[float] = typer.Option(None, help="Initial purchase amount"),
    monthly: Optional[float] = typer.Option(None, help="Recurring monthly purchase amount"),
    discount: Optional[float] = typer.Option(None, help="Discount on every purchase (0.02 = 2%)"),
    months: Optional[int] = typer.Option(None, help="Number of recurring months after the initial purchase"),
    growth: Optional[float] = typer.Option(None, help="Expected annual gold price growth (may be negative)"),
    price_per_oz: Optional[float] = typer.Option(None, help="Spot price per troy ounce"),
    price_per_kg: Optional[float] = typer.Option(None, help="Spot price per kilogram (used if no per-ounce price)"),
    table: bool = typer.Option(False, help="Print the monthly ledger as a table"),
    csv: Optional[Path] = typer.Option(None, help="Write the monthly ledger to CSV"),
    out: Optional[Path] = typer.Option(None, help="Output path for simulation JSON"),
):
    """Run the gold accumulation projection."""
    params = _build_params(config, initial, monthly, discount, months, growth, price_per_oz, price_per_kg)
    result = simulator.simulate(params)

    if csv:
        export.export_ledger_csv(result, csv)
        typer.echo(f"Ledger written to {csv}")
    if table:
        console = Console()
        console.print(_ledger_table(result))
        _print_summary(console, result)
        return

    payload = export.result_to_json(result)
    if out:
        _save_json(out, payload)
        typer.echo(f"Simulation written to {out}")
    else:
        typer.echo(json.dumps(payload, indent=2))


@app.command()
def compare(
    config: Optional[Path] = typer.Option(None, help="Plan JSON (missing keys use defaults)"),
    initial: Optional[float] = typer.Option(None, help="Initial purchase amount"),
    monthly: Optional[float] = typer.Option(None, help="Recurring monthly purchase amount"),
    discount: Optional[float] = typer.Option(None, help="Discount on every purchase (0.02 = 2%)"),
    months: Optional[int] = typer.Option(None, help="Number of recurring months after the initial purchase"),
    growth: Optional[float] = typer.Option(None, help="Expected annual gold price growth (may be negative)"),
    price_per_oz: Optional[float] = typer.Option(None, help="Spot price per troy ounce"),
    price_per_kg: Optional[float] = typer.Option(None, help="Spot price per kilogram (used if no per-ounce price)"),
    out: Optional[Path] = typer.Option(None, help="Output path for comparison JSON"),
):
    """Compare the discounted plan against buying at market price."""
    params = _build_params(config, initial, monthly, discount, months, growth, price_per_oz, price_per_kg)
    result = comparison.compare_discount(params)
    payload = export.comparison_to_json(result)
    if out:
        _save_json(out, payload)
        typer.echo(f"Comparison written to {out}")
    else:
        typer.echo(json.dumps(payload, indent=2))


@app.command()
def analyze(
    config: Optional[Path] = typer.Option(None, help="Plan JSON (missing keys use defaults)"),
    initial: Optional[float] = typer.Option(None, help="Initial purchase amount"),
    monthly: Optional[float] = typer.Option(None, help="Recurring monthly purchase amount"),
    discount: Optional[float] = typer.Option(None, help="Discount on every purchase (0.02 = 2%)"),
    months: Optional[int] = typer.Option(None, help="Number of recurring months after the initial purchase"),
    growth: Optional[float] = typer.Option(None, help="Expected annual gold price growth (may be negative)"),
    price_per_oz: Optional[float] = typer.Option(None, help="Spot price per troy ounce"),
    price_per_kg: Optional[float] = typer.Option(None, help="Spot price per kilogram (used if no per-ounce price)"),
    out: Optional[Path] = typer.Option(None, help="Output path for analysis JSON"),
):
    """
    Run the projection and ask the language model for commentary (needs HF_TOKEN).
    """
    params = _build_params(config, initial, monthly, discount, months, growth, price_per_oz, price_per_kg)
    result = simulator.simulate(params)
    console = Console()
    _print_summary(console, result)

    analysis = _run_analysis(console, commentary.analyze_result(result))
    if out:
        _save_json(out, {"summary": export.summary_to_json(result), "analysis": export.analysis_to_json(analysis)})
        typer.echo(f"Analysis written to {out}")
    else:
        _print_analysis(console, analysis)


@app.command()
def convert(
    oz: Optional[float] = typer.Option(None, help="Price per troy ounce to convert to per kilogram"),
    kg: Optional[float] = typer.Option(None, help="Price per kilogram to convert to per troy ounce"),
):
    """Convert a gold price between per-ounce and per-kilogram."""
    if (oz is None) == (kg is None):
        raise typer.BadParameter("Provide exactly one of --oz or --kg")
    if oz is not None:
        typer.echo(f"{oz:.2f}/oz = {units.price_per_kilogram(oz):.2f}/kg")
    else:
        typer.echo(f"{kg:.2f}/kg = {units.price_per_ounce(kg):.2f}/oz")


@app.command()
def interactive():
    """
    Interactive mode: answer a few questions, see the projection and optionally ask for AI commentary.
    """
    console = Console()
    console.print("[bold yellow]Gold Plan Quick Simulation[/bold yellow]\n")

    defaults = SimulationParams()
    session = PlanSession()

    unit = typer.prompt("Enter spot price per (oz/kg)", default="oz")
    if unit.strip().lower() == "kg":
        price = typer.prompt(
            "Spot price per kilogram",
            default=round(units.price_per_kilogram(defaults.spot_price_per_ounce), 2),
            type=float,
        )
        session.set_price_per_kilogram(price)
    else:
        price = typer.prompt("Spot price per ounce", default=defaults.spot_price_per_ounce, type=float)
        session.set_price_per_ounce(price)

    initial = typer.prompt("Initial purchase amount", default=defaults.initial_investment, type=float)
    monthly = typer.prompt("Monthly purchase amount", default=defaults.monthly_investment, type=float)
    months = typer.prompt("Months to simulate", default=defaults.duration_months, type=int)
    discount_in = typer.prompt(
        "Discount on every purchase (e.g., 0.02 = 2%)",
        default=str(defaults.monthly_discount_rate),
    )
    growth_in = typer.prompt(
        "Expected annual gold price growth (e.g., 0.08 = 8%, -0.05 for a decline)",
        default=str(defaults.expected_annual_growth),
    )

    result = session.update(
        initial_investment=initial,
        monthly_investment=monthly,
        duration_months=months,
        monthly_discount_rate=_parse_rate(discount_in),
        expected_annual_growth=_parse_rate(growth_in),
    )
    _print_summary(console, result)
    console.print(
        f"Price check: {_money(session.price_per_ounce)}/oz = {_money(session.price_per_kilogram)}/kg"
    )

    if typer.confirm("Show the monthly ledger?", default=False):
        console.print(_ledger_table(result))

    if typer.confirm("Request AI analysis (needs HF_TOKEN)?", default=False):
        analysis = _run_analysis(console, session.request_analysis())
        if analysis is not None:
            _print_analysis(console, analysis)

    console.print("\n[bold yellow]Done.[/bold yellow]\n")


if __name__ == "__main__":
    app()
