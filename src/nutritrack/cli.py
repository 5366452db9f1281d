"""CLI interface using Typer."""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from nutritrack.config import get_settings, reload_settings
from nutritrack.errors import NutritrackError
from nutritrack.profiles.body_calc import (
    UserProfile,
    calculate_metrics,
    compute_bmi,
    metrics_to_dict,
)
from nutritrack.subscription.billing import activate_premium, cancel_premium, start_trial
from nutritrack.subscription.entitlement import (
    evaluate_entitlement,
    grace_days_left,
    trial_notice,
)
from nutritrack.subscription.gate import FeatureGate
from nutritrack.subscription.models import PAID_PLANS, SubscriptionPlan, SubscriptionRecord
from nutritrack.subscription.serialization import load_record, save_record

app = typer.Typer(
    help="Body metrics and subscription entitlement for nutrition tracking",
    no_args_is_help=True,
)
console = Console()

entitlement_app = typer.Typer(help="Evaluate and update subscription records")
app.add_typer(entitlement_app, name="entitlement")


# ============================================================================
# Helpers
# ============================================================================


def output_json(response: dict, file=None) -> None:
    """Output JSON response to stdout or file."""
    json_str = json.dumps(response, indent=2)
    if file:
        file.write(json_str)
    else:
        print(json_str)


def fail(command: str, message: str, json_output: bool) -> None:
    """Report an error in the requested format and exit with status 1."""
    if json_output:
        output_json({"success": False, "command": command, "errors": [message]})
    else:
        console.print(f"[red]{message}[/red]")
    raise typer.Exit(1)


def configure_logging(verbose: bool = False) -> None:
    """Route log records through Rich on stderr."""
    level = logging.DEBUG if verbose else get_settings().logging.level
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )
    logging.getLogger("nutritrack").setLevel(level)


def parse_now(value: Optional[str]) -> datetime:
    """Parse --now, defaulting to the current UTC time. Naive values are UTC."""
    if value is None:
        return datetime.now(timezone.utc)
    try:
        moment = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise typer.BadParameter(f"invalid ISO-8601 timestamp: {value}") from e
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def _format_ts(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def read_record(path: Path) -> SubscriptionRecord:
    """Load a record file. Naive timestamps are UTC, the same as --now."""
    record = load_record(path)
    return replace(
        record,
        trial_start=_as_utc(record.trial_start),
        premium_activated_at=_as_utc(record.premium_activated_at),
        premium_expiry=_as_utc(record.premium_expiry),
    )


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    config: Optional[Path] = typer.Option(
        None, "--config", help="Path to config.yaml (default: ~/.nutritrack/config.yaml)"
    ),
) -> None:
    """Configure settings and logging before any command."""
    if config is not None:
        reload_settings(config)
    configure_logging(verbose)


# ============================================================================
# Body metrics
# ============================================================================


@app.command()
def bmi(
    weight: float = typer.Option(..., "--weight", help="Weight in kg"),
    height: float = typer.Option(..., "--height", help="Height in cm"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Calculate Body Mass Index and weight category."""
    try:
        result = compute_bmi(weight, height)
    except NutritrackError as e:
        fail("bmi", str(e), json_output)

    if json_output:
        output_json({
            "success": True,
            "command": "bmi",
            "data": {
                "bmi": result.bmi,
                "category": result.category.value,
                "label": result.category.label,
                "description": result.description,
            },
        })
        return

    console.print(Panel(
        f"[bold]{result.bmi}[/bold]  {result.category.label}\n[dim]{result.description}[/dim]",
        title="Body Mass Index",
    ))


@app.command()
def metrics(
    weight: float = typer.Option(..., "--weight", help="Weight in kg"),
    height: float = typer.Option(..., "--height", help="Height in cm"),
    age: int = typer.Option(..., "--age", help="Age in years"),
    sex: str = typer.Option(..., "--sex", help="Sex (male/female)"),
    activity: Optional[str] = typer.Option(
        None,
        "--activity",
        help="Activity level (sedentary/light/moderate/active/very_active)",
    ),
    goal: Optional[str] = typer.Option(
        None, "--goal", help="Goal for macro split (maintenance/fat_loss/muscle_gain/keto)"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Calculate BMI, BMR, TDEE and daily macro targets."""
    if activity is None:
        activity = get_settings().metrics.default_activity_level

    try:
        profile = UserProfile(
            weight_kg=weight,
            height_cm=height,
            age=age,
            sex=sex,
            activity_level=activity,
        )
        report = calculate_metrics(profile, goal=goal)
    except NutritrackError as e:
        fail("metrics", str(e), json_output)

    if json_output:
        output_json({
            "success": True,
            "command": "metrics",
            "data": metrics_to_dict(report),
        })
        return

    table = Table(title="Body Metrics")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_column("Notes", style="dim")

    table.add_row("BMI", f"{report.bmi.bmi}", report.bmi.category.label)
    table.add_row("BMR", f"{report.metabolism.bmr} kcal", "At rest")
    table.add_row(
        "TDEE",
        f"{report.metabolism.tdee} kcal",
        f"{report.metabolism.activity_level.value} x{report.metabolism.multiplier}",
    )
    table.add_row("Protein", f"{report.macros.proteins} g", f"{report.macro_split.proteins}%")
    table.add_row("Carbs", f"{report.macros.carbs} g", f"{report.macro_split.carbs}%")
    table.add_row("Fat", f"{report.macros.fats} g", f"{report.macro_split.fats}%")

    console.print(table)


# ============================================================================
# Entitlement
# ============================================================================


@entitlement_app.command("status")
def entitlement_status(
    record_file: Path = typer.Argument(..., help="Subscription record YAML file"),
    now: Optional[str] = typer.Option(None, "--now", help="Evaluation time (ISO-8601, default: now)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show trial and premium status for a subscription record."""
    moment = parse_now(now)
    settings = get_settings()

    try:
        record = read_record(record_file)
        verdict = evaluate_entitlement(record, moment)
        notice = trial_notice(verdict, settings.subscription.expiring_notice_days)
        grace_days = grace_days_left(
            record, moment, grace_period=timedelta(days=settings.subscription.grace_days)
        )
    except (NutritrackError, OSError) as e:
        fail("entitlement status", str(e), json_output)

    if json_output:
        output_json({
            "success": True,
            "command": "entitlement status",
            "data": {
                "state": verdict.state.value,
                "plan": verdict.plan.value,
                "can_access": verdict.can_access,
                "trial_active": verdict.trial_active,
                "trial_days_left": verdict.trial_days_left,
                "trial_ends_at": _format_ts(verdict.trial_ends_at),
                "is_premium": verdict.is_premium,
                "grace_days_left": grace_days,
                "notice": {
                    "kind": notice.kind,
                    "title": notice.title,
                    "message": notice.message,
                } if notice else None,
            },
        })
        return

    access = "[green]granted[/green]" if verdict.can_access else "[red]denied[/red]"
    table = Table(title="Subscription Status")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("State", verdict.state.value)
    table.add_row("Plan", verdict.plan.value)
    table.add_row("Access", access)
    table.add_row("Trial days left", str(verdict.trial_days_left))
    table.add_row("Trial ends", _format_ts(verdict.trial_ends_at) or "")
    if grace_days:
        table.add_row("Data retained for", f"{grace_days} days")
    console.print(table)

    if notice:
        console.print(f"[yellow]{notice.title}:[/yellow] {notice.message}")


@entitlement_app.command("check")
def entitlement_check(
    record_file: Path = typer.Argument(..., help="Subscription record YAML file"),
    feature: str = typer.Argument(..., help="Feature name, e.g. bmi-calculator"),
    now: Optional[str] = typer.Option(None, "--now", help="Evaluation time (ISO-8601, default: now)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Check whether a feature is unlocked. Exits 1 when it is locked."""
    moment = parse_now(now)

    try:
        gate = FeatureGate(read_record(record_file), moment)
    except (NutritrackError, OSError) as e:
        fail("entitlement check", str(e), json_output)

    decision = gate.check(feature)

    if json_output:
        output_json({
            "success": True,
            "command": "entitlement check",
            "data": {
                "feature": decision.feature,
                "granted": decision.granted,
                "reason": decision.reason,
            },
        })
    elif decision.granted:
        console.print(f"[green]{decision.feature}: unlocked[/green] ({decision.reason})")
    else:
        console.print(f"[red]{decision.feature}: locked[/red] ({decision.reason})")
        console.print("Upgrade at: [cyan]/pricing[/cyan]")

    if not decision.granted:
        raise typer.Exit(1)


@entitlement_app.command("start-trial")
def entitlement_start_trial(
    output: Path = typer.Argument(..., help="Where to write the new record"),
    now: Optional[str] = typer.Option(None, "--now", help="Signup time (ISO-8601, default: now)"),
) -> None:
    """Create a subscription record for a new signup."""
    if output.exists():
        console.print(f"[red]Refusing to overwrite existing record: {output}[/red]")
        raise typer.Exit(1)

    record = start_trial(parse_now(now))
    save_record(record, output)
    console.print(f"[green]Trial started[/green], ends {_format_ts(record.trial_end)}")


@entitlement_app.command("activate")
def entitlement_activate(
    record_file: Path = typer.Argument(..., help="Subscription record YAML file"),
    plan: str = typer.Option(
        ..., "--plan", help="Paid plan (premium_monthly/premium_yearly/unlimited)"
    ),
    now: Optional[str] = typer.Option(None, "--now", help="Payment time (ISO-8601, default: now)"),
) -> None:
    """Apply a completed payment to a subscription record."""
    try:
        plan_enum = SubscriptionPlan(plan)
    except ValueError:
        valid = ", ".join(p.value for p in PAID_PLANS)
        console.print(f"[red]Unknown plan '{plan}'. Choose one of: {valid}[/red]")
        raise typer.Exit(1)

    try:
        record = activate_premium(read_record(record_file), plan_enum, parse_now(now))
    except (NutritrackError, OSError) as e:
        fail("entitlement activate", str(e), False)

    save_record(record, record_file)
    expiry = _format_ts(record.premium_expiry) or "no expiry"
    console.print(f"[green]{plan_enum.value} active[/green] ({expiry})")


@entitlement_app.command("cancel")
def entitlement_cancel(
    record_file: Path = typer.Argument(..., help="Subscription record YAML file"),
) -> None:
    """Apply a cancellation to a subscription record."""
    try:
        record = cancel_premium(read_record(record_file))
    except (NutritrackError, OSError) as e:
        fail("entitlement cancel", str(e), False)

    save_record(record, record_file)
    console.print("[yellow]Premium cancelled[/yellow]")


if __name__ == "__main__":
    app()
