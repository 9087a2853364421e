"""Discipline rule commands for Trade Journal CLI.

Personal trading rules are checked off once per trading day. Streaks,
compliance and XP levels are computed from the check history.
"""

from datetime import datetime
from typing import Optional

import click
from pydantic import ValidationError
from rich.panel import Panel
from rich.table import Table

from tradejournal.analytics import discipline
from tradejournal.cli.common import (
    DATE_TYPE,
    console,
    fail,
    get_data_store,
    load_config,
    load_timezone,
)
from tradejournal.formatters import format_percent, truncate
from tradejournal.models import RuleCategory, UserRule, UserRuleCheck

CATEGORY_CHOICE = click.Choice([c.value for c in RuleCategory], case_sensitive=False)


def _require_rule(store, rule_id: int) -> UserRule:
    rule = store.get_rule(rule_id)
    if rule is None:
        fail(f"Rule {rule_id} not found.")
    return rule


def _progress_bar(percent: int, width: int = 20) -> str:
    filled = round(width * percent / 100)
    return "[green]" + "█" * filled + "[/green][dim]" + "░" * (width - filled) + "[/dim]"


@click.group()
def rules():
    """Track personal trading rules.

    \b
    Examples:
      tradejournal rules add "Max 3 trades per day" --category risk
      tradejournal rules presets --install
      tradejournal rules check --all
      tradejournal rules check 2 --missed
      tradejournal rules status
    """
    pass


@rules.command("add")
@click.argument("title")
@click.option("-d", "--description", default=None, help="Rule details.")
@click.option("-c", "--category", type=CATEGORY_CHOICE, default="discipline", show_default=True)
def rules_add(title: str, description: Optional[str], category: str) -> None:
    """Add a rule."""
    store = get_data_store()
    try:
        rule_id = store.add_rule(UserRule(title=title, description=description, category=category))
    except ValidationError as e:
        fail(f"Invalid rule.\n\n{e}")
    console.print(f"[green]✓ Added rule #{rule_id}[/green] {title}")


@rules.command("list")
@click.option("--all", "show_all", is_flag=True, help="Include inactive rules.")
def rules_list(show_all: bool) -> None:
    """List rules."""
    store = get_data_store()
    items = store.get_rules(active_only=not show_all)

    if not items:
        console.print(
            "[dim]No rules. Add one with [cyan]tradejournal rules add TITLE[/cyan] "
            "or install presets with [cyan]tradejournal rules presets --install[/cyan].[/dim]"
        )
        return

    table = Table(title="Trading Rules", show_header=True)
    table.add_column("ID", justify="right", style="dim")
    table.add_column("Rule", style="cyan")
    table.add_column("Category")
    table.add_column("Description")
    if show_all:
        table.add_column("Active", justify="center")

    for rule in items:
        row = [str(rule.id), rule.title, rule.category.value, truncate(rule.description, 40)]
        if show_all:
            row.append("[green]✓[/green]" if rule.is_active else "[dim]-[/dim]")
        table.add_row(*row)

    console.print(table)


@rules.command("edit")
@click.argument("rule_id", type=int)
@click.option("-t", "--title", default=None, help="New title.")
@click.option("-d", "--description", default=None, help="New description.")
@click.option("-c", "--category", type=CATEGORY_CHOICE, default=None, help="New category.")
@click.option("--order", "display_order", type=click.IntRange(min=0), default=None,
              help="Sort position.")
@click.option("--active/--inactive", "is_active", default=None, help="Enable or disable.")
def rules_edit(rule_id: int, **changes) -> None:
    """Edit a rule."""
    store = get_data_store()
    rule = _require_rule(store, rule_id)
    update = {key: value for key, value in changes.items() if value is not None}
    if not update:
        console.print("[yellow]Nothing to change.[/yellow]")
        return
    try:
        edited = UserRule(**{**rule.model_dump(), **update})
    except ValidationError as e:
        fail(f"Invalid rule.\n\n{e}")
    store.update_rule(edited)
    console.print(f"[green]✓ Updated rule #{rule_id}[/green] {edited.title}")


@rules.command("remove")
@click.argument("rule_id", type=int)
def rules_remove(rule_id: int) -> None:
    """Deactivate a rule. Its check history is kept."""
    store = get_data_store()
    rule = _require_rule(store, rule_id)
    store.delete_rule(rule_id)
    console.print(f"[green]✓ Removed rule[/green] {rule.title}")


@rules.command("check")
@click.argument("rule_ids", type=int, nargs=-1)
@click.option("--all", "check_all", is_flag=True, help="Check every active rule.")
@click.option("--missed", is_flag=True, help="Record the rules as broken.")
@click.option("--date", "check_date", type=DATE_TYPE, default=None,
              help="Day to record (default: today).")
def rules_check(rule_ids: tuple[int, ...], check_all: bool, missed: bool, check_date) -> None:
    """Record whether rules were followed today."""
    config = load_config()
    tz = load_timezone(config)
    store = get_data_store()

    day = check_date.date() if check_date else datetime.now(tz).date()
    if check_all:
        targets = store.get_rules(active_only=True)
    else:
        targets = [_require_rule(store, rule_id) for rule_id in rule_ids]

    if not targets:
        fail("No rules to check. Pass rule IDs or --all.")

    trading_days = config.get("discipline", {}).get("trading_days")
    if not discipline.is_trading_day(day, trading_days):
        console.print(f"[yellow]{day:%A} is not a configured trading day.[/yellow]")

    for rule in targets:
        store.record_rule_check(UserRuleCheck(rule_id=rule.id, check_date=day, followed=not missed))
        mark = "[red]✗[/red]" if missed else "[green]✓[/green]"
        console.print(f"{mark} {rule.title}")


@rules.command("status")
@click.option("--date", "as_of", type=DATE_TYPE, default=None, help="Day to report (default: today).")
def rules_status(as_of) -> None:
    """Show streaks, compliance and discipline level."""
    config = load_config()
    tz = load_timezone(config)
    store = get_data_store()

    today = as_of.date() if as_of else datetime.now(tz).date()
    active = store.get_rules(active_only=True)
    if not active:
        console.print("[dim]No active rules.[/dim]")
        return

    checks = store.get_rule_checks()
    active_ids = {rule.id for rule in active}
    active_checks = [c for c in checks if c.rule_id in active_ids]

    table = Table(title=f"Rules - {today.isoformat()}", show_header=True)
    table.add_column("ID", justify="right", style="dim")
    table.add_column("Rule", style="cyan")
    table.add_column("Today", justify="center")
    table.add_column("Streak", justify="right")
    table.add_column("Best", justify="right")
    table.add_column("Compliance", justify="right")

    for rule in active:
        stats = discipline.rule_stats(rule, active_checks, today=today)
        if stats.today is None:
            today_mark = "[dim]-[/dim]"
        else:
            today_mark = "[green]✓[/green]" if stats.today else "[red]✗[/red]"
        table.add_row(
            str(rule.id),
            truncate(rule.title, 40),
            today_mark,
            str(stats.current_streak),
            str(stats.longest_streak),
            format_percent(stats.compliance, 0) if stats.total else "[dim]-[/dim]",
        )

    console.print(table)

    xp = discipline.discipline_xp(active_checks, len(active))
    level = discipline.level_for_xp(xp)
    progress = discipline.level_progress(xp)
    streak = discipline.perfect_day_streak(active_checks, len(active))
    remaining = discipline.xp_to_next_level(xp)

    lines = [
        f"Level {level.level}: [bold]{level.title}[/bold]",
        f"{_progress_bar(progress)} {progress}%",
        f"XP: {xp}" + (f"  [dim]({remaining} to next level)[/dim]" if remaining else ""),
        f"Perfect day streak: {streak}",
    ]
    trading_days = config.get("discipline", {}).get("trading_days")
    if not discipline.is_trading_day(today, trading_days):
        lines.append(f"[dim]{today:%A} is not a trading day.[/dim]")

    console.print(Panel("\n".join(lines), title="[bold]Discipline[/bold]", border_style="magenta"))


@rules.command("presets")
@click.option("--install", is_flag=True, help="Add presets not already present.")
def rules_presets(install: bool) -> None:
    """Show or install the preset rules."""
    store = get_data_store()

    if not install:
        table = Table(title="Preset Rules", show_header=True)
        table.add_column("Rule", style="cyan")
        table.add_column("Category")
        table.add_column("Description")
        for rule in discipline.PRESET_RULES:
            table.add_row(rule.title, rule.category.value, rule.description or "")
        console.print(table)
        console.print("[dim]Install with: tradejournal rules presets --install[/dim]")
        return

    existing = {rule.title.lower() for rule in store.get_rules(active_only=False)}
    added = 0
    for rule in discipline.PRESET_RULES:
        if rule.title.lower() in existing:
            continue
        store.add_rule(rule)
        added += 1

    console.print(f"[green]✓ Installed {added} preset rules[/green]")
