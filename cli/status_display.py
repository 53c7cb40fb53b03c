"""Rate limit display functionality for CLI"""

import time
from typing import Dict, Optional

from rich.table import Table

from codex_accounts import AccountEntry, RateLimitWindow

NOTE_PREVIEW_LENGTH = 30


def format_time_until(timestamp: int, now: Optional[int] = None) -> str:
    """
    Format the time remaining until an epoch timestamp

    Args:
        timestamp: Target time in epoch seconds
        now: Current epoch seconds (defaults to wall clock)

    Returns:
        String like "2d 3h 5m", "45m" or "now"
    """
    if now is None:
        now = int(time.time())
    seconds_left = timestamp - now

    if seconds_left <= 0:
        return "now"

    days = seconds_left // 86400
    hours = (seconds_left % 86400) // 3600
    minutes = (seconds_left % 3600) // 60

    parts = []
    if days > 0:
        parts.append(f"{days}d")
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0 or not parts:
        parts.append(f"{minutes}m")

    return " ".join(parts)


def format_percent(value: float) -> str:
    """Render a usage percentage without a trailing .0"""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return f"{value}%"


def format_usage(window: RateLimitWindow) -> str:
    reset_text = format_time_until(window.resets_at) if window.resets_at else "?"
    return f"{format_percent(window.used_percent)} [dim]({reset_text})[/dim]"


def truncate_note(notes: Optional[str]) -> str:
    if not notes:
        return ""
    if len(notes) > NOTE_PREVIEW_LENGTH:
        return notes[:NOTE_PREVIEW_LENGTH] + "..."
    return notes


def account_choice_label(email: str, entry: AccountEntry) -> str:
    """Label used when picking an account to load"""
    limits = entry.rate_limits
    return (
        f"{email} ({limits.plan_type}, "
        f"5h: {format_percent(limits.primary.used_percent)}, "
        f"Week: {format_percent(limits.secondary.used_percent)})"
    )


def build_accounts_table(accounts: Dict[str, AccountEntry], active_email: Optional[str]) -> Table:
    """
    Build the saved accounts table

    Args:
        accounts: Saved accounts keyed by email
        active_email: Email of the account in auth.json, if any

    Returns:
        Rich table ready to print
    """
    table = Table(title=f"Saved accounts ({len(accounts)})", title_justify="left")
    table.add_column("#", style="dim")
    table.add_column("active", justify="center")
    table.add_column("email", style="cyan")
    table.add_column("type", style="blue")
    table.add_column("5h used")
    table.add_column("weekly used")
    table.add_column("notes", style="dim")

    for index, (email, entry) in enumerate(accounts.items(), start=1):
        table.add_row(
            f"{index})",
            "[green]*[/green]" if email == active_email else "",
            email,
            entry.rate_limits.plan_type,
            format_usage(entry.rate_limits.primary),
            format_usage(entry.rate_limits.secondary),
            truncate_note(entry.notes),
        )

    return table


def show_account_details(entry: AccountEntry, console):
    """
    Display plan and usage for a single account

    Args:
        entry: Account to describe
        console: Rich console for output
    """
    limits = entry.rate_limits

    console.print("[bold]Account Details:[/bold]")
    console.print(f"  Plan: [blue]{limits.plan_type}[/blue]")

    for label, window in (("5-hour limit", limits.primary), ("Weekly limit", limits.secondary)):
        resets = format_time_until(window.resets_at) if window.resets_at else "unknown"
        console.print(
            f"  {label}: [magenta]{format_percent(window.used_percent)}[/magenta] used "
            f"[dim](resets in {resets})[/dim]"
        )

    if limits.credits.unlimited:
        console.print("  Credits: [green]unlimited[/green]")
    elif limits.credits.has_credits:
        console.print(f"  Credits: {limits.credits.balance or 'available'}")

    console.print()
