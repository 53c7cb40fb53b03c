"""Interactive prompts for CLI"""

from typing import List, Optional, Tuple

from rich.prompt import Confirm, Prompt

CANCEL_INPUTS = ("", "q", "quit")


def select_one(console, message: str, choices: List[Tuple[str, str]]) -> Optional[str]:
    """
    Ask the user to pick one of several keys

    Args:
        console: Rich console for output
        message: Prompt headline
        choices: List of (key, label) pairs, shown numbered from 1

    Returns:
        The selected key, or None if the user cancelled
    """
    if not choices:
        return None

    console.print(f"[bold]{message}[/bold]")
    for index, (_, label) in enumerate(choices, start=1):
        console.print(f"  {index}) {label}")

    valid = [str(i) for i in range(1, len(choices) + 1)]

    try:
        answer = Prompt.ask(
            "Number (Enter to cancel)",
            console=console,
            choices=valid + list(CANCEL_INPUTS),
            show_choices=False,
            default="",
            show_default=False,
        )
    except (KeyboardInterrupt, EOFError):
        console.print()
        return None

    answer = answer.strip().lower()
    if answer in CANCEL_INPUTS:
        return None
    return choices[int(answer) - 1][0]


def confirm(console, message: str, default: bool = False) -> bool:
    """Yes/no question; interruption counts as no"""
    try:
        return Confirm.ask(message, console=console, default=default)
    except (KeyboardInterrupt, EOFError):
        console.print()
        return False


def ask_text(console, message: str, default: str = "") -> Optional[str]:
    """Free text input, or None if the user cancelled"""
    try:
        return Prompt.ask(message, console=console, default=default, show_default=bool(default))
    except (KeyboardInterrupt, EOFError):
        console.print()
        return None
