"""Account command handlers for CLI"""

import logging
from typing import Dict, Optional

from rich.console import Console

from codex_accounts import (
    AccountEntry,
    AccountStore,
    AccountSyncCoordinator,
    MalformedTokenError,
    NotFoundError,
    RateLimitClient,
    RateLimitSnapshot,
    StoreIOError,
    decode_jwt,
    refresh_account_store,
    select_latest_credential,
)
from codex_accounts.cache import now_seconds
from cli.selector import ask_text, confirm, select_one
from cli.status_display import account_choice_label, build_accounts_table, show_account_details


logger = logging.getLogger(__name__)


class AccountCommands:
    """Implements save / load / list / delete / delete-all / note"""

    def __init__(
        self,
        store: Optional[AccountStore] = None,
        console: Optional[Console] = None,
        client: Optional[RateLimitClient] = None,
        coordinator: Optional[AccountSyncCoordinator] = None,
    ):
        self.store = store or AccountStore()
        self.console = console or Console()
        self.client = client or RateLimitClient()
        self.coordinator = coordinator or AccountSyncCoordinator(self.client)

    async def _refresh_stale(self):
        """Refresh stale accounts behind a spinner, returning (accounts, active_email)"""
        with self.console.status("Checking rate limits...") as status:
            def on_progress(email: str, index: int, total: int):
                status.update(f"Updating {email} ({index + 1}/{total})...")

            accounts, active_email, report = await refresh_account_store(
                self.store, self.coordinator, on_progress=on_progress
            )

        if report.attempted:
            self.console.print(
                f"[green]✓[/green] Rate limits updated "
                f"({len(report.refreshed)}/{len(report.attempted)} account(s))\n"
            )
        return accounts, active_email

    async def save(self) -> int:
        """Save the credential in auth.json as a named account"""
        credential = self.store.load_active_credential()
        if credential is None:
            raise NotFoundError(f"{self.store.auth_file} not found")

        if not credential.id_token:
            raise StoreIOError("Invalid auth.json format")

        email = decode_jwt(credential.id_token).get("email")
        if not isinstance(email, str) or not email:
            raise MalformedTokenError("Could not extract email from token")

        accounts = self.store.load_accounts()
        existing = accounts.get(email)
        selected = select_latest_credential(credential, existing.credential if existing else None)
        if not selected.from_preferred:
            logger.info(f"Stored credential for {email} is newer than auth.json, keeping it")

        entry = AccountEntry(
            credential=selected.credential,
            rate_limits=RateLimitSnapshot.placeholder(now_seconds()),
            last_updated=0,
            notes=existing.notes if existing else None,
        )
        accounts[email] = entry

        with self.console.status("Fetching rate limits..."):
            result = await self.client.sync(entry.credential, allow_refresh=False)

        if result.snapshot is not None:
            entry.rate_limits = result.snapshot
            entry.last_updated = now_seconds()
            self.console.print("[green]✓[/green] Rate limits fetched")
        else:
            self.console.print("[yellow]Could not fetch rate limits (will retry on next list)[/yellow]")

        self.store.save_accounts(accounts)
        self.console.print(f"[green]✓ Saved auth for {email}[/green]")
        return 0

    async def load(self) -> int:
        """Pick a saved account and make it the active credential"""
        if not self.store.has_accounts():
            raise NotFoundError("No saved accounts found. Run 'save' first.")

        accounts, _ = await self._refresh_stale()
        if not accounts:
            raise NotFoundError("No saved accounts found. Run 'save' first.")

        choices = [(email, account_choice_label(email, entry)) for email, entry in accounts.items()]
        selected_email = select_one(self.console, "Select an account to load:", choices)
        if selected_email is None:
            self.console.print("[yellow]Cancelled.[/yellow]")
            return 0

        entry = accounts.get(selected_email)
        if entry is None:
            raise NotFoundError("Selected account not found.")

        self.store.save_active_credential(entry.credential)
        entry.last_updated = now_seconds()
        self.store.save_accounts(accounts)

        self.console.print()
        self.console.print(f"[green]✓ Loaded auth for [bold]{selected_email}[/bold][/green]")
        self.console.print()
        show_account_details(entry, self.console)
        return 0

    async def list_accounts(self) -> int:
        """Show all saved accounts with their cached rate limits"""
        if not self.store.has_accounts():
            self.console.print("[yellow]No saved accounts found.[/yellow]")
            return 0

        accounts, active_email = await self._refresh_stale()
        if not accounts:
            self.console.print("[yellow]No saved accounts found.[/yellow]")
            return 0

        self.console.print(build_accounts_table(accounts, active_email))
        return 0

    def _require_accounts(self) -> Dict[str, AccountEntry]:
        accounts = self.store.load_accounts()
        if not accounts:
            raise NotFoundError("No saved accounts found.")
        return accounts

    def delete(self) -> int:
        """Remove one saved account"""
        accounts = self._require_accounts()

        choices = [(email, f"{email} ({entry.rate_limits.plan_type})") for email, entry in accounts.items()]
        selected_email = select_one(self.console, "Select an account to delete:", choices)
        if selected_email is None:
            self.console.print("[yellow]Cancelled.[/yellow]")
            return 0

        if not confirm(self.console, f"Are you sure you want to delete [cyan]{selected_email}[/cyan]?"):
            self.console.print("[yellow]Cancelled.[/yellow]")
            return 0

        del accounts[selected_email]

        if not accounts:
            self.store.clear_accounts()
            self.console.print(
                f"[green]✓ Deleted {selected_email} and removed empty {self.store.auths_file.name}[/green]"
            )
        else:
            self.store.save_accounts(accounts)
            self.console.print(f"[green]✓ Deleted {selected_email}[/green]")
        return 0

    def delete_all(self) -> int:
        """Remove every saved account"""
        if not self.store.has_accounts():
            self.console.print("[yellow]No saved accounts found.[/yellow]")
            return 0

        count = len(self.store.load_accounts())
        if not confirm(self.console, f"Are you sure you want to delete all {count} saved account(s)?"):
            self.console.print("[yellow]Cancelled.[/yellow]")
            return 0

        self.store.clear_accounts()
        self.console.print(f"[green]✓ Deleted all saved accounts ({count})[/green]")
        return 0

    def note(self, email: Optional[str] = None, delete: bool = False) -> int:
        """Add, edit or delete the note of a saved account"""
        accounts = self.store.load_accounts()
        if not accounts:
            self.console.print("[yellow]No saved accounts found.[/yellow]")
            return 0

        selected_email = email
        if not selected_email:
            choices = [(e, e) for e in accounts]
            selected_email = select_one(self.console, "Select an account:", choices)
            if selected_email is None:
                self.console.print("[yellow]No account selected.[/yellow]")
                return 0

        entry = accounts.get(selected_email)
        if entry is None:
            self.console.print(f"[red]Account not found: {selected_email}[/red]")
            return 0

        if delete:
            if entry.notes:
                entry.notes = None
                self.store.save_accounts(accounts)
                self.console.print(f"[green]Note deleted for {selected_email}[/green]")
            else:
                self.console.print(f"[yellow]No note found for {selected_email}[/yellow]")
            return 0

        current = entry.notes or ""
        action = "Edit" if current else "Add"
        answer = ask_text(self.console, f"{action} note for {selected_email}", default=current)
        if answer is None:
            self.console.print("[yellow]Operation cancelled.[/yellow]")
            return 0

        answer = answer.strip()
        if not answer:
            entry.notes = None
            self.console.print(f"[green]Note removed for {selected_email}[/green]")
        else:
            entry.notes = answer
            self.console.print(f"[green]Note {'updated' if current else 'added'} for {selected_email}[/green]")

        self.store.save_accounts(accounts)
        return 0
