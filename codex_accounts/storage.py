"""Persistent storage for the active Codex credential and saved accounts"""

import json
import logging
import os
import platform
from pathlib import Path
from typing import Any, Dict, Optional

from settings import AUTH_FILE, AUTHS_FILE
from .errors import StoreIOError
from .models import AccountEntry, Credential


logger = logging.getLogger(__name__)


class AccountStore:
    """Reads and writes auth.json (active credential) and _auths.json (saved accounts)

    Both files are rewritten whole on every save. A missing file is not an
    error: it reads as "no active credential" or an empty collection.
    """

    def __init__(self, auth_file: Optional[Path] = None, auths_file: Optional[Path] = None):
        """Initialize account storage

        Args:
            auth_file: Path to the Codex auth file (default: ~/.codex/auth.json)
            auths_file: Path to the saved accounts file (default: ~/.codex/_auths.json)
        """
        self.auth_file = Path(auth_file if auth_file else AUTH_FILE)
        self.auths_file = Path(auths_file if auths_file else AUTHS_FILE)

    def _read_json(self, path: Path) -> Optional[Dict[str, Any]]:
        if not path.exists():
            logger.debug(f"No file at {path}")
            return None

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            raise StoreIOError(f"Failed to read {path}: {e}") from e

        if not isinstance(data, dict):
            raise StoreIOError(f"Failed to read {path}: expected a JSON object")
        return data

    def _write_json(self, path: Path, data: Dict[str, Any]) -> None:
        try:
            parent_dir = path.parent
            if not parent_dir.exists():
                parent_dir.mkdir(parents=True, exist_ok=True)
                if platform.system() != "Windows":
                    os.chmod(parent_dir, 0o700)

            path.write_text(json.dumps(data, indent=2), encoding="utf-8")

            # Owner read/write only, the files hold refresh tokens
            if platform.system() != "Windows":
                os.chmod(path, 0o600)
        except OSError as e:
            raise StoreIOError(f"Failed to write {path}: {e}") from e

        logger.debug(f"Wrote {path}")

    def has_active_credential(self) -> bool:
        return self.auth_file.exists()

    def load_active_credential(self) -> Optional[Credential]:
        """Load the credential currently used by the Codex CLI

        Returns:
            Credential, or None if auth.json does not exist

        Raises:
            StoreIOError: the file exists but cannot be read or parsed
        """
        data = self._read_json(self.auth_file)
        if data is None:
            return None
        return Credential.from_dict(data)

    def save_active_credential(self, credential: Credential) -> None:
        """Overwrite auth.json with the given credential"""
        self._write_json(self.auth_file, credential.to_dict())
        logger.info(f"Wrote active credential to {self.auth_file}")

    def has_accounts(self) -> bool:
        return self.auths_file.exists()

    def load_accounts(self) -> Dict[str, AccountEntry]:
        """Load saved accounts keyed by email, in file order

        Raises:
            StoreIOError: the file exists but cannot be read or parsed
        """
        data = self._read_json(self.auths_file)
        if data is None:
            return {}

        accounts: Dict[str, AccountEntry] = {}
        for email, raw in data.items():
            if not isinstance(raw, dict):
                logger.warning(f"Skipping malformed account entry for {email}")
                continue
            try:
                accounts[email] = AccountEntry.from_dict(raw)
            except (ValueError, TypeError, AttributeError) as e:
                logger.warning(f"Skipping malformed account entry for {email}: {e}")
        return accounts

    def save_accounts(self, accounts: Dict[str, AccountEntry]) -> None:
        """Rewrite the saved accounts file"""
        data = {email: entry.to_dict() for email, entry in accounts.items()}
        self._write_json(self.auths_file, data)
        logger.debug(f"Saved {len(accounts)} account(s)")

    def clear_accounts(self) -> bool:
        """Remove the saved accounts file

        Returns:
            True if a file was removed
        """
        if not self.auths_file.exists():
            return False
        try:
            self.auths_file.unlink()
        except OSError as e:
            raise StoreIOError(f"Failed to remove {self.auths_file}: {e}") from e
        logger.info(f"Removed {self.auths_file}")
        return True
