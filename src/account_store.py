from typing import Dict, Iterator, Optional

from models import ClientAccount


class AccountStore:
    """
    Client accounts keyed by client id.
    Accounts are created lazily and live for the whole run.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}

    def get_account(self, client_id: int) -> Optional[ClientAccount]:
        """Return the account for a client, or None if it has not been seen."""
        return self._accounts.get(client_id)

    def get_or_create_account(self, client_id: int) -> ClientAccount:
        """Get existing account or create new one."""
        if client_id not in self._accounts:
            self._accounts[client_id] = ClientAccount(client_id=client_id)
        return self._accounts[client_id]

    def get_all_accounts(self) -> Dict[int, ClientAccount]:
        """Return all accounts (for final output)."""
        return dict(self._accounts)

    def sorted_accounts(self) -> Iterator[ClientAccount]:
        for client_id in sorted(self._accounts):
            yield self._accounts[client_id]

    def __contains__(self, client_id: int) -> bool:
        return client_id in self._accounts

    def __len__(self) -> int:
        return len(self._accounts)
