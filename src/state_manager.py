from typing import Dict, Optional

from account_state import ClientAccountState


class StateManager:
    """
    Owns the per-client account states for one run.
    Accounts are created on first reference and never removed.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccountState] = {}

    def get_or_create_account(self, client_id: int) -> ClientAccountState:
        """Get existing account or create new one."""
        if client_id not in self._accounts:
            self._accounts[client_id] = ClientAccountState(client_id=client_id)
        return self._accounts[client_id]

    def get_account(self, client_id: int) -> Optional[ClientAccountState]:
        return self._accounts.get(client_id)

    def get_all_accounts(self) -> Dict[int, ClientAccountState]:
        """Return all accounts ordered by client id (for final output)."""
        return {client_id: self._accounts[client_id] for client_id in sorted(self._accounts)}
