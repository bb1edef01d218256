from __future__ import annotations

from typing import Dict, Iterable, List

from crmlens.core.events import AccountChanged, BaseEvent, Signal, SourceSubsystem
from crmlens.core.records.models import Account, AccountSummary


_EMPTY = AccountSummary()

# summary fields whose changes listeners care about (name and country columns)
_TRACKED_FIELDS = ("name", "account_type", "country")


class AccountIndex:
    """
    Id -> AccountSummary lookup, one entry per known account.

    Owned by the application root and passed to whoever needs it; there is
    no module-level instance. Updated on every account sync event.
    """

    def __init__(self, *, logger=None):
        self.logger = logger
        self._by_id: Dict[str, AccountSummary] = {}
        self._loaded = False
        self.account_modified = Signal("account.modified", logger=logger)
        self.account_removed = Signal("account.removed", logger=logger)
        self.initial_loading_done = Signal("accounts.loaded", logger=logger)

    def account_by_id(self, account_id: str) -> AccountSummary:
        """
        Unknown or empty ids yield an empty summary, never an error.
        """
        return self._by_id.get(str(account_id or ""), _EMPTY)

    def __contains__(self, account_id: object) -> bool:
        return str(account_id or "") in self._by_id

    def __len__(self) -> int:
        return len(self._by_id)

    def ids(self) -> List[str]:
        return list(self._by_id)

    def is_loaded(self) -> bool:
        return self._loaded

    def load(self, accounts: Iterable[Account]) -> int:
        """
        Initial bulk load; emits a single `accounts.loaded` instead of one
        modification per account.
        """
        n = 0
        for acc in accounts:
            if not acc.id:
                continue
            self._by_id[acc.id] = AccountSummary.from_account(acc)
            n += 1
        self._loaded = True
        if self.logger:
            self.logger.info(f"Account index loaded: {n} accounts")
        self.initial_loading_done.emit(
            BaseEvent(event_type="accounts.loaded", source_subsystem=SourceSubsystem.accounts, payload={"count": n})
        )
        return n

    def upsert(self, account: Account) -> List[str]:
        """
        Returns the names of the summary fields that changed (all of them for
        a new account).
        """
        if not account.id:
            raise ValueError("account without id")
        new = AccountSummary.from_account(account)
        old = self._by_id.get(account.id)
        self._by_id[account.id] = new
        if old is None:
            changed = list(_TRACKED_FIELDS)
        else:
            changed = [f for f in _TRACKED_FIELDS if getattr(old, f) != getattr(new, f)]
        if changed:
            self.account_modified.emit(
                AccountChanged(
                    event_type="account.modified",
                    source_subsystem=SourceSubsystem.accounts,
                    account_id=account.id,
                    changed_fields=changed,
                )
            )
        return changed

    def remove(self, account_id: str) -> bool:
        aid = str(account_id or "")
        if self._by_id.pop(aid, None) is None:
            return False
        self.account_removed.emit(
            AccountChanged(event_type="account.removed", source_subsystem=SourceSubsystem.accounts, account_id=aid)
        )
        return True
