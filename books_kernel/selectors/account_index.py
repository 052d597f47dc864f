"""
Module: books_kernel.selectors.account_index
Responsibility: Read-only navigation over the chart-of-accounts forest --
    children, ancestors, subtrees, roots -- built once per snapshot.
Architecture position: Kernel > Selectors.  May import from models/ and
    exceptions.  Pure in-memory structure, no database access.

Invariants enforced:
    - Account ids are unique (DuplicateAccountError).
    - Every parent_id resolves (UnknownParentAccountError).
    - Parent chains are acyclic and terminate at a root within len(accounts)
      steps (CycleDetectedError).
    - children() order is stable: by case-insensitive name, then id.

Failure modes:
    - Integrity errors are raised by build(); a constructed index is always
      a valid forest.
    - AccountNotFoundError for lookups of ids not in the index.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from datetime import date
from typing import TYPE_CHECKING

from books_kernel.exceptions import (
    AccountNotFoundError,
    CycleDetectedError,
    DuplicateAccountError,
    UnknownParentAccountError,
)
from books_kernel.logging_config import get_logger
from books_kernel.models.account import Account, AccountType

if TYPE_CHECKING:
    from books_kernel.selectors.ledger_index import LedgerIndex

logger = get_logger("selectors.account_index")


def _name_key(account: Account) -> tuple[str, str]:
    return (account.name.casefold(), account.account_id)


class AccountIndex:
    """
    Flat arena of accounts keyed by id, with a precomputed adjacency map.

    Contract:
        Built via ``AccountIndex.build(accounts)``.  Immutable afterwards.

    Guarantees:
        - ``children(id)`` and ``roots()`` are name-ordered.
        - ``ancestors(id)`` runs root -> parent.
        - ``subtree_ids(id)`` is pre-order and starts with ``id``.
    """

    def __init__(
        self,
        accounts: dict[str, Account],
        children: dict[str, tuple[str, ...]],
        roots: tuple[str, ...],
    ):
        self._accounts = accounts
        self._children = children
        self._roots = roots
        self._subtree_cache: dict[str, tuple[str, ...]] = {}

    @classmethod
    def build(cls, accounts: Iterable[Account]) -> AccountIndex:
        """Validate the chart of accounts and index it."""
        by_id: dict[str, Account] = {}
        for account in accounts:
            if account.account_id in by_id:
                raise DuplicateAccountError(account.account_id)
            by_id[account.account_id] = account

        child_lists: dict[str, list[Account]] = {aid: [] for aid in by_id}
        root_list: list[Account] = []
        for account in by_id.values():
            if account.parent_id is None:
                root_list.append(account)
                continue
            if account.parent_id not in by_id:
                raise UnknownParentAccountError(account.account_id, account.parent_id)
            child_lists[account.parent_id].append(account)

        _check_acyclic(by_id)

        children = {
            aid: tuple(a.account_id for a in sorted(kids, key=_name_key))
            for aid, kids in child_lists.items()
        }
        roots = tuple(a.account_id for a in sorted(root_list, key=_name_key))

        logger.info(
            "accounts_indexed",
            extra={"account_count": len(by_id), "root_count": len(roots)},
        )
        return cls(by_id, children, roots)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, account_id: str) -> Account:
        try:
            return self._accounts[account_id]
        except KeyError:
            raise AccountNotFoundError(account_id) from None

    def __contains__(self, account_id: object) -> bool:
        return account_id in self._accounts

    def __len__(self) -> int:
        return len(self._accounts)

    def __iter__(self) -> Iterator[Account]:
        return iter(self._accounts.values())

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def children(self, account_id: str) -> tuple[Account, ...]:
        """Direct children of an account, name-ordered."""
        self.get(account_id)
        return tuple(self._accounts[cid] for cid in self._children[account_id])

    def child_ids(self, account_id: str) -> tuple[str, ...]:
        self.get(account_id)
        return self._children[account_id]

    def ancestors(self, account_id: str) -> tuple[Account, ...]:
        """Ancestors from the root down to the direct parent."""
        chain: list[Account] = []
        parent_id = self.get(account_id).parent_id
        while parent_id is not None:
            parent = self._accounts[parent_id]
            chain.append(parent)
            parent_id = parent.parent_id
        chain.reverse()
        return tuple(chain)

    def depth(self, account_id: str) -> int:
        """Number of ancestors; roots are at depth 0."""
        return len(self.ancestors(account_id))

    def subtree_ids(self, account_id: str) -> tuple[str, ...]:
        """The account and all of its descendants, pre-order."""
        cached = self._subtree_cache.get(account_id)
        if cached is not None:
            return cached
        self.get(account_id)
        ordered: list[str] = []
        stack = [account_id]
        while stack:
            current = stack.pop()
            ordered.append(current)
            stack.extend(reversed(self._children[current]))
        result = tuple(ordered)
        self._subtree_cache[account_id] = result
        return result

    def roots(self, account_type: AccountType | None = None) -> tuple[Account, ...]:
        """Parentless accounts, optionally restricted to one type."""
        return tuple(
            self._accounts[rid]
            for rid in self._roots
            if account_type is None or self._accounts[rid].account_type == account_type
        )

    def of_types(self, *account_types: AccountType) -> tuple[Account, ...]:
        """Every account (at any depth) whose type is one of account_types."""
        wanted = set(account_types)
        return tuple(a for a in self._accounts.values() if a.account_type in wanted)

    def outermost(self, account_ids: Iterable[str]) -> tuple[str, ...]:
        """
        Members of account_ids that have no ancestor in account_ids.

        Summing rollups over the result counts every line under the set
        exactly once, even when members nest inside each other.
        """
        members = set(account_ids)
        return tuple(
            aid
            for aid in sorted(members, key=lambda i: _name_key(self.get(i)))
            if not any(a.account_id in members for a in self.ancestors(aid))
        )

    # ------------------------------------------------------------------
    # Activity-filtered views (display only)
    # ------------------------------------------------------------------

    def has_subtree_activity(
        self,
        account_id: str,
        ledger: LedgerIndex,
        start: date | None = None,
        end: date | None = None,
    ) -> bool:
        """Whether any line in the subtree falls in [start, end] (unbounded if None)."""
        return any(
            ledger.has_activity(aid, start, end) for aid in self.subtree_ids(account_id)
        )

    def top_level(
        self,
        account_type: AccountType,
        ledger: LedgerIndex | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> tuple[Account, ...]:
        """
        Root accounts of a type, name-ordered.

        With a ledger, only roots whose subtree has activity in scope are
        returned.  This is a display filter: accounts without activity
        contribute zero to every total anyway.
        """
        roots = self.roots(account_type)
        if ledger is None:
            return roots
        return tuple(
            r for r in roots
            if self.has_subtree_activity(r.account_id, ledger, start, end)
        )

    def active_children(
        self,
        account_id: str,
        ledger: LedgerIndex,
        start: date | None = None,
        end: date | None = None,
    ) -> tuple[Account, ...]:
        """Children whose subtree has activity in scope, name-ordered."""
        return tuple(
            c for c in self.children(account_id)
            if self.has_subtree_activity(c.account_id, ledger, start, end)
        )

    def parent_accounts(
        self,
        ledger: LedgerIndex | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> tuple[Account, ...]:
        """
        Accounts with at least one child.

        With a ledger, only accounts with a child whose subtree has activity
        in scope, i.e. the rows that render as expandable parents.
        """
        if ledger is None:
            return tuple(a for a in self._accounts.values() if self._children[a.account_id])
        return tuple(
            a for a in self._accounts.values()
            if self.active_children(a.account_id, ledger, start, end)
        )


def _check_acyclic(by_id: dict[str, Account]) -> None:
    """Walk every parent chain, failing on the first repeated id.

    Chains already proven to reach a root are not walked again, so the
    whole check is linear in the number of accounts.
    """
    limit = len(by_id)
    terminated: set[str] = set()
    for start_id in by_id:
        chain: list[str] = []
        seen: set[str] = set()
        current: str | None = start_id
        steps = 0
        while current is not None and current not in terminated:
            if current in seen or steps > limit:
                chain.append(current)
                raise CycleDetectedError(start_id, tuple(chain))
            seen.add(current)
            chain.append(current)
            current = by_id[current].parent_id
            steps += 1
        terminated.update(seen)
