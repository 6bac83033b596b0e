"""
Module: gl_kernel.selectors.account_selector
Responsibility: Read-only lookups over the chart of accounts.
Architecture position: Kernel > Selectors.

Failure modes:
    - AccountNotFoundError when an id or code does not resolve.
"""

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import select

from gl_kernel.exceptions import AccountNotFoundError
from gl_kernel.models.account import GLAccount
from gl_kernel.selectors.base import BaseSelector

AccountRef = UUID | str


class AccountSelector(BaseSelector[GLAccount]):
    """Chart-of-accounts queries.  Accepts account ids or account codes."""

    def get(self, account_ref: AccountRef) -> GLAccount:
        """Resolve a UUID id or an account code."""
        if isinstance(account_ref, UUID):
            return self.get_by_id(account_ref)
        return self.get_by_code(account_ref)

    def get_by_id(self, account_id: UUID) -> GLAccount:
        account = self.session.get(GLAccount, account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        return account

    def get_by_code(self, code: str) -> GLAccount:
        account = self.session.execute(
            select(GLAccount).where(GLAccount.code == code)
        ).scalar_one_or_none()
        if account is None:
            raise AccountNotFoundError(code)
        return account

    def find_by_code(self, code: str) -> GLAccount | None:
        return self.session.execute(
            select(GLAccount).where(GLAccount.code == code)
        ).scalar_one_or_none()

    def lock_for_posting(self, account_ids: Iterable[UUID]) -> list[GLAccount]:
        """
        Load accounts with ``SELECT ... FOR UPDATE``, ordered by id.

        A fixed lock order keeps two concurrent postings touching the same
        accounts from deadlocking each other.
        """
        ids = sorted(set(account_ids), key=str)
        if not ids:
            return []
        accounts = self.session.execute(
            select(GLAccount)
            .where(GLAccount.id.in_(ids))
            .order_by(GLAccount.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalars().all()
        found = {a.id for a in accounts}
        for account_id in ids:
            if account_id not in found:
                raise AccountNotFoundError(account_id)
        return list(accounts)

    def children(self, parent_ref: AccountRef) -> list[GLAccount]:
        parent = self.get(parent_ref)
        return list(
            self.session.execute(
                select(GLAccount)
                .where(GLAccount.parent_id == parent.id)
                .order_by(GLAccount.sort_order, GLAccount.code)
            ).scalars()
        )

    def roots(self) -> list[GLAccount]:
        return list(
            self.session.execute(
                select(GLAccount)
                .where(GLAccount.parent_id.is_(None))
                .order_by(GLAccount.sort_order, GLAccount.code)
            ).scalars()
        )

    def descendants(self, account_ref: AccountRef) -> list[GLAccount]:
        """All accounts below ``account_ref``, breadth first."""
        result: list[GLAccount] = []
        frontier = [self.get(account_ref)]
        while frontier:
            node = frontier.pop(0)
            kids = self.children(node.id)
            result.extend(kids)
            frontier.extend(kids)
        return result

    def ancestors(self, account_ref: AccountRef) -> list[GLAccount]:
        """Parent chain of ``account_ref``, nearest first."""
        chain: list[GLAccount] = []
        seen: set[UUID] = set()
        node = self.get(account_ref)
        while node.parent_id is not None and node.parent_id not in seen:
            seen.add(node.parent_id)
            node = self.get_by_id(node.parent_id)
            chain.append(node)
        return chain

    def list_active(self) -> list[GLAccount]:
        return list(
            self.session.execute(
                select(GLAccount)
                .where(GLAccount.is_active.is_(True))
                .order_by(GLAccount.code)
            ).scalars()
        )
