"""
AccountService -- Chart of Accounts registry.

Responsibility:
    Creates, edits, deactivates and (when unreferenced) deletes accounts,
    and answers lookups by id, code and type.  Seeds the standard chart.

Architecture position:
    Kernel > Services -- imperative shell.  Returns AccountInfo DTOs.

Invariants enforced:
    - Account code format: letters, digits, hyphen, underscore; bounded
      length (``LedgerConfig.account_code_max_length``).  Unique.
    - code and account_type never change after creation; update_account
      touches display fields only.
    - An account with any journal line is never deleted, only deactivated.
    - System accounts are neither deactivated nor deleted.

Failure modes:
    - InvalidAccountCodeError, InvalidAccountTypeError,
      DuplicateAccountCodeError, ValidationError (name, parent).
    - AccountNotFoundError for unknown id/code.
    - SystemAccountError, AccountReferencedError.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import exists, select
from sqlalchemy.exc import IntegrityError

from gl_kernel.domain.chart import STANDARD_CHART
from gl_kernel.domain.dtos import AccountInfo
from gl_kernel.domain.validation import validate_account_code
from gl_kernel.exceptions import (
    AccountNotFoundError,
    AccountReferencedError,
    DuplicateAccountCodeError,
    InvalidAccountTypeError,
    SystemAccountError,
    ValidationError,
)
from gl_kernel.logging_config import get_logger
from gl_kernel.models.account import Account, AccountType
from gl_kernel.models.journal import JournalLine
from gl_kernel.services.base import BaseService

logger = get_logger("services.account")


def coerce_account_type(account_type: AccountType | str) -> AccountType:
    """Accept an AccountType or its name in any case ("Asset", "asset")."""
    if isinstance(account_type, AccountType):
        return account_type
    if isinstance(account_type, str):
        try:
            return AccountType(account_type.strip().lower())
        except ValueError:
            pass
    raise InvalidAccountTypeError(str(account_type))


class AccountService(BaseService[Account]):
    """
    Service for the chart of accounts.

    Contract:
        All lookups raise AccountNotFoundError rather than returning None.
        Listing methods return fresh lists ordered by code; each call
        reflects the current state.

    Non-goals:
        - Does NOT authorize actors; actor ids are recorded, not checked.
    """

    def _to_dto(self, account: Account) -> AccountInfo:
        return AccountInfo.from_model(account)

    # -------------------------------------------------------------------------
    # Internal lookups (ORM)
    # -------------------------------------------------------------------------

    def _get_orm(self, account_id: UUID) -> Account:
        account = self.session.get(Account, account_id)
        if account is None:
            raise AccountNotFoundError(str(account_id))
        return account

    def _get_orm_by_code(self, code: str) -> Account | None:
        return self.session.execute(
            select(Account).where(Account.code == code)
        ).scalar_one_or_none()

    def _get_for_update(self, account_id: UUID) -> Account:
        account = self.session.execute(
            select(Account).where(Account.id == account_id).with_for_update()
        ).scalar_one_or_none()
        if account is None:
            raise AccountNotFoundError(str(account_id))
        return account

    def _has_lines(self, account: Account) -> bool:
        return self.session.execute(
            select(exists().where(JournalLine.account_id == account.id))
        ).scalar()

    def _has_children(self, account: Account) -> bool:
        return self.session.execute(
            select(exists().where(Account.parent_id == account.id))
        ).scalar()

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def create_account(
        self,
        code: str,
        name: str,
        account_type: AccountType | str,
        created_by: str,
        description: str | None = None,
        parent_code: str | None = None,
        is_system: bool = False,
    ) -> AccountInfo:
        """
        Create a new active account.

        Preconditions:
            - parent_code, when given, names an existing account of the
              same type.

        Raises:
            InvalidAccountCodeError: code fails the format rule.
            InvalidAccountTypeError: not one of the five account types.
            DuplicateAccountCodeError: code already exists.
            ValidationError: empty name or parent of a different type.
            AccountNotFoundError: parent_code is unknown.
        """
        validate_account_code(code, self.config.account_code_max_length)
        resolved_type = coerce_account_type(account_type)

        if not name or not name.strip():
            raise ValidationError("Account name is required")

        if self._get_orm_by_code(code) is not None:
            raise DuplicateAccountCodeError(code)

        parent_id = None
        if parent_code is not None:
            parent = self._get_orm_by_code(parent_code)
            if parent is None:
                raise AccountNotFoundError(parent_code)
            if parent.account_type != resolved_type:
                raise ValidationError(
                    f"Parent account {parent_code} is {parent.account_type.value}, "
                    f"not {resolved_type.value}"
                )
            parent_id = parent.id

        account = Account(
            code=code,
            name=name.strip(),
            description=description,
            account_type=resolved_type,
            is_active=True,
            is_system=is_system,
            parent_id=parent_id,
            created_by=created_by,
        )

        # Savepoint so a lost race on the unique code leaves the caller's
        # transaction usable.
        savepoint = self.session.begin_nested()
        try:
            self.session.add(account)
            self.session.flush()
            savepoint.commit()
        except IntegrityError:
            savepoint.rollback()
            logger.warning(
                "account_code_conflict",
                extra={"account_code": code},
            )
            raise DuplicateAccountCodeError(code) from None

        logger.info(
            "account_created",
            extra={
                "account_id": str(account.id),
                "account_code": code,
                "account_type": resolved_type.value,
                "actor_id": created_by,
            },
        )
        return self._to_dto(account)

    def update_account(
        self,
        account_id: UUID,
        actor_id: str,
        name: str | None = None,
        description: str | None = None,
    ) -> AccountInfo:
        """Edit display fields.  Code and type are not editable."""
        account = self._get_for_update(account_id)

        if name is not None:
            if not name.strip():
                raise ValidationError("Account name is required")
            account.name = name.strip()
        if description is not None:
            account.description = description
        account.updated_by = actor_id
        self.session.flush()

        logger.info(
            "account_updated",
            extra={"account_id": str(account.id), "account_code": account.code},
        )
        return self._to_dto(account)

    def deactivate_account(self, account_id: UUID, actor_id: str) -> AccountInfo:
        """
        Mark an account inactive.

        Deactivating an already inactive account is a no-op success.
        Existing lines are untouched; only new lines are refused.

        Raises:
            AccountNotFoundError: unknown account.
            SystemAccountError: system accounts stay active.
        """
        account = self._get_for_update(account_id)

        if account.is_system:
            raise SystemAccountError(account.code, "deactivate")

        if not account.is_active:
            logger.info(
                "account_already_inactive",
                extra={"account_id": str(account.id), "account_code": account.code},
            )
            return self._to_dto(account)

        account.is_active = False
        account.deactivated_at = self._clock.now()
        account.deactivated_by = actor_id
        account.updated_by = actor_id
        self.session.flush()

        logger.info(
            "account_deactivated",
            extra={
                "account_id": str(account.id),
                "account_code": account.code,
                "actor_id": actor_id,
            },
        )
        return self._to_dto(account)

    def delete_account(self, account_id: UUID, actor_id: str) -> None:
        """
        Physically delete an account that nothing references.

        Raises:
            AccountNotFoundError: unknown account.
            SystemAccountError: system accounts cannot be deleted.
            AccountReferencedError: journal lines or child accounts point at it.
        """
        account = self._get_for_update(account_id)

        if account.is_system:
            raise SystemAccountError(account.code, "delete")
        if self._has_lines(account) or self._has_children(account):
            raise AccountReferencedError(account.code)

        code = account.code
        self.session.delete(account)
        self.session.flush()

        logger.info(
            "account_deleted",
            extra={"account_id": str(account_id), "account_code": code, "actor_id": actor_id},
        )

    def seed_standard_chart(self, actor_id: str) -> tuple[list[AccountInfo], list[str]]:
        """
        Create the standard chart, skipping codes that already exist.

        Returns:
            (created accounts, skipped codes)
        """
        created: list[AccountInfo] = []
        skipped: list[str] = []
        for standard in STANDARD_CHART:
            if self._get_orm_by_code(standard.code) is not None:
                skipped.append(standard.code)
                continue
            created.append(
                self.create_account(
                    code=standard.code,
                    name=standard.name,
                    account_type=standard.account_type,
                    created_by=actor_id,
                    description=standard.description,
                    parent_code=standard.parent_code,
                    is_system=True,
                )
            )

        logger.info(
            "standard_chart_seeded",
            extra={"created_count": len(created), "skipped_count": len(skipped)},
        )
        return created, skipped

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_account(self, account_id: UUID) -> AccountInfo:
        return self._to_dto(self._get_orm(account_id))

    def get_account_by_code(self, code: str) -> AccountInfo:
        account = self._get_orm_by_code(code)
        if account is None:
            raise AccountNotFoundError(code)
        return self._to_dto(account)

    def _list(self, *criteria) -> list[AccountInfo]:
        rows = self.session.execute(
            select(Account).where(*criteria).order_by(Account.code)
        ).scalars()
        return [self._to_dto(account) for account in rows]

    def list_accounts(self) -> list[AccountInfo]:
        return self._list()

    def list_by_type(self, account_type: AccountType | str) -> list[AccountInfo]:
        return self._list(Account.account_type == coerce_account_type(account_type))

    def list_active(self) -> list[AccountInfo]:
        return self._list(Account.is_active.is_(True))

    def resolve_codes(self, codes: Sequence[str]) -> dict[str, Account]:
        """Map each distinct code to its ORM account; missing codes are absent."""
        wanted = set(codes)
        if not wanted:
            return {}
        rows = self.session.execute(
            select(Account).where(Account.code.in_(wanted))
        ).scalars()
        return {account.code: account for account in rows}
