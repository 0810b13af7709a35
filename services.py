from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from categories import Category, CategoryParse, ParseStatus, parse_category
from config import get_settings
from errors import AuthError, DuplicateError, NotFoundError, ValidationError
from insights import (
    GoalProgress,
    LedgerSummary,
    category_totals,
    goal_progress,
    summarize,
)
from models import Transaction, TransactionType, User
from money import to_cents
from schemas import (
    LoginIn,
    ProfileUpdateIn,
    SignupIn,
    TransactionIn,
    TransactionUpdateIn,
)
from security import hash_password, verify_password

logger = logging.getLogger(__name__)


class IdentityService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def _by_email(self, email: str) -> Optional[User]:
        stmt = select(User).where(User.email == email.strip().lower())
        return self.session.scalar(stmt)

    def exists(self, email: str) -> bool:
        return self._by_email(email) is not None

    def register(self, data: SignupIn) -> User:
        if self.exists(data.email):
            raise DuplicateError("Email already registered")
        user = User(
            name=data.name,
            email=data.email,
            password_hash=hash_password(data.password),
            mobile=data.mobile,
        )
        self.session.add(user)
        try:
            self.session.commit()
        except IntegrityError as exc:
            # A concurrent signup won the unique index.
            self.session.rollback()
            raise DuplicateError("Email already registered") from exc
        self.session.refresh(user)
        logger.info(f"user_registered: user_id={user.id}")
        return user

    def verify(self, data: LoginIn) -> User:
        user = self._by_email(data.email)
        if not user:
            raise NotFoundError("User not found")
        if not verify_password(data.password, user.password_hash):
            logger.info(f"login_failed: user_id={user.id}")
            raise AuthError("Invalid credentials")
        user.last_login_at = datetime.utcnow()
        self.session.commit()
        self.session.refresh(user)
        logger.info(f"login_succeeded: user_id={user.id}")
        return user

    def get(self, user_id: int) -> User:
        user = self.session.get(User, user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def update_profile(self, user_id: int, data: ProfileUpdateIn) -> User:
        user = self.get(user_id)
        fields = data.model_fields_set
        if "name" in fields and data.name is not None:
            user.name = data.name
        if "mobile" in fields:
            user.mobile = data.mobile
        self.session.commit()
        self.session.refresh(user)
        return user


class TransactionService:
    def __init__(
        self,
        session: Session,
        user_id: int,
        *,
        strict_categories: Optional[bool] = None,
    ) -> None:
        self.session = session
        self.user_id = user_id
        if strict_categories is None:
            strict_categories = get_settings().strict_categories
        self.strict_categories = strict_categories

    def _resolve_category(self, raw: Any) -> Category:
        return self._accept_category(parse_category(raw))

    def _accept_category(self, parsed: CategoryParse) -> Category:
        if parsed.status == ParseStatus.rejected:
            if self.strict_categories:
                raise ValidationError(f"Invalid category format: {parsed.reason}")
            logger.warning(
                f"category_defaulted: user_id={self.user_id} reason={parsed.reason}"
            )
        return parsed.category

    def create(self, data: TransactionIn) -> Transaction:
        txn = Transaction(
            user_id=self.user_id,
            description=data.description,
            amount_cents=to_cents(data.amount),
            type=data.type,
            date=data.date,
        )
        txn.category = self._resolve_category(data.category)
        self.session.add(txn)
        self.session.commit()
        self.session.refresh(txn)
        logger.info(
            f"transaction_created: user_id={self.user_id} id={txn.id} "
            f"type={txn.type.value} amount_cents={txn.amount_cents}"
        )
        return txn

    def get(self, transaction_id: int, *, for_update: bool = False) -> Transaction:
        # Another owner's row is reported exactly like a missing one.
        stmt = select(Transaction).where(
            Transaction.user_id == self.user_id, Transaction.id == transaction_id
        )
        if for_update:
            stmt = stmt.with_for_update()
        txn = self.session.scalar(stmt)
        if not txn:
            raise NotFoundError("Transaction not found")
        return txn

    def list(self) -> list[Transaction]:
        stmt = (
            select(Transaction)
            .where(Transaction.user_id == self.user_id)
            .order_by(Transaction.date.desc(), Transaction.id.desc())
        )
        return list(self.session.scalars(stmt).all())

    def update(self, transaction_id: int, data: TransactionUpdateIn) -> Transaction:
        txn = self.get(transaction_id, for_update=True)
        # An absent or empty category keeps the stored one.
        parsed = parse_category(data.category)
        category = None
        if parsed.status != ParseStatus.defaulted:
            category = self._accept_category(parsed)

        if data.description is not None:
            txn.description = data.description
        if data.amount is not None:
            txn.amount_cents = to_cents(data.amount)
        if data.type is not None:
            txn.type = data.type
        if data.date is not None:
            txn.date = data.date
        if category is not None:
            txn.category = category
        self.session.commit()
        self.session.refresh(txn)
        logger.info(f"transaction_updated: user_id={self.user_id} id={txn.id}")
        return txn

    def delete(self, transaction_id: int) -> None:
        txn = self.get(transaction_id, for_update=True)
        self.session.delete(txn)
        self.session.commit()
        logger.info(f"transaction_deleted: user_id={self.user_id} id={transaction_id}")


class MetricsService:
    def __init__(self, session: Session, user_id: int) -> None:
        self.session = session
        self.user_id = user_id

    def _snapshot(self) -> list[Transaction]:
        return TransactionService(self.session, self.user_id).list()

    def summary(self) -> LedgerSummary:
        return summarize(self._snapshot())

    def category_breakdown(
        self, transaction_type: TransactionType = TransactionType.expense
    ) -> list[dict[str, object]]:
        return category_totals(self._snapshot(), transaction_type)

    def goal(self, goal: Decimal) -> GoalProgress:
        summary = self.summary()
        return goal_progress(goal, summary.income_cents, summary.expense_cents)
