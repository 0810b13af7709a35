from datetime import date
from decimal import Decimal

import pydantic
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from database import Base
from errors import AuthError, DuplicateError, NotFoundError, ValidationError
from models import TransactionType
from money import MAX_AMOUNT_CENTS
from schemas import (
    LoginIn,
    ProfileUpdateIn,
    SignupIn,
    TransactionIn,
    TransactionUpdateIn,
)
from services import IdentityService, MetricsService, TransactionService


def make_session():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:", connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    return SessionLocal()


def make_user(session, email: str = "asha@example.com", password: str = "s3cret!"):
    return IdentityService(session).register(
        SignupIn(name="Asha", email=email, password=password)
    )


def coffee() -> TransactionIn:
    return TransactionIn(
        description="Coffee",
        amount=Decimal("50"),
        type=TransactionType.expense,
        date=date(2024, 3, 5),
        category={"name": "Food", "emoji": "🍔"},
    )


def salary() -> TransactionIn:
    return TransactionIn(
        description="Salary",
        amount=Decimal("1000"),
        type=TransactionType.income,
        date=date(2024, 3, 1),
        category={"name": "Salary", "emoji": "💰"},
    )


def test_register_stores_hash_and_normalized_email() -> None:
    session = make_session()
    user = make_user(session, email="  Asha@Example.COM ")

    assert user.id is not None
    assert user.email == "asha@example.com"
    assert user.password_hash != "s3cret!"
    assert user.password_hash.startswith("$2")


def test_register_duplicate_email_any_case() -> None:
    session = make_session()
    make_user(session)

    with pytest.raises(DuplicateError):
        make_user(session, email="ASHA@example.com")


def test_signup_input_validation() -> None:
    with pytest.raises(pydantic.ValidationError):
        SignupIn(name="A", email="a@example.com", password="secret1")
    with pytest.raises(pydantic.ValidationError):
        SignupIn(name="Asha", email="not-an-email", password="secret1")
    with pytest.raises(pydantic.ValidationError):
        SignupIn(name="Asha", email="a@example.com", password="123")
    with pytest.raises(pydantic.ValidationError):
        SignupIn(name="Asha", email="a@example.com", password="secret1", mobile="12345")

    data = SignupIn.model_validate(
        {"username": "Asha", "email": "a@example.com", "password": "secret1"}
    )
    assert data.name == "Asha"


def test_verify_credentials() -> None:
    session = make_session()
    make_user(session)
    service = IdentityService(session)

    user = service.verify(LoginIn(email="ASHA@example.com", password="s3cret!"))
    assert user.email == "asha@example.com"
    assert user.last_login_at is not None

    with pytest.raises(AuthError):
        service.verify(LoginIn(email="asha@example.com", password="wrong-one"))
    with pytest.raises(NotFoundError):
        service.verify(LoginIn(email="nobody@example.com", password="s3cret!"))


def test_update_profile_keeps_unsupplied_fields() -> None:
    session = make_session()
    user = make_user(session)
    service = IdentityService(session)

    updated = service.update_profile(user.id, ProfileUpdateIn(mobile="9876543210"))
    assert updated.mobile == "9876543210"
    assert updated.name == "Asha"

    updated = service.update_profile(user.id, ProfileUpdateIn(name="Asha K"))
    assert updated.name == "Asha K"
    assert updated.mobile == "9876543210"


def test_create_and_list_are_scoped_to_owner() -> None:
    session = make_session()
    asha = make_user(session)
    ravi = make_user(session, email="ravi@example.com")

    txn = TransactionService(session, asha.id).create(coffee())

    assert [t.id for t in TransactionService(session, asha.id).list()] == [txn.id]
    assert TransactionService(session, ravi.id).list() == []
    assert txn.amount_cents == 5_000
    assert txn.category_name == "Food"
    assert txn.created_at is not None


def test_list_orders_by_date_then_newest_insert() -> None:
    session = make_session()
    user = make_user(session)
    service = TransactionService(session, user.id)

    first = service.create(coffee())
    older = service.create(salary())
    second = service.create(coffee())

    assert [t.id for t in service.list()] == [second.id, first.id, older.id]


def test_missing_category_defaults_and_malformed_is_coerced() -> None:
    session = make_session()
    user = make_user(session)
    service = TransactionService(session, user.id, strict_categories=False)

    plain = coffee().model_copy(update={"category": None})
    assert service.create(plain).category_name == "Other"

    broken = coffee().model_copy(update={"category": "{oops"})
    txn = service.create(broken)
    assert (txn.category_name, txn.category_emoji) == ("Other", "📦")


def test_strict_categories_reject_malformed() -> None:
    session = make_session()
    user = make_user(session)
    service = TransactionService(session, user.id, strict_categories=True)

    broken = coffee().model_copy(update={"category": {"name": "Food"}})
    with pytest.raises(ValidationError):
        service.create(broken)
    assert service.list() == []


def test_strict_categories_reject_malformed_on_update() -> None:
    session = make_session()
    user = make_user(session)
    service = TransactionService(session, user.id, strict_categories=True)
    txn = service.create(coffee())

    for raw in (0, False, [], "{oops", {"name": "Food"}):
        with pytest.raises(ValidationError):
            service.update(txn.id, TransactionUpdateIn(category=raw))

    for raw in (None, "", {}):
        updated = service.update(txn.id, TransactionUpdateIn(category=raw))
        assert updated.category_name == "Food"


def test_malformed_category_on_update_defaults_like_create() -> None:
    session = make_session()
    user = make_user(session)
    service = TransactionService(session, user.id, strict_categories=False)
    txn = service.create(coffee())

    updated = service.update(txn.id, TransactionUpdateIn(category=0))
    assert (updated.category_name, updated.category_emoji) == ("Other", "📦")


def test_amount_must_be_positive() -> None:
    for amount in ("0", "-5", "0.001", "abc"):
        with pytest.raises(pydantic.ValidationError):
            TransactionIn(
                description="Bad",
                amount=amount,
                type="expense",
                date="2024-03-05",
            )


def test_amount_has_an_upper_bound() -> None:
    limit = Decimal(MAX_AMOUNT_CENTS) / 100
    assert TransactionIn(
        description="House", amount=str(limit), type="expense", date="2024-03-05"
    ).amount == limit

    for amount in ("1e30", "-1e30", str(limit + Decimal("0.01"))):
        with pytest.raises(pydantic.ValidationError):
            TransactionIn(description="Bad", amount=amount, type="expense", date="2024-03-05")
    with pytest.raises(pydantic.ValidationError, match="too large"):
        TransactionUpdateIn(amount="1e30")


def test_other_invalid_transaction_inputs() -> None:
    base = {"description": "Lunch", "amount": "12,50", "type": "expense", "date": "05.03.2024"}
    parsed = TransactionIn(**base)
    assert parsed.amount == Decimal("12.50")
    assert parsed.date == date(2024, 3, 5)

    for override in (
        {"description": "   "},
        {"type": "transfer"},
        {"date": "yesterday"},
    ):
        with pytest.raises(pydantic.ValidationError):
            TransactionIn(**{**base, **override})


def test_update_is_partial() -> None:
    session = make_session()
    user = make_user(session)
    service = TransactionService(session, user.id)
    txn = service.create(coffee())

    updated = service.update(txn.id, TransactionUpdateIn(amount="75.25"))
    assert updated.amount_cents == 7_525
    assert updated.description == "Coffee"
    assert updated.category_name == "Food"
    assert updated.date == date(2024, 3, 5)

    updated = service.update(
        txn.id,
        TransactionUpdateIn(category='{"name": "Health", "emoji": "💊"}', type="income"),
    )
    assert updated.category_name == "Health"
    assert updated.type == TransactionType.income
    assert updated.amount_cents == 7_525


def test_update_and_delete_hide_other_owners_rows() -> None:
    session = make_session()
    asha = make_user(session)
    ravi = make_user(session, email="ravi@example.com")
    txn = TransactionService(session, asha.id).create(coffee())

    intruder = TransactionService(session, ravi.id)
    with pytest.raises(NotFoundError):
        intruder.update(txn.id, TransactionUpdateIn(description="Mine now"))
    with pytest.raises(NotFoundError):
        intruder.delete(txn.id)
    with pytest.raises(NotFoundError):
        intruder.delete(999)

    assert TransactionService(session, asha.id).get(txn.id).description == "Coffee"


def test_delete_twice_reports_not_found() -> None:
    session = make_session()
    user = make_user(session)
    service = TransactionService(session, user.id)
    txn = service.create(coffee())

    service.delete(txn.id)
    with pytest.raises(NotFoundError):
        service.delete(txn.id)
    assert service.list() == []


def test_metrics_recompute_on_every_call() -> None:
    session = make_session()
    user = make_user(session)
    service = TransactionService(session, user.id)
    metrics = MetricsService(session, user.id)
    service.create(coffee())
    service.create(salary())

    summary = metrics.summary()
    assert summary.balance_cents == 95_000
    assert summary.monthly_net_cents[2] == 95_000
    assert summary.highest_spend.category.name == "Food"
    assert metrics.goal(Decimal("500")).status == "achieved"

    service.create(
        TransactionIn(
            description="Rent",
            amount=Decimal("2000"),
            type=TransactionType.expense,
            date=date(2024, 4, 1),
            category={"name": "Bills", "emoji": "💡"},
        )
    )
    assert metrics.summary().balance_cents == -105_000
    assert metrics.goal(Decimal("500")).percent == 0
    assert [row["name"] for row in metrics.category_breakdown()] == ["Bills", "Food"]
