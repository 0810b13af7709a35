import datetime as dt
import re
from decimal import Decimal
from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)

from models import TransactionType
from money import MAX_AMOUNT_CENTS, parse_amount, to_cents

EMAIL_RE = re.compile(r"^\S+@\S+\.\S+$")
MOBILE_RE = re.compile(r"^[0-9]{10}$")


def parse_date(value: str) -> dt.date:
    value = value.strip()
    if "T" in value or " " in value:
        return dt.datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    try:
        return dt.datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        return dt.datetime.strptime(value, "%d.%m.%Y").date()


def _coerce_amount(value: Any) -> Any:
    if isinstance(value, bool):
        raise ValueError("Amount must be a number")
    if isinstance(value, str):
        return parse_amount(value)
    return value


def _check_amount(value: Decimal) -> Decimal:
    if value <= 0:
        raise ValueError("Amount must be a positive number")
    if value * 100 > MAX_AMOUNT_CENTS:
        raise ValueError("Amount is too large")
    if to_cents(value) <= 0:
        raise ValueError("Amount must be a positive number")
    return value


def _coerce_date(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return parse_date(value)
        except ValueError as exc:
            raise ValueError("Invalid date") from exc
    if isinstance(value, dt.datetime):
        return value.date()
    return value


def _clean_email(value: str) -> str:
    value = value.strip().lower()
    if not EMAIL_RE.match(value):
        raise ValueError("Please provide a valid email address")
    return value


def _clean_name(value: str) -> str:
    value = value.strip()
    if not 2 <= len(value) <= 50:
        raise ValueError("Name must be between 2 and 50 characters")
    return value


def _clean_mobile(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if not MOBILE_RE.match(value):
        raise ValueError("Please provide a valid 10-digit mobile number")
    return value


class SignupIn(BaseModel):
    name: str = Field(..., validation_alias=AliasChoices("name", "username"))
    email: str
    password: str = Field(..., min_length=6, max_length=128)
    mobile: Optional[str] = None

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        return _clean_name(value)

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        return _clean_email(value)

    @field_validator("mobile")
    @classmethod
    def check_mobile(cls, value: Optional[str]) -> Optional[str]:
        return _clean_mobile(value)


class LoginIn(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class ProfileUpdateIn(BaseModel):
    name: Optional[str] = None
    mobile: Optional[str] = None

    @field_validator("name")
    @classmethod
    def check_name(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else _clean_name(value)

    @field_validator("mobile")
    @classmethod
    def check_mobile(cls, value: Optional[str]) -> Optional[str]:
        return _clean_mobile(value)


class TransactionIn(BaseModel):
    description: str = Field(..., min_length=1, max_length=200)
    amount: Decimal
    type: TransactionType
    date: dt.date
    category: Any = None

    @field_validator("description", mode="before")
    @classmethod
    def strip_description(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, value: Any) -> Any:
        return _coerce_amount(value)

    @field_validator("amount")
    @classmethod
    def check_amount(cls, value: Decimal) -> Decimal:
        return _check_amount(value)

    @field_validator("date", mode="before")
    @classmethod
    def coerce_date(cls, value: Any) -> Any:
        return _coerce_date(value)


class TransactionUpdateIn(BaseModel):
    description: Optional[str] = Field(None, min_length=1, max_length=200)
    amount: Optional[Decimal] = None
    type: Optional[TransactionType] = None
    date: Optional[dt.date] = None
    category: Any = None

    @field_validator("description", mode="before")
    @classmethod
    def strip_description(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, value: Any) -> Any:
        return None if value is None else _coerce_amount(value)

    @field_validator("amount")
    @classmethod
    def check_amount(cls, value: Optional[Decimal]) -> Optional[Decimal]:
        return None if value is None else _check_amount(value)

    @field_validator("date", mode="before")
    @classmethod
    def coerce_date(cls, value: Any) -> Any:
        return None if value is None else _coerce_date(value)


class CategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    emoji: str


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str


class ProfileOut(UserOut):
    mobile: Optional[str]
    created_at: dt.datetime
    last_login_at: Optional[dt.datetime]


class LoginOut(BaseModel):
    message: str
    token: str
    token_type: Literal["bearer"] = "bearer"
    user: UserOut


class TransactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    description: str
    amount: float
    amount_cents: int
    type: TransactionType
    category: CategoryOut
    date: dt.date
    created_at: dt.datetime
    updated_at: dt.datetime


class ReportIn(BaseModel):
    pdf_data: str = Field(..., validation_alias=AliasChoices("pdf_data", "pdfData"))
