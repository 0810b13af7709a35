from dataclasses import dataclass
from typing import Optional

import bcrypt
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from config import get_settings
from errors import AuthError

# bcrypt only looks at the first 72 bytes of its input.
BCRYPT_MAX_BYTES = 72


@dataclass(frozen=True)
class Identity:
    user_id: int
    email: str


def _password_bytes(raw: str) -> bytes:
    return raw.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(raw: str) -> str:
    rounds = get_settings().bcrypt_rounds
    return bcrypt.hashpw(_password_bytes(raw), bcrypt.gensalt(rounds)).decode("ascii")


def verify_password(raw: str, hashed: str) -> bool:
    return bcrypt.checkpw(_password_bytes(raw), hashed.encode("ascii"))


def _serializer() -> URLSafeTimedSerializer:
    settings = get_settings()
    return URLSafeTimedSerializer(settings.token_secret, salt="access-token")


def issue_token(user_id: int, email: str) -> str:
    return _serializer().dumps({"uid": user_id, "email": email})


def resolve_token(token: Optional[str], max_age_secs: Optional[int] = None) -> Identity:
    if not token:
        raise AuthError("Access denied. No token provided.")
    if max_age_secs is None:
        max_age_secs = get_settings().token_max_age_secs
    try:
        data = _serializer().loads(token, max_age=max_age_secs)
    except SignatureExpired as exc:
        raise AuthError("Token has expired") from exc
    except BadSignature as exc:
        raise AuthError("Invalid or expired token") from exc

    if not isinstance(data, dict):
        raise AuthError("Invalid or expired token")
    user_id = data.get("uid")
    email = data.get("email")
    if not isinstance(user_id, int) or not isinstance(email, str):
        raise AuthError("Invalid or expired token")
    return Identity(user_id=user_id, email=email)
