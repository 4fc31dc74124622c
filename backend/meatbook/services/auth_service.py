# Overview: Service-layer operations for users and API tokens.

"""
Authentication Service

Every record in the book belongs to one user; routes resolve that user
from a bearer token.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters, at least one letter and one digit
- API tokens are 32 random bytes (hex), stored only as a SHA-256 hash
- Tokens expire after API_TOKEN_TTL_HOURS and can be revoked
"""

import hashlib
import re
import secrets
from datetime import timedelta

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import ApiToken, User
from ..validation import ConflictError, ValidationError
from meatbook.time_utils import utcnow


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    if not isinstance(password, str) or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")
    if not re.search(r"[A-Za-z]", password):
        raise PasswordValidationError("Password must contain at least one letter")
    if not re.search(r"\d", password):
        raise PasswordValidationError("Password must contain at least one digit")


def hash_password(password: str) -> str:
    """Hash password using bcrypt with cost factor 12 (strength checked first)."""
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash in the database
        return False


def create_user(username: str, email: str, password: str) -> User:
    """
    Create a user with a bcrypt password hash.

    Raises:
        ValidationError: missing username/email or weak password
        ConflictError: username or email already taken
    """
    username = (username or "").strip()
    email = (email or "").strip().lower()
    if not username:
        raise ValidationError("username is required")
    if not email or "@" not in email:
        raise ValidationError("A valid email is required")

    existing = db.session.query(User).filter(
        db.or_(User.username == username, User.email == email)
    ).first()
    if existing:
        raise ConflictError("Username or email already exists")

    user = User(username=username, email=email, password_hash=hash_password(password))
    db.session.add(user)
    db.session.commit()
    return user


def authenticate(username: str, password: str) -> User | None:
    """
    Check username (or email) and password.

    Returns the User and stamps last_login_at on success, None otherwise.
    """
    if not username or not password:
        return None

    user = db.session.query(User).filter(
        db.or_(User.username == username, User.email == username.lower()),
        User.is_active.is_(True),
    ).first()
    if not user:
        return None

    if verify_password(password, user.password_hash):
        user.last_login_at = utcnow()
        db.session.commit()
        return user
    return None


# ---------------------------------------------------------------------------
# API tokens
# ---------------------------------------------------------------------------

def generate_token() -> str:
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def issue_token(user_id: int) -> tuple[ApiToken, str]:
    """
    Create an API token for a user.

    Returns (token_record, plaintext_token). Only the hash is stored.
    """
    ttl_hours = int(current_app.config.get("API_TOKEN_TTL_HOURS", 24))
    plaintext_token = generate_token()
    now = utcnow()

    token = ApiToken(
        user_id=user_id,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        expires_at=now + timedelta(hours=ttl_hours),
        is_revoked=False,
    )
    db.session.add(token)
    db.session.commit()
    return token, plaintext_token


def resolve_token(plaintext_token: str) -> User | None:
    """
    Return the active user behind a token, or None if the token is unknown,
    revoked, expired, or belongs to a deactivated user.
    """
    token = db.session.query(ApiToken).filter_by(
        token_hash=hash_token(plaintext_token),
        is_revoked=False,
    ).first()
    if not token:
        return None

    if token.expires_at < utcnow():
        return None

    user = token.user
    if not user or not user.is_active:
        return None
    return user


def revoke_token(plaintext_token: str) -> bool:
    """Revoke a token. Returns False if it was not found or already revoked."""
    token = db.session.query(ApiToken).filter_by(
        token_hash=hash_token(plaintext_token),
        is_revoked=False,
    ).first()
    if not token:
        return False
    token.is_revoked = True
    db.session.commit()
    return True
