# Overview: Service-layer operations for auth; password hashing and credential checks.

"""
Authentication Service

Every request is attributed to a User. Passwords are bcrypt-hashed and must
pass a strength policy before they are stored.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS, default 12)
- Minimum 8 characters required
- Must contain uppercase, lowercase, digit, and special char
- Session tokens managed separately (see session_service.py)
- Deactivated users cannot authenticate
"""

import re

import bcrypt
from flask import current_app

from ..errors import ConflictError, ValidationError
from ..extensions import db
from ..models import User, ROLE_EMPLOYEE, ROLES
from ..time_utils import utcnow


EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character (!@#$%^&*(),.'":{}|<>)
    """
    if not isinstance(password, str):
        raise PasswordValidationError("Password is required")

    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    """Validate strength, then bcrypt-hash. Returns the hash as str for storage."""
    validate_password_strength(password)
    rounds = int(current_app.config.get("BCRYPT_ROUNDS", 12))
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe bcrypt comparison. Malformed hashes never match."""
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def normalize_email(email) -> str:
    value = str(email or "").strip().lower()
    if not EMAIL_RE.match(value):
        raise ValidationError("A valid email is required")
    if len(value) > 255:
        raise ValidationError("email exceeds max length 255")
    return value


def email_taken(email: str) -> bool:
    return db.session.query(User.id).filter(User.email == email).first() is not None


def build_user(
    *,
    email: str,
    password: str,
    name: str,
    role: str = ROLE_EMPLOYEE,
    **profile,
) -> User:
    """
    Construct (but do not commit) a new User.

    Callers that create a User together with other rows (an Employee profile)
    add and commit both in one transaction.

    Raises:
        ValidationError: bad email, name or role
        PasswordValidationError: weak password
        ConflictError: email already registered
    """
    email = normalize_email(email)
    name = str(name or "").strip()
    if not name:
        raise ValidationError("name is required")
    if role not in ROLES:
        raise ValidationError(f"role must be one of: {', '.join(ROLES)}")
    if email_taken(email):
        raise ConflictError("A user with this email already exists")

    return User(
        email=email,
        password_hash=hash_password(password),
        name=name,
        role=role,
        is_active=True,
        **profile,
    )


def create_user(*, email: str, password: str, name: str, role: str = ROLE_EMPLOYEE, **profile) -> User:
    """Create and commit a standalone User (used for admin accounts)."""
    user = build_user(email=email, password=password, name=name, role=role, **profile)
    db.session.add(user)
    db.session.commit()
    return user


def authenticate(email: str, password: str) -> User | None:
    """
    Authenticate by email and password.

    Returns the User if credentials are valid and the account is active,
    None otherwise. Updates last_login_at on success.
    """
    email = str(email or "").strip().lower()
    user = db.session.query(User).filter(
        User.email == email,
        User.is_active.is_(True),
    ).first()

    if not user:
        return None

    if verify_password(password, user.password_hash):
        user.last_login_at = utcnow()
        db.session.commit()
        return user

    return None


def set_password(user: User, new_password: str) -> None:
    """Replace the user's password hash. Caller commits."""
    user.password_hash = hash_password(new_password)
