# ABOUTME: Form input validation helpers for the account, contact and ticket forms.
# ABOUTME: Each check returns a boolean or a normalised value; controllers flash the errors.

import re
from urllib.parse import urlparse

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PHONE_RE = re.compile(r"^\+?[0-9][0-9 \-]{6,18}[0-9]$")
MIN_PASSWORD_LENGTH = 4

def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()

def is_valid_email(email: str | None) -> bool:
    if not email:
        return False
    return bool(EMAIL_RE.match(email))

def is_valid_phone(phone: str | None) -> bool:
    if not phone:
        return False
    return bool(PHONE_RE.match(phone.strip()))

def is_valid_website(url_string: str | None) -> bool:
    """Empty is allowed; otherwise require an http(s) URL with a host."""
    if not url_string:
        return True
    try:
        parsed = urlparse(url_string)
        return all([parsed.scheme in ['http', 'https'], parsed.netloc])
    except ValueError:
        return False

def password_errors(password: str | None, confirm: str | None) -> list[str]:
    """Validation messages for a new password and its confirmation."""
    errors = []
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long.")
    if password != confirm:
        errors.append("Passwords do not match.")
    return errors
