# ABOUTME: User document storage: lookup, creation, profile/password updates and OAuth links.
# ABOUTME: Used by the auth helpers and the user controller.

import logging
from datetime import datetime, timedelta, timezone
from bson import ObjectId
from bson.errors import InvalidId
from werkzeug.security import generate_password_hash, check_password_hash
from ticket_portal.db import get_db

OAUTH_PROVIDERS = ("google", "linkedin")
RESET_TOKEN_LIFETIME = timedelta(hours=1)

def _utcnow():
    return datetime.now(timezone.utc)

def find_user_by_id(user_id: str):
    try:
        oid = ObjectId(user_id)
    except (InvalidId, TypeError):
        logging.warning(f"Ignoring malformed user id: {user_id!r}")
        return None
    return get_db().users.find_one({"_id": oid})

def find_user_by_email(email: str):
    return get_db().users.find_one({"email": email})

def find_user_by_provider(provider: str, provider_id: str):
    return get_db().users.find_one({provider: provider_id})

def find_user_by_reset_token(token: str):
    """Only returns a user whose reset token has not expired."""
    return get_db().users.find_one({
        "password_reset_token": token,
        "password_reset_expires": {"$gt": _utcnow()},
    })

def email_taken_by_other(email: str, user_id) -> bool:
    return get_db().users.find_one({"email": email, "_id": {"$ne": user_id}}) is not None

def create_user(email: str, password: str | None = None, profile: dict | None = None) -> dict:
    user = {
        "email": email,
        "profile": profile or {},
        "tokens": [],
        "created_at": _utcnow(),
    }
    if password:
        user["password"] = generate_password_hash(password)
    get_db().users.insert_one(user)
    logging.info(f"Created user {user['_id']} ({email})")
    return user

def verify_password(user: dict, password: str) -> bool:
    hashed = user.get("password")
    if not hashed or not password:
        return False
    return check_password_hash(hashed, password)

def update_profile(user_id, email: str, profile: dict):
    get_db().users.update_one({"_id": user_id}, {"$set": {"email": email, "profile": profile}})

def set_password(user_id, password: str):
    """Store a new password hash and invalidate any pending reset token."""
    get_db().users.update_one(
        {"_id": user_id},
        {
            "$set": {"password": generate_password_hash(password)},
            "$unset": {"password_reset_token": "", "password_reset_expires": ""},
        },
    )

def set_reset_token(user_id, token: str):
    get_db().users.update_one(
        {"_id": user_id},
        {"$set": {
            "password_reset_token": token,
            "password_reset_expires": _utcnow() + RESET_TOKEN_LIFETIME,
        }},
    )

def link_provider(user: dict, profile) -> dict:
    """Attach an OAuth identity to a user, filling empty profile fields from the provider."""
    tokens = [t for t in user.get("tokens", []) if t.get("kind") != profile.provider]
    tokens.append({"kind": profile.provider, "access_token": profile.access_token})
    merged = dict(user.get("profile") or {})
    if profile.name and not merged.get("name"):
        merged["name"] = profile.name
    if profile.picture and not merged.get("picture"):
        merged["picture"] = profile.picture
    get_db().users.update_one(
        {"_id": user["_id"]},
        {"$set": {profile.provider: profile.provider_id, "tokens": tokens, "profile": merged}},
    )
    user.update({profile.provider: profile.provider_id, "tokens": tokens, "profile": merged})
    logging.info(f"Linked {profile.provider} account {profile.provider_id} to user {user['_id']}")
    return user

def unlink_provider(user: dict, provider: str):
    tokens = [t for t in user.get("tokens", []) if t.get("kind") != provider]
    get_db().users.update_one(
        {"_id": user["_id"]},
        {"$set": {"tokens": tokens}, "$unset": {provider: ""}},
    )
    logging.info(f"Unlinked {provider} from user {user['_id']}")

def resolve_oauth_user(current_user: dict | None, profile) -> tuple[dict | None, str | None]:
    """
    Find or create the user for a successful OAuth sign-in.

    Returns (user, error). A signed-in user gets the provider linked to their
    account unless another account already owns it. An anonymous sign-in
    reuses the account that owns the provider id, then one with the same email
    (linking it, but only when the provider has verified that email), and
    otherwise creates a new account.
    """
    owner = find_user_by_provider(profile.provider, profile.provider_id)

    if current_user is not None:
        if owner is not None and owner["_id"] != current_user["_id"]:
            return None, f"There is already a {profile.provider} account that belongs to you. Sign in with that account or delete it, then link it with your current account."
        return link_provider(current_user, profile), None

    if owner is not None:
        return owner, None

    if profile.email:
        existing = find_user_by_email(profile.email)
        if existing is not None:
            if not profile.email_verified:
                logging.warning(f"Refused {profile.provider} sign-in {profile.provider_id}: unverified email matches user {existing['_id']}")
                return None, f"There is already an account using this email address. Sign in to that account and link it with {profile.provider.capitalize()} from your account page."
            return link_provider(existing, profile), None
    else:
        return None, f"Your {profile.provider} account did not share an email address."

    user = create_user(profile.email, profile={"name": profile.name or "", "picture": profile.picture or ""})
    return link_provider(user, profile), None
