# ABOUTME: Creates the MongoDB client and exposes the application database.
# ABOUTME: Used by the user and ticket stores and by the server-side session store.

import logging
from flask import current_app
from pymongo import MongoClient, ASCENDING
from pymongo.errors import PyMongoError

def create_client(uri: str) -> MongoClient:
    """Build a client; pymongo connects lazily, so this never blocks."""
    return MongoClient(uri, serverSelectionTimeoutMS=5000)

def check_connection(client: MongoClient) -> bool:
    """Ping the server once. Used at startup to fail fast."""
    try:
        client.admin.command("ping")
        return True
    except PyMongoError as e:
        logging.error(f"MongoDB ping failed: {e}")
        return False

def ensure_indexes(db):
    db.users.create_index([("email", ASCENDING)], unique=True)
    db.users.create_index([("password_reset_token", ASCENDING)], sparse=True)
    db.tickets.create_index([("merchant_uid", ASCENDING)], unique=True)
    db.tickets.create_index([("user_id", ASCENDING)])

def get_db():
    """Return the database bound to the current app."""
    return current_app.extensions["mongo_db"]
