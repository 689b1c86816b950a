# ABOUTME: Ticket document storage for event registration and payment state.
# ABOUTME: Used by the ticket controller.

import logging
import uuid
from datetime import datetime, timezone
from ticket_portal.db import get_db

STATUS_PENDING = "pending"
STATUS_PAID = "paid"
EDITABLE_FIELDS = ("name", "phone", "organization")

def new_merchant_uid() -> str:
    """Order id handed to the payment gateway."""
    return f"ticket_{uuid.uuid4().hex}"

def find_ticket_for_user(user_id):
    return get_db().tickets.find_one({"user_id": user_id})

def find_ticket_by_merchant_uid(merchant_uid: str):
    return get_db().tickets.find_one({"merchant_uid": merchant_uid})

def create_ticket(user_id, name: str, phone: str, organization: str, amount: int) -> dict:
    ticket = {
        "user_id": user_id,
        "merchant_uid": new_merchant_uid(),
        "name": name,
        "phone": phone,
        "organization": organization,
        "amount": amount,
        "status": STATUS_PENDING,
        "created_at": datetime.now(timezone.utc),
    }
    get_db().tickets.insert_one(ticket)
    logging.info(f"Created ticket {ticket['merchant_uid']} for user {user_id}")
    return ticket

def update_ticket(ticket_id, fields: dict):
    changes = {k: v for k, v in fields.items() if k in EDITABLE_FIELDS}
    if changes:
        get_db().tickets.update_one({"_id": ticket_id}, {"$set": changes})

def mark_ticket_paid(ticket_id, payment_id: str):
    get_db().tickets.update_one(
        {"_id": ticket_id},
        {"$set": {
            "status": STATUS_PAID,
            "payment_id": payment_id,
            "paid_at": datetime.now(timezone.utc),
        }},
    )
    logging.info(f"Ticket {ticket_id} marked paid (payment {payment_id})")
