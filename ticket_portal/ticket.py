# ABOUTME: Event registration, ticket view/update and payment completion handlers.
# ABOUTME: Payment completion comes from the desktop checkout (JSON) or the mobile redirect (query string).

import logging
from flask import request, render_template, flash, redirect, url_for, g, jsonify, current_app
from ticket_portal.payments import verify_payment
from ticket_portal.tickets import (
    STATUS_PAID, create_ticket, find_ticket_for_user, find_ticket_by_merchant_uid, mark_ticket_paid, update_ticket,
)
from ticket_portal.validation import is_valid_phone

def _ticket_form():
    return {
        'name': (request.form.get('name') or '').strip(),
        'phone': (request.form.get('phone') or '').strip(),
        'organization': (request.form.get('organization') or '').strip(),
    }

def _form_errors(form):
    errors = []
    if not form['name']:
        errors.append("Name cannot be blank.")
    if not is_valid_phone(form['phone']):
        errors.append("Please enter a valid phone number.")
    return errors

def _complete_payment(payment_id, merchant_uid):
    """Verify and record a payment for the signed-in user's ticket. Returns (ok, message, status)."""
    ticket = find_ticket_by_merchant_uid(merchant_uid) if merchant_uid else None
    if ticket is None or ticket['user_id'] != g.user['_id']:
        logging.warning(f"Payment completion for unknown order {merchant_uid!r} by user {g.user['_id']}")
        return False, "Ticket not found.", 404
    if ticket['status'] == STATUS_PAID:
        return True, "This ticket has already been paid.", 200

    config = current_app.config
    payment = verify_payment(config.get('PAYMENT_API_URL'), config.get('PAYMENT_API_KEY'), payment_id, merchant_uid, ticket['amount'])
    if payment is None:
        return False, "Payment could not be verified.", 400

    mark_ticket_paid(ticket['_id'], payment_id)
    return True, "Payment complete. See you at the event!", 200

# Registration

def get_registration():
    if find_ticket_for_user(g.user['_id']) is not None:
        return redirect(url_for('get_ticket'))
    return render_template('ticket/register.html', title='Register', price=current_app.config['TICKET_PRICE'])

def post_registration():
    if find_ticket_for_user(g.user['_id']) is not None:
        flash("You are already registered.", "info")
        return redirect(url_for('get_ticket'))

    form = _ticket_form()
    errors = _form_errors(form)
    if errors:
        for error in errors:
            flash(error, "error")
        return redirect(url_for('get_registration'))

    create_ticket(g.user['_id'], form['name'], form['phone'], form['organization'], current_app.config['TICKET_PRICE'])
    flash("Registration received. Complete the payment to confirm your ticket.", "success")
    return redirect(url_for('get_ticket'))

# Ticket

def get_ticket():
    ticket = find_ticket_for_user(g.user['_id'])
    if ticket is None:
        return redirect(url_for('get_registration'))
    return render_template('ticket/ticket.html', title='My Ticket', ticket=ticket)

def post_update_ticket():
    ticket = find_ticket_for_user(g.user['_id'])
    if ticket is None:
        return redirect(url_for('get_registration'))

    form = _ticket_form()
    errors = _form_errors(form)
    if errors:
        for error in errors:
            flash(error, "error")
        return redirect(url_for('get_ticket'))

    update_ticket(ticket['_id'], form)
    flash("Ticket details have been updated.", "success")
    return redirect(url_for('get_ticket'))

# Payment

def post_complete_payment():
    data = request.get_json(silent=True) if request.is_json else request.form
    if not isinstance(data, dict):
        return jsonify({'status': 'error', 'message': "Invalid request body."}), 400
    payment_id, merchant_uid = data.get('payment_id'), data.get('merchant_uid')
    if not isinstance(payment_id, str) or not isinstance(merchant_uid, str):
        return jsonify({'status': 'error', 'message': "payment_id and merchant_uid are required."}), 400
    ok, message, status = _complete_payment(payment_id, merchant_uid)
    return jsonify({'status': 'success' if ok else 'error', 'message': message}), status

def get_complete_mobile_payment():
    if request.args.get('success') != 'true':
        logging.info(f"Mobile payment cancelled or failed for order {request.args.get('merchant_uid')}")
        flash("Payment was not completed.", "error")
        return redirect(url_for('get_ticket'))

    ok, message, _ = _complete_payment(request.args.get('payment_id'), request.args.get('merchant_uid'))
    flash(message, "success" if ok else "error")
    return redirect(url_for('get_ticket'))
