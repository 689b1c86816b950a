# ABOUTME: Contact form handlers; messages are mailed to CONTACT_EMAIL.

import logging
from flask import request, render_template, flash, redirect, url_for, g, current_app
from ticket_portal.mailer import send_mail
from ticket_portal.validation import normalize_email, is_valid_email

def get_contact():
    return render_template('contact.html', title='Contact')

def post_contact():
    if g.user is not None:
        name = (g.user.get('profile') or {}).get('name') or g.user['email']
        email = g.user['email']
    else:
        name = (request.form.get('name') or '').strip()
        email = normalize_email(request.form.get('email'))
    message = (request.form.get('message') or '').strip()

    errors = []
    if not name:
        errors.append("Name cannot be blank.")
    if not is_valid_email(email):
        errors.append("Email is not valid.")
    if not message:
        errors.append("Message cannot be blank.")
    if errors:
        for error in errors:
            flash(error, "error")
        return redirect(url_for('get_contact'))

    sent = send_mail(
        current_app.config['CONTACT_EMAIL'],
        f"Contact Form from {name}",
        f"From: {name} <{email}>\n\n{message}\n",
        reply_to=email,
    )
    if not sent:
        logging.error(f"Contact message from {email} could not be delivered.")
        flash("Your message could not be sent. Please try again later.", "error")
        return redirect(url_for('get_contact'))

    flash("Email has been sent successfully!", "success")
    return redirect(url_for('get_contact'))
