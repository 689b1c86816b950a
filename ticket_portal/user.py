# ABOUTME: Account handlers: login/logout, signup, password recovery, profile and OAuth sign-in.
# ABOUTME: Registered through the route table in routes.py.

import logging
from flask import request, render_template, flash, redirect, url_for, session, g, abort, current_app
from ticket_portal.auth import login_user, logout_user, pop_return_to
from ticket_portal.helpers import new_token
from ticket_portal.mailer import send_mail
from ticket_portal.oauth import get_provider, authorization_url, handle_callback
from ticket_portal.users import (
    OAUTH_PROVIDERS, create_user, email_taken_by_other, find_user_by_email, find_user_by_reset_token,
    resolve_oauth_user, set_password, set_reset_token, unlink_provider, update_profile, verify_password,
)
from ticket_portal.validation import normalize_email, is_valid_email, is_valid_website, password_errors

def _flash_all(messages, category='error'):
    for message in messages:
        flash(message, category)

# Login / logout

def get_login():
    if g.user is not None:
        return redirect('/')
    return render_template('account/login.html', title='Login')

def post_login():
    email = normalize_email(request.form.get('email'))
    password = request.form.get('password', '')

    errors = []
    if not is_valid_email(email):
        errors.append("Please enter a valid email address.")
    if not password:
        errors.append("Password cannot be blank.")
    if errors:
        _flash_all(errors)
        return redirect(url_for('get_login'))

    user = find_user_by_email(email)
    if user is None or not verify_password(user, password):
        logging.warning(f"Failed login attempt for {email}")
        flash("Invalid email or password.", "error")
        return redirect(url_for('get_login'))

    login_user(user)
    logging.info(f"User {user['_id']} logged in")
    flash("Success! You are logged in.", "success")
    return redirect(pop_return_to())

def logout():
    logout_user()
    return redirect('/')

# Signup

def get_signup():
    if g.user is not None:
        return redirect('/')
    return render_template('account/signup.html', title='Create Account')

def post_signup():
    email = normalize_email(request.form.get('email'))
    password = request.form.get('password', '')

    errors = []
    if not is_valid_email(email):
        errors.append("Please enter a valid email address.")
    errors.extend(password_errors(password, request.form.get('confirmPassword', '')))
    if errors:
        _flash_all(errors)
        return redirect(url_for('get_signup'))

    if find_user_by_email(email) is not None:
        flash("Account with that email address already exists.", "error")
        return redirect(url_for('get_signup'))

    user = create_user(email, password=password)
    login_user(user)
    return redirect('/')

# Account

def get_account():
    linked = {provider: bool(g.user.get(provider)) for provider in OAUTH_PROVIDERS}
    return render_template('account/profile.html', title='Account Management', linked=linked)

def post_update_profile():
    email = normalize_email(request.form.get('email'))
    website = (request.form.get('website') or '').strip()

    errors = []
    if not is_valid_email(email):
        errors.append("Please enter a valid email address.")
    if not is_valid_website(website):
        errors.append("Website must be an http(s) URL.")
    if errors:
        _flash_all(errors)
        return redirect(url_for('get_account'))

    if email_taken_by_other(email, g.user['_id']):
        flash("The email address you have entered is already associated with an account.", "error")
        return redirect(url_for('get_account'))

    profile = dict(g.user.get('profile') or {})
    for field in ('name', 'gender', 'location'):
        profile[field] = (request.form.get(field) or '').strip()
    profile['website'] = website
    update_profile(g.user['_id'], email, profile)
    flash("Profile information has been updated.", "success")
    return redirect(url_for('get_account'))

def post_update_password():
    errors = password_errors(request.form.get('password', ''), request.form.get('confirmPassword', ''))
    if errors:
        _flash_all(errors)
        return redirect(url_for('get_account'))

    set_password(g.user['_id'], request.form['password'])
    flash("Password has been changed.", "success")
    return redirect(url_for('get_account'))

def get_oauth_unlink(provider):
    if provider not in OAUTH_PROVIDERS:
        abort(404)
    unlink_provider(g.user, provider)
    flash(f"{provider.capitalize()} account has been unlinked.", "info")
    return redirect(url_for('get_account'))

# Password recovery

def get_forgot():
    if g.user is not None:
        return redirect('/')
    return render_template('account/forgot.html', title='Forgot Password')

def post_forgot():
    email = normalize_email(request.form.get('email'))
    if not is_valid_email(email):
        flash("Please enter a valid email address.", "error")
        return redirect(url_for('get_forgot'))

    user = find_user_by_email(email)
    if user is None:
        flash("Account with that email address does not exist.", "error")
        return redirect(url_for('get_forgot'))

    token = new_token()
    set_reset_token(user['_id'], token)
    reset_url = url_for('get_reset', token=token, _external=True)
    sent = send_mail(
        email,
        "Reset your password",
        "You are receiving this email because you (or someone else) have requested the reset of the password for your account.\n\n"
        f"Please click on the following link, or paste this into your browser to complete the process:\n\n{reset_url}\n\n"
        "If you did not request this, please ignore this email and your password will remain unchanged.\n",
    )
    if sent:
        flash(f"An e-mail has been sent to {email} with further instructions.", "info")
    else:
        flash("Could not send the reset e-mail. Please try again later.", "error")
    return redirect(url_for('get_forgot'))

def get_reset(token):
    if g.user is not None:
        return redirect('/')
    if find_user_by_reset_token(token) is None:
        flash("Password reset token is invalid or has expired.", "error")
        return redirect(url_for('get_forgot'))
    return render_template('account/reset.html', title='Password Reset', token=token)

def post_reset(token):
    errors = password_errors(request.form.get('password', ''), request.form.get('confirm', ''))
    if errors:
        _flash_all(errors)
        return redirect(url_for('get_reset', token=token))

    user = find_user_by_reset_token(token)
    if user is None:
        flash("Password reset token is invalid or has expired.", "error")
        return redirect(url_for('get_forgot'))

    set_password(user['_id'], request.form['password'])
    login_user(user)
    send_mail(
        user['email'],
        "Your password has been changed",
        f"This is a confirmation that the password for your account {user['email']} has just been changed.\n",
    )
    flash("Success! Your password has been changed.", "success")
    # returnTo points back at this reset page, so consume it and go home
    pop_return_to()
    return redirect('/')

# OAuth sign-in

def _callback_url(provider):
    return url_for(f'auth_{provider}_callback', _external=True)

def oauth_start(provider):
    oauth_provider = get_provider(provider, current_app.config)
    if oauth_provider is None:
        flash(f"Sign in with {provider.capitalize()} is not available.", "error")
        return redirect(url_for('get_login'))
    state = new_token()
    session['oauth_state'] = state
    return redirect(authorization_url(oauth_provider, _callback_url(provider), state))

def oauth_callback(provider):
    oauth_provider = get_provider(provider, current_app.config)
    if oauth_provider is None:
        return redirect(url_for('get_login'))

    result = handle_callback(oauth_provider, request.args, _callback_url(provider), session.pop('oauth_state', None))
    if not result.ok:
        flash(f"{provider.capitalize()} sign-in failed: {result.error}", "error")
        return redirect(url_for('get_login'))

    user, error = resolve_oauth_user(g.user, result.profile)
    if error:
        flash(error, "error")
        return redirect(url_for('get_account') if g.user is not None else url_for('get_login'))

    login_user(user)
    return redirect(pop_return_to())
