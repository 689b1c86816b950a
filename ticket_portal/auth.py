# ABOUTME: Handles the signed-in principal, the is_authenticated route guard, and session login/logout.
# ABOUTME: Used by the request gate, the route table and the user controller.

import functools
import logging
from flask import session, redirect, url_for, flash, g
from ticket_portal.users import find_user_by_id

def is_authenticated(view):
    """Route guard that redirects anonymous users to the login page."""
    @functools.wraps(view)
    def wrapped_view(**kwargs):
        if g.get('user') is None:
            flash("Please log in to access this page.", "info")
            # The gate has already stored the requested path as returnTo
            return redirect(url_for('get_login'))
        return view(**kwargs)
    return wrapped_view

def load_principal():
    """Resolve session['user_id'] into g.user, dropping ids that no longer exist."""
    user_id = session.get('user_id')
    g.user = find_user_by_id(user_id) if user_id else None
    if user_id and g.user is None:
        logging.warning(f"Session referenced unknown user {user_id}; clearing it.")
        session.pop('user_id', None)

def login_user(user):
    session['user_id'] = str(user['_id'])
    g.user = user

def logout_user():
    session.clear()
    g.user = None

def pop_return_to(default='/'):
    """Consume the stored return-to path after a successful login."""
    return session.pop('returnTo', None) or default
