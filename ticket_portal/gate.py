# ABOUTME: The request gate: CSRF exemption, security headers, principal publishing and return-to capture.
# ABOUTME: register_gate() installs its hooks on the app in pipeline order.

"""
Every request passes through the same steps before reaching its view:

1. the session is opened by Flask (server-side store when configured)
2. CSRF is validated unless the path is the upload endpoint
3. the principal is loaded from the session into ``g.user``
4. the return-to path is computed and stored in the session
5. the route guard (if any) runs, then the view

A CSRF rejection happens before anything touches the session, so a rejected
request leaves it exactly as it arrived. Security headers and the access log
line are added to every response, including rejections.
"""

import logging
import re
from flask import request, session, g
from ticket_portal.auth import load_principal

UPLOAD_PATH = '/api/upload'
ACCOUNT_PATH = '/account'
RETURN_TO_EXCLUDED = ('/login', '/signup')
AUTH_PREFIX = re.compile(r'^/auth')

def is_csrf_exempt(path: str) -> bool:
    """Multipart uploads cannot carry the form token, so the upload path skips CSRF."""
    return path == UPLOAD_PATH

def compute_return_to(path: str, authenticated: bool, current: str | None) -> str | None:
    """Return the value session['returnTo'] should hold after this request."""
    if (not authenticated
            and path not in RETURN_TO_EXCLUDED
            and not AUTH_PREFIX.match(path)
            and '.' not in path):
        return path
    if authenticated and path == ACCOUNT_PATH:
        return path
    return current

def security_headers(config) -> dict:
    """Headers attached to every response."""
    hsts = f"max-age={config['HSTS_MAX_AGE']}"
    if config.get('HSTS_INCLUDE_SUBDOMAINS'):
        hsts += "; includeSubDomains"
    if config.get('HSTS_PRELOAD'):
        hsts += "; preload"
    headers = {
        'Strict-Transport-Security': hsts,
        'X-Frame-Options': 'SAMEORIGIN',
        'X-XSS-Protection': '1; mode=block',
    }
    if config.get('CONTENT_SECURITY_POLICY'):
        headers['Content-Security-Policy'] = config['CONTENT_SECURITY_POLICY']
    if config.get('REFERRER_POLICY'):
        headers['Referrer-Policy'] = config['REFERRER_POLICY']
    if config.get('NOSNIFF'):
        headers['X-Content-Type-Options'] = 'nosniff'
    return headers

def register_gate(app, csrf):
    """Install the gate hooks. Flask runs before_request hooks in registration order."""
    headers = security_headers(app.config)

    @app.before_request
    def check_csrf():
        if is_csrf_exempt(request.path):
            return None
        # Raises CSRFError (400) for a state-changing request without a valid token
        csrf.protect()
        return None

    @app.before_request
    def load_request_principal():
        load_principal()

    @app.before_request
    def remember_return_to():
        current = session.get('returnTo')
        target = compute_return_to(request.path, g.user is not None, current)
        if target != current:
            session['returnTo'] = target

    @app.after_request
    def apply_security_headers(response):
        response.headers.update(headers)
        return response

    @app.after_request
    def log_request(response):
        logging.info(f"{request.method} {request.path} {response.status_code}")
        return response

    @app.context_processor
    def publish_principal():
        # g.user is unset when CSRF rejected the request before the principal loaded
        return {'user': g.get('user')}
