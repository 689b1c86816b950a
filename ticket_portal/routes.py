# ABOUTME: The route table: every (method, path, guards, handler) the application serves.
# ABOUTME: register_routes() walks the table once when the app is created.

from typing import Callable, NamedTuple
from ticket_portal import api, contact, home, ticket, user
from ticket_portal.auth import is_authenticated

class RouteEntry(NamedTuple):
    method: str
    path: str
    guards: tuple
    handler: Callable
    endpoint: str | None = None
    defaults: dict | None = None

AUTH = (is_authenticated,)

ROUTES = (
    # Primary app routes
    RouteEntry('GET', '/', (), home.index),
    RouteEntry('GET', '/health', (), home.health_check),
    RouteEntry('GET', '/login', (), user.get_login),
    RouteEntry('POST', '/login', (), user.post_login),
    RouteEntry('GET', '/logout', (), user.logout),
    RouteEntry('GET', '/forgot', (), user.get_forgot),
    RouteEntry('POST', '/forgot', (), user.post_forgot),
    RouteEntry('GET', '/reset/<token>', (), user.get_reset),
    RouteEntry('POST', '/reset/<token>', (), user.post_reset),
    RouteEntry('GET', '/signup', (), user.get_signup),
    RouteEntry('POST', '/signup', (), user.post_signup),
    RouteEntry('GET', '/contact', (), contact.get_contact),
    RouteEntry('POST', '/contact', (), contact.post_contact),
    RouteEntry('GET', '/account', AUTH, user.get_account),
    RouteEntry('POST', '/account/profile', AUTH, user.post_update_profile),
    RouteEntry('POST', '/account/password', AUTH, user.post_update_password),
    RouteEntry('GET', '/account/unlink/<provider>', AUTH, user.get_oauth_unlink),

    # Registration, ticket and payment
    RouteEntry('GET', '/register', AUTH, ticket.get_registration),
    RouteEntry('POST', '/register', AUTH, ticket.post_registration),
    RouteEntry('GET', '/ticket', AUTH, ticket.get_ticket),
    RouteEntry('POST', '/ticket', AUTH, ticket.post_update_ticket),
    RouteEntry('POST', '/payment/complete', AUTH, ticket.post_complete_payment),
    RouteEntry('GET', '/m/payment/complete', AUTH, ticket.get_complete_mobile_payment),

    # OAuth sign-in; the provider round-trip is the guard
    RouteEntry('GET', '/auth/google', (), user.oauth_start, 'auth_google', {'provider': 'google'}),
    RouteEntry('GET', '/auth/google/callback', (), user.oauth_callback, 'auth_google_callback', {'provider': 'google'}),
    RouteEntry('GET', '/auth/linkedin', (), user.oauth_start, 'auth_linkedin', {'provider': 'linkedin'}),
    RouteEntry('GET', '/auth/linkedin/callback', (), user.oauth_callback, 'auth_linkedin_callback', {'provider': 'linkedin'}),

    # API; /api/upload is exempt from CSRF in the gate
    RouteEntry('POST', '/api/upload', (), api.post_file_upload),
)

def register_routes(app, routes=ROUTES):
    for entry in routes:
        view = entry.handler
        for guard in reversed(entry.guards):
            view = guard(view)
        app.add_url_rule(
            entry.path,
            endpoint=entry.endpoint or entry.handler.__name__,
            view_func=view,
            methods=[entry.method],
            defaults=entry.defaults,
        )
