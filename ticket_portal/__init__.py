# ABOUTME: Event ticketing web application.
# ABOUTME: create_app() builds the Flask app; main() connects to MongoDB and serves it.

from ticket_portal.app import create_app, main

__all__ = ['create_app', 'main']
