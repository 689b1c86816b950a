# ABOUTME: Landing page and health check handlers.

from flask import render_template

def index():
    """Renders the landing page."""
    return render_template('home.html', title='Home')

def health_check():
    # Unprotected; used by the load balancer
    return "OK", 200
