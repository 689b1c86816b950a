# ABOUTME: The Flask app factory and process entry point.
# ABOUTME: Wires config, sessions, CSRF, the request gate, routes and error pages; main() serves it.

import logging
import sys
from datetime import timedelta
from flask import Flask, render_template, request
from flask_session import Session
from flask_wtf.csrf import CSRFProtect, CSRFError
from werkzeug.middleware.proxy_fix import ProxyFix
from ticket_portal.config import Config
from ticket_portal.db import create_client, check_connection, ensure_indexes
from ticket_portal.gate import register_gate
from ticket_portal.routes import register_routes

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

def create_app(config=Config, db=None):
    """
    Build the application.

    ``db`` is the pymongo database to use; when omitted a client is created
    from MONGODB_URI. The server-side session store shares that client.
    """
    app = Flask(__name__)
    app.config.from_object(config)
    app.config['PERMANENT_SESSION_LIFETIME'] = timedelta(seconds=app.config['SESSION_TTL_SECONDS'])

    if db is None:
        client = create_client(app.config['MONGODB_URI'])
        db = client[app.config['MONGODB_DB']]
    app.extensions['mongo_db'] = db

    if app.config.get('SESSION_TYPE') == 'mongodb':
        app.config['SESSION_MONGODB'] = db.client
        app.config['SESSION_MONGODB_DB'] = app.config['MONGODB_DB']
        Session(app)

    if app.config.get('TRUST_PROXY'):
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)

    csrf = CSRFProtect(app)
    register_gate(app, csrf)
    register_routes(app)
    register_error_handlers(app)
    return app

def register_error_handlers(app):
    @app.errorhandler(CSRFError)
    def csrf_error(e):
        logging.warning(f"Rejected {request.method} {request.path}: {e.description}")
        return render_template('error.html', title='Forbidden', message=e.description), 400

    @app.errorhandler(404)
    def not_found(e):
        return render_template('error.html', title='Not Found', message="Page not found."), 404

    @app.errorhandler(500)
    def server_error(e):
        # Only reached when DEBUG is off; in debug mode the Werkzeug debugger takes over
        logging.error(f"Unhandled error on {request.method} {request.path}", exc_info=True)
        return render_template('error.html', title='Error', message="Something went wrong. Please try again later."), 500

def main(config=Config):
    problems = config.validate()
    if problems:
        for problem in problems:
            logging.error(f"Configuration error: {problem}")
        sys.exit(1)

    client = create_client(config.MONGODB_URI)
    if not check_connection(client):
        logging.error("MongoDB connection error. Please make sure MongoDB is running.")
        sys.exit(1)
    db = client[config.MONGODB_DB]
    ensure_indexes(db)

    app = create_app(config, db=db)
    logging.info(f"App is running at http://localhost:{config.PORT} in {'development' if config.DEBUG else 'production'} mode")
    logging.info("Press CTRL-C to stop")
    app.run(host=config.HOST, port=config.PORT, debug=config.DEBUG)

if __name__ == '__main__':
    main()
