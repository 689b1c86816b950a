# ABOUTME: JSON API handlers. /api/upload is the one path the request gate exempts from CSRF.

import logging
from flask import request, jsonify, current_app
from ticket_portal.helpers import store_upload

def post_file_upload():
    """Accepts a multipart upload in the 'file' field."""
    upload = request.files.get('file')
    if upload is None or not upload.filename:
        logging.warning("Upload request without a file.")
        return jsonify({'status': 'error', 'message': 'No file provided.'}), 400

    try:
        filename = store_upload(upload, current_app.config['UPLOAD_FOLDER'])
    except OSError as e:
        logging.error(f"Failed to store upload {upload.filename}: {e}", exc_info=True)
        return jsonify({'status': 'error', 'message': 'Server error: Failed to store file.'}), 500

    logging.info(f"Stored upload as {filename}")
    return jsonify({'status': 'success', 'filename': filename}), 201
