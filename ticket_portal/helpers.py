# ABOUTME: Provides general-purpose helpers: upload storage and random tokens.
# ABOUTME: Used by the upload API and the password reset / OAuth flows.

import os
import secrets
import uuid
from werkzeug.utils import secure_filename

def new_token(nbytes: int = 16) -> str:
    """Random hex token for password resets and OAuth state."""
    return secrets.token_hex(nbytes)

def store_upload(file_storage, upload_folder: str) -> str:
    """Save an uploaded file under a unique, sanitised name and return that name."""
    original = secure_filename(file_storage.filename or '') or 'upload'
    filename = f"{uuid.uuid4().hex}_{original}"
    os.makedirs(upload_folder, exist_ok=True)
    file_storage.save(os.path.join(upload_folder, filename))
    return filename
