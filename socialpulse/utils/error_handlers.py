from flask import jsonify
from werkzeug.exceptions import HTTPException

from .logger import Log


# Handle SocialAccountError and subclasses (InvalidState, NotFound, ...)
def handle_social_account_error(error):
    response = {
        "success": False,
        "error": error.code,
        "message": error.message,
        "status_code": error.status_code,
    }
    return jsonify(response), error.status_code

# Handle ValidationError
def handle_validation_error(error):
    error_messages = error.messages
    response = {
        "success": False,
        "error": "Validation Error",
        "message": error_messages,
        "status_code": 400  # Bad Request
    }
    return jsonify(response), 400

# Handle anything that escaped the resources
def handle_unexpected_error(error):
    if isinstance(error, HTTPException):
        return error
    Log.error(f"[error_handlers.py][handle_unexpected_error] {type(error).__name__}: {error}")
    response = {
        "success": False,
        "error": "Internal Server Error",
        "message": "An unexpected error occurred. Please try again later.",
        "status_code": 500
    }
    return jsonify(response), 500
