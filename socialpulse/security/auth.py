from functools import wraps
from flask import current_app, g, request, jsonify

import jwt

from ..constants.service_code import AUTHENTICATION_MESSAGES, HTTP_STATUS_CODES


class InvalidSessionToken(Exception):
    pass


def _secret_key():
    return current_app.config.get("JWT_SECRET_KEY") or current_app.config["SECRET_KEY"]


def validate_token(token):
    """
    Decode a session JWT (HS256) and return its user id.
    Raises InvalidSessionToken for expired, malformed or subject-less tokens.
    """
    if not token:
        raise InvalidSessionToken(AUTHENTICATION_MESSAGES["AUTHENTICATION_REQUIRED"])

    try:
        decoded_token = jwt.decode(token, _secret_key(), algorithms=["HS256"])
    except jwt.ExpiredSignatureError:
        raise InvalidSessionToken(AUTHENTICATION_MESSAGES["TOKEN_EXPIRED"]) from None
    except jwt.InvalidTokenError:
        raise InvalidSessionToken(AUTHENTICATION_MESSAGES["INVALID_TOKEN"]) from None

    user_id = decoded_token.get("user_id") or decoded_token.get("sub")
    if not user_id:
        raise InvalidSessionToken(AUTHENTICATION_MESSAGES["INVALID_TOKEN"])
    return str(user_id)


def token_required(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        auth_header = request.headers.get('Authorization')
        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({
                'success': False,
                'status_code': HTTP_STATUS_CODES["UNAUTHORIZED"],
                'error': AUTHENTICATION_MESSAGES["AUTHENTICATION_REQUIRED"],
            }), HTTP_STATUS_CODES["UNAUTHORIZED"]

        token = auth_header.split(None, 1)[1].strip()
        try:
            g.current_user_id = validate_token(token)
        except InvalidSessionToken as e:
            return jsonify({
                'success': False,
                'status_code': HTTP_STATUS_CODES["UNAUTHORIZED"],
                'error': str(e),
            }), HTTP_STATUS_CODES["UNAUTHORIZED"]

        return f(*args, **kwargs)
    return decorated
