"""
Auth helpers on top of Flask-JWT-Extended.
Tokens are minted by the user service; this service only reads the
`role` claim (USER | STAFF | ADMIN) and the identity (user_id).
"""

from functools import wraps

from flask import jsonify
from flask_jwt_extended import get_jwt, get_jwt_identity, verify_jwt_in_request

STAFF_ROLES = {"STAFF", "ADMIN"}


def is_staff():
    return get_jwt().get("role") in STAFF_ROLES


def forbidden(message="You are not allowed to perform this action."):
    return jsonify({"success": False, "error_code": "FORBIDDEN", "message": message}), 403


def staff_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        verify_jwt_in_request()
        if not is_staff():
            return forbidden("Staff role required.")
        return fn(*args, **kwargs)
    return wrapper


def can_view_ticket(ticket):
    return is_staff() or get_jwt_identity() == str(ticket.user_id)
