from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Callable, Optional

from flask import Flask, g, jsonify, request, session
from werkzeug.exceptions import HTTPException

from ..core.exceptions import AuthenticationError, DomainError, ExternalServiceError

logger = logging.getLogger(__name__)


def json_body() -> dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def get_token_from_request() -> Optional[str]:
    """JWT from the ``token`` cookie, else from an ``Authorization: Bearer`` header."""
    token = request.cookies.get("token")
    if token:
        return token
    header = request.headers.get("Authorization", "")
    if header.startswith("Bearer "):
        return header.split(" ", 1)[1].strip() or None
    return None


def install_identity_loader(app: Flask, decode_token: Callable[[str], Optional[int]]) -> None:
    """Resolve ``g.user_id`` from the session cookie or a bearer JWT."""

    @app.before_request
    def _load_identity():
        user_id = session.get("user_id")
        if user_id is None:
            token = get_token_from_request()
            if token:
                user_id = decode_token(token)
        g.user_id = int(user_id) if user_id is not None else None


def current_user_id() -> int:
    user_id = g.get("user_id")
    if user_id is None:
        raise AuthenticationError("Unauthorized")
    return int(user_id)


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if g.get("user_id") is None:
            return jsonify({"error": "Unauthorized"}), 401
        return view(*args, **kwargs)

    return wrapper


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def _domain_error(err: DomainError):
        body: dict[str, Any] = {"error": str(err)}
        if isinstance(err, ExternalServiceError) and err.details is not None:
            body["details"] = err.details
        return jsonify(body), err.status_code

    @app.errorhandler(Exception)
    def _unexpected_error(err: Exception):
        if isinstance(err, HTTPException):
            return jsonify({"error": err.description}), err.code
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"error": "Internal server error"}), 500
