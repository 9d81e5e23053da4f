from __future__ import annotations

import logging
from urllib.parse import urlencode

from flask import Flask, jsonify, redirect, request, session

from ..common.http import current_user_id, json_body, login_required
from ..container import Container
from .service import LOGIN_PAGE, OAuthFlowError

logger = logging.getLogger(__name__)

PENDING_KEY = "atlassian_pending_user_id"


def register(app: Flask, container: Container) -> None:
    base_url = container.base_url

    def error_redirect(page: str, code: str):
        return redirect(f"{base_url}{page}?{urlencode({'error': code})}")

    @app.route("/api/auth/atlassian/login", methods=["GET"], endpoint="atlassian_login")
    def atlassian_login():
        url = container.oauth_service.start_login(request.args.get("token") or None)
        return redirect(url)

    @app.route("/api/auth/atlassian/callback", methods=["GET"], endpoint="atlassian_callback")
    def atlassian_callback():
        if request.args.get("error"):
            logger.warning("Atlassian returned error=%s", request.args.get("error"))
        try:
            user_id = container.oauth_service.handle_callback(request.args.get("code"), request.args.get("state"))
        except OAuthFlowError as e:
            logger.warning("Atlassian callback failed: %s", e.code)
            return error_redirect(e.page, e.code)
        except Exception:
            logger.exception("Unexpected Atlassian callback failure")
            return error_redirect(LOGIN_PAGE, "callback_failed")

        session[PENDING_KEY] = user_id
        return redirect(f"/api/auth/atlassian/session?{urlencode({'userId': user_id})}")

    @app.route("/api/auth/atlassian/session", methods=["GET"], endpoint="atlassian_session")
    def atlassian_session():
        try:
            user = container.oauth_service.session_target(
                request.args.get("userId"),
                pending_user_id=session.get(PENDING_KEY),
            )
        except OAuthFlowError as e:
            return error_redirect(e.page, e.code)
        except Exception:
            logger.exception("Could not prepare Atlassian session")
            return error_redirect(LOGIN_PAGE, "session_creation_failed")

        query = urlencode(
            {
                "userId": user.user_id,
                "email": user.email,
                "name": user.display_name,
                "role": user.role.value,
            }
        )
        return redirect(f"{base_url}/auth/atlassian-success?{query}")

    @app.route("/api/auth/atlassian/create-session", methods=["POST"], endpoint="atlassian_create_session")
    def atlassian_create_session():
        result = container.oauth_service.create_session(
            json_body().get("userId"),
            pending_user_id=session.get(PENDING_KEY),
        )
        session.pop(PENDING_KEY, None)
        user = result.user
        return jsonify(
            {
                "success": True,
                "credentials": {"email": user.email, "password": result.password},
                "user": {
                    "id": user.user_id,
                    "email": user.email,
                    "name": user.display_name,
                    "role": user.role.value,
                },
            }
        )

    @app.route("/api/auth/atlassian/refresh", methods=["POST"], endpoint="atlassian_refresh")
    @login_required
    def atlassian_refresh():
        user = container.oauth_service.refresh_tokens(current_user_id())
        return jsonify(
            {
                "message": "Atlassian tokens refreshed",
                "expiresAt": user.atlassian_token_expires.isoformat() if user.atlassian_token_expires else None,
            }
        )
