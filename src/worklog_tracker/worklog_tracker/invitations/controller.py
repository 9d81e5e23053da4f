from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import current_user_id, json_body, login_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/users/invite", methods=["POST"], endpoint="users_invite")
    @login_required
    def invite():
        data = json_body()
        result = container.invitation_service.invite_developer(
            inviter_id=current_user_id(),
            first_name=data.get("firstName"),
            last_name=data.get("lastName"),
            email=data.get("email"),
            department=data.get("department"),
        )
        return (
            jsonify(
                {
                    "message": "User invited successfully",
                    "user": result.user.public_dict(),
                    "emailSent": result.email_sent,
                }
            ),
            201,
        )

    @app.route("/api/invite/validate", methods=["GET"], endpoint="invite_validate")
    def validate_invitation():
        user = container.invitation_service.validate(request.args.get("token"))
        return jsonify(
            {
                "valid": True,
                "user": {
                    "id": user.user_id,
                    "email": user.email,
                    "firstName": user.first_name,
                    "lastName": user.last_name,
                    "role": user.role.value,
                    "invitedAt": user.invited_at.isoformat() if user.invited_at else None,
                },
            }
        )
