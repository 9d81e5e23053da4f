from __future__ import annotations

from flask import Flask, current_app, jsonify, session

from ..common.http import current_user_id, json_body, login_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/auth/signup", methods=["POST"], endpoint="auth_signup")
    def signup():
        data = json_body()
        user = container.auth_service.signup(
            email=data.get("email"),
            password=data.get("password"),
            confirm_password=data.get("confirmPassword"),
            first_name=data.get("firstName"),
            last_name=data.get("lastName"),
        )
        return jsonify({"message": "User created successfully", "user": user.public_dict()}), 201

    @app.route("/api/auth/login", methods=["POST"], endpoint="auth_login")
    def login():
        data = json_body()
        user, token = container.auth_service.login(data.get("email"), data.get("password"))

        response = jsonify({"message": "Login successful", "user": user.public_dict()})
        response.set_cookie(
            "token",
            token,
            httponly=True,
            samesite="Lax",
            secure=not current_app.config.get("DEBUG", False),
            max_age=container.tokens.expires_days * 86400,
        )
        return response

    @app.route("/api/auth/callback/credentials", methods=["POST"], endpoint="auth_credentials")
    def credentials_sign_in():
        data = json_body()
        s_user = container.auth_service.authorize_credentials(data.get("email"), data.get("password"))

        session.clear()
        session.permanent = True
        session["user_id"] = s_user.user_id
        session["role"] = s_user.role.value
        return jsonify({"user": s_user.to_dict()})

    @app.route("/api/auth/session", methods=["GET"], endpoint="auth_session")
    @login_required
    def current_session():
        return jsonify({"user": container.auth_service.session_user(current_user_id()).to_dict()})

    @app.route("/api/auth/me", methods=["GET"], endpoint="auth_me")
    @login_required
    def me():
        s_user = container.auth_service.session_user(current_user_id())
        return jsonify({"user": container.auth_service.get_user(s_user.user_id).public_dict()})

    @app.route("/api/auth/logout", methods=["POST"], endpoint="auth_logout")
    def logout():
        session.clear()
        response = jsonify({"message": "Logged out"})
        response.delete_cookie("token")
        return response

    @app.route("/api/auth/forgot-password", methods=["POST"], endpoint="auth_forgot_password")
    def forgot_password():
        message = container.password_service.forgot_password(json_body().get("email"))
        return jsonify({"message": message})

    @app.route("/api/auth/validate-reset-token", methods=["POST"], endpoint="auth_validate_reset_token")
    def validate_reset_token():
        user = container.password_service.validate_reset_token(json_body().get("token"))
        return jsonify({"valid": True, "email": user.email})

    @app.route("/api/auth/reset-password", methods=["POST"], endpoint="auth_reset_password")
    def reset_password():
        data = json_body()
        container.password_service.reset_password(data.get("token"), data.get("password"), data.get("confirmPassword"))
        return jsonify({"message": "Password has been reset successfully"})

    @app.route("/api/auth/set-password", methods=["POST"], endpoint="auth_set_password")
    def set_password():
        data = json_body()
        user = container.password_service.set_password(data.get("token"), data.get("password"))
        return jsonify({"message": "Password set successfully. You can now sign in.", "email": user.email})

    @app.route("/api/user/change-password", methods=["POST"], endpoint="user_change_password")
    @login_required
    def change_password():
        data = json_body()
        container.password_service.change_password(
            current_user_id(),
            current_password=data.get("currentPassword"),
            new_password=data.get("newPassword"),
        )
        return jsonify({"message": "Password changed successfully"})

    @app.route("/api/user/setup-password", methods=["POST"], endpoint="user_setup_password")
    @login_required
    def setup_password():
        data = json_body()
        container.password_service.setup_password(
            current_user_id(),
            password=data.get("password"),
            confirm_password=data.get("confirmPassword"),
        )
        return jsonify({"message": "Password set up successfully"})

    @app.route("/api/user/profile", methods=["PUT"], endpoint="user_profile")
    @app.route("/api/users/me", methods=["PUT"], endpoint="users_me")
    @login_required
    def update_profile():
        data = json_body()
        user = container.profile_service.update_profile(
            current_user_id(),
            first_name=data.get("firstName"),
            last_name=data.get("lastName"),
        )
        return jsonify({"message": "Profile updated successfully", "user": user.public_dict()})

    @app.route("/api/user/notifications", methods=["GET"], endpoint="user_notifications")
    @login_required
    def get_notifications():
        settings = container.profile_service.get_notifications(current_user_id())
        return jsonify({"notificationSettings": settings.to_json()})

    @app.route("/api/user/notifications", methods=["PUT"], endpoint="user_notifications_update")
    @login_required
    def update_notifications():
        settings = container.profile_service.update_notifications(current_user_id(), json_body())
        return jsonify({"message": "Notification settings updated", "notificationSettings": settings.to_json()})

    @app.route("/api/user/jira-organization", methods=["POST"], endpoint="user_jira_organization")
    @login_required
    def save_jira_organization():
        data = json_body()
        credentials = container.profile_service.set_jira_organization(
            current_user_id(),
            domain=data.get("domain"),
            email=data.get("email"),
            api_token=data.get("apiToken"),
            organization_name=data.get("organizationName"),
        )
        return jsonify(
            {
                "message": "Jira organization saved",
                "jiraOrganization": {
                    "organizationName": credentials.organization_name,
                    "domain": credentials.domain,
                    "email": credentials.email,
                },
            }
        )
