from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import current_user_id, json_body, login_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    admin = container.admin_service

    @app.route("/api/admin/stats", methods=["GET"], endpoint="admin_stats")
    @login_required
    def stats():
        return jsonify(admin.stats(current_user_id()))

    @app.route("/api/admin/users", methods=["GET"], endpoint="admin_users")
    @login_required
    def list_users():
        args = request.args
        return jsonify(
            admin.list_users(
                current_user_id(),
                page=args.get("page", 1),
                limit=args.get("limit", 50),
                role=args.get("role"),
                status=args.get("status"),
                search=args.get("search"),
            )
        )

    @app.route("/api/admin/users/<int:user_id>", methods=["GET"], endpoint="admin_user_detail")
    @login_required
    def user_detail(user_id: int):
        return jsonify(admin.get_user(current_user_id(), user_id))

    @app.route("/api/admin/users/<int:user_id>", methods=["PUT"], endpoint="admin_user_update")
    @login_required
    def update_user(user_id: int):
        user = admin.update_user(current_user_id(), user_id, json_body())
        return jsonify({"message": "User updated successfully", "user": user.public_dict()})

    @app.route("/api/admin/users/<int:user_id>", methods=["DELETE"], endpoint="admin_user_delete")
    @login_required
    def delete_user(user_id: int):
        admin.deactivate_user(current_user_id(), user_id)
        return jsonify({"message": "User deactivated successfully"})

    @app.route("/api/admin/managers", methods=["GET"], endpoint="admin_managers")
    @login_required
    def list_managers():
        args = request.args
        return jsonify(
            admin.list_managers(
                current_user_id(),
                page=args.get("page", 1),
                limit=args.get("limit", 10),
                status=args.get("status"),
                department=args.get("department"),
            )
        )

    @app.route("/api/admin/managers", methods=["POST"], endpoint="admin_managers_create")
    @login_required
    def create_manager():
        data = json_body()
        manager = admin.create_manager(
            current_user_id(),
            first_name=data.get("firstName"),
            last_name=data.get("lastName"),
            email=data.get("email"),
            department=data.get("department"),
        )
        return jsonify({"message": "Manager created successfully", "manager": manager.public_dict()}), 201

    @app.route("/api/admin/settings", methods=["GET"], endpoint="admin_settings")
    @login_required
    def get_settings():
        return jsonify(admin.get_settings(current_user_id()))

    @app.route("/api/admin/settings", methods=["PUT"], endpoint="admin_settings_update")
    @login_required
    def update_settings():
        data = json_body()
        result = admin.update_settings(current_user_id(), section=data.get("section"), settings=data.get("settings"))
        return jsonify({"message": "Settings updated successfully", **result})
