from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import current_user_id, json_body, login_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/organizations", methods=["POST"], endpoint="organizations_create")
    @login_required
    def create_organization():
        data = json_body()
        organization = container.organization_service.create_for_user(
            current_user_id(),
            name=data.get("name"),
            description=data.get("description"),
            jira_organization=data.get("jiraOrganization"),
        )
        return jsonify({"message": "Organization created successfully", "organization": organization.to_json()}), 201

    @app.route("/api/organizations", methods=["GET"], endpoint="organizations_get")
    @login_required
    def get_organization():
        organization = container.organization_service.get_for_user(current_user_id())
        return jsonify({"organization": organization.to_json()})

    @app.route("/api/user/organization", methods=["GET"], endpoint="user_organization")
    @login_required
    def user_organization():
        organization = container.organization_service.get_for_user(current_user_id())
        return jsonify({"organization": organization.summary_json()})

    @app.route("/api/organization/check-in-window", methods=["GET"], endpoint="check_in_window_get")
    @login_required
    def get_check_in_window():
        window = container.organization_service.get_check_in_window(current_user_id())
        return jsonify({"checkInWindow": window.to_json()})

    @app.route("/api/organization/check-in-window", methods=["PUT"], endpoint="check_in_window_update")
    @login_required
    def update_check_in_window():
        data = json_body()
        window = container.organization_service.update_check_in_window(
            current_user_id(),
            start_time=data.get("startTime"),
            end_time=data.get("endTime"),
            timezone=data.get("timezone"),
        )
        return jsonify({"message": "Check-in window updated successfully", "checkInWindow": window.to_json()})
