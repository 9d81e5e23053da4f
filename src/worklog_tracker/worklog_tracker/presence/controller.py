from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import current_user_id, json_body, login_required
from ..container import Container
from .service import AlreadyCheckedInError


def register(app: Flask, container: Container) -> None:
    @app.route("/api/developer/online-status/check-in", methods=["POST"], endpoint="presence_check_in")
    @login_required
    def check_in():
        data = json_body()
        try:
            record = container.presence_service.check_in(
                current_user_id(),
                mood=data.get("mood"),
                description=data.get("description"),
            )
        except AlreadyCheckedInError as e:
            return jsonify({"error": str(e), "checkIn": e.record.to_json()}), 400
        return jsonify({"message": "Checked in successfully", "checkIn": record.to_json()}), 201

    @app.route("/api/developer/online-status", methods=["GET"], endpoint="presence_overview")
    @login_required
    def developer_status():
        return jsonify(container.presence_service.overview(current_user_id(), date=request.args.get("date")))

    @app.route("/api/manager/online-status", methods=["GET"], endpoint="team_presence")
    @login_required
    def team_status():
        user_id = request.args.get("userId", type=int)
        return jsonify(
            container.team_presence_service.team_overview(
                current_user_id(),
                date=request.args.get("date"),
                user_id=user_id,
            )
        )

    @app.route("/api/manager/online-status/developer", methods=["GET"], endpoint="team_presence_developer")
    @login_required
    def developer_detail():
        return jsonify(
            container.team_presence_service.developer_detail(
                current_user_id(),
                developer_id=request.args.get("developerId"),
                days=request.args.get("days"),
            )
        )

    @app.route("/api/manager/online-status/edit", methods=["PUT"], endpoint="team_presence_edit")
    @login_required
    def edit_record():
        data = json_body()
        record = container.team_presence_service.edit_record(
            current_user_id(),
            record_id=data.get("recordId"),
            status=data.get("status"),
            mood=data.get("mood"),
            description=data.get("description"),
            edit_reason=data.get("editReason"),
        )
        return jsonify({"message": "Record updated successfully", "record": record.to_json()})

    @app.route("/api/manager/online-status/edit", methods=["DELETE"], endpoint="team_presence_delete")
    @login_required
    def delete_record():
        container.team_presence_service.delete_record(current_user_id(), record_id=request.args.get("recordId"))
        return jsonify({"message": "Record deleted successfully"})
