from __future__ import annotations

from flask import Flask, Response, g, jsonify, request

from ..common.http import current_user_id, json_body, login_required
from ..container import Container
from .service import credentials_for_attachment


def register(app: Flask, container: Container) -> None:
    @app.route("/api/jira", methods=["POST"], endpoint="jira_action")
    def jira_action():
        data = json_body()
        result = container.jira_service.run(data.get("action"), data.get("credentials"), data.get("params"))
        return jsonify(result)

    @app.route("/api/jira/attachment/<media_id>", methods=["GET"], endpoint="jira_attachment")
    def jira_attachment(media_id: str):
        fallback = None
        if g.get("user_id") is not None:
            fallback = container.profile_service.jira_credentials_for(current_user_id())
        credentials = credentials_for_attachment(request.cookies, json_body(), fallback)

        attachment = container.jira_service.attachment(credentials, media_id)
        return Response(
            attachment.content,
            mimetype=attachment.content_type,
            headers={
                "Content-Disposition": f'inline; filename="{attachment.filename}"',
                "Cache-Control": "public, max-age=3600",
            },
        )

    @app.route("/api/developer/rewards", methods=["GET"], endpoint="developer_rewards")
    @login_required
    def developer_rewards():
        return jsonify(container.rewards_service.weekly(current_user_id()))

    @app.route("/api/developer/dashboard", methods=["GET"], endpoint="developer_dashboard")
    @login_required
    def developer_dashboard():
        return jsonify(
            container.dashboard_service.build(current_user_id(), date_range=request.args.get("dateRange"))
        )
