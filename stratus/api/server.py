"""Stratus query API.

Read access to the entity store scoped by the Customer-Id header, a
direct ingest endpoint, and the onboarding trigger. Entities are
rendered by splicing their stored JSON into the response body.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional, Tuple, Union

from flask import Flask, Response, jsonify, request
from flask_cors import CORS

from stratus import __version__
from stratus.api.errors import APIError, NotFoundError, ValidationError, handle_api_errors, safe_endpoint
from stratus.config import Settings, get_settings
from stratus.constants import CUSTOMER_ID_HEADER
from stratus.core.entities import Group, Instance
from stratus.normalizers import normalize
from stratus.onboarding.scan import OnboardRequest
from stratus.repositories.base import EntityRepository, GroupDetail

# Type alias for Flask responses
FlaskResponse = Union[Response, Tuple[Response, int], Tuple[Dict[str, Any], int]]

logger = logging.getLogger(__name__)


def get_customer_id() -> str:
    customer_id = request.headers.get(CUSTOMER_ID_HEADER, "").strip()
    if not customer_id:
        raise ValidationError(f"{CUSTOMER_ID_HEADER} header is required", field=CUSTOMER_ID_HEADER)
    return customer_id


def get_validated_json() -> Dict[str, Any]:
    """Get and validate a JSON object request body.

    Raises:
        ValidationError: If the body is not a JSON object
    """
    if not request.is_json:
        raise ValidationError("Content-Type must be application/json")
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")
    return data


def json_response(body: str, status: int = 200) -> Response:
    return Response(body, status=status, mimetype="application/json")


def render_instances(instances: Iterable[Instance]) -> str:
    return "[" + ",".join(i.to_json() for i in instances) + "]"


def render_group(group: Group) -> str:
    return f'{{"group":{group.to_json()},"instance_count":{group.instance_count}}}'


def render_group_detail(detail: GroupDetail) -> str:
    return (
        f'{{"group":{detail.group.to_json()},'
        f'"instances":{render_instances(detail.instances)},'
        f'"instance_count":{detail.instance_count}}}'
    )


def create_app(
    repository: EntityRepository,
    onboarder: Optional[Any] = None,
    settings: Optional[Settings] = None,
) -> Flask:
    """Create and configure the Stratus API Flask application.

    Args:
        repository: Entity store backing every read and write
        onboarder: Onboarder handling /onboard; onboarding is disabled without one
        settings: Application settings (defaults to the environment)

    Returns:
        Configured Flask application
    """
    settings = settings or get_settings()
    app = Flask(__name__)
    app.config["STRATUS_SETTINGS"] = settings
    CORS(app)
    handle_api_errors(app)

    @app.route("/health")
    def health() -> FlaskResponse:
        """Health check endpoint (no customer required)."""
        health_status = {
            "status": "ok",
            "checks": {},
            "version": __version__,
        }

        if repository.health_check():
            health_status["checks"]["database"] = "ok"
        else:
            health_status["checks"]["database"] = "error"
            health_status["status"] = "degraded"

        health_status["checks"]["onboarding"] = "ok" if onboarder is not None else "disabled"

        if health_status["status"] == "ok":
            return jsonify(health_status)
        return jsonify(health_status), 503

    # Instances

    @app.route("/instances")
    @app.route("/instances/<type>")
    @safe_endpoint("list instances")
    def list_instances(type: Optional[str] = None) -> FlaskResponse:
        instances = repository.list_instances(
            get_customer_id(), type=type, group_id=request.args.get("group_id") or None
        )
        return json_response(f'{{"instances":{render_instances(instances)}}}')

    @app.route("/instances/count")
    @app.route("/instances/<type>/count")
    @safe_endpoint("count instances")
    def count_instances(type: Optional[str] = None) -> FlaskResponse:
        count = repository.count_instances(
            get_customer_id(), type=type, group_id=request.args.get("group_id") or None
        )
        return jsonify({"count": count})

    @app.route("/instance/<type>/<instance_id>")
    @safe_endpoint("get instance")
    def get_instance(type: str, instance_id: str) -> FlaskResponse:
        instance = repository.get_instance(get_customer_id(), instance_id)
        if instance.type != type:
            raise NotFoundError("instance", instance_id)
        return json_response(instance.to_json())

    # Groups

    @app.route("/groups")
    @app.route("/groups/<type>")
    @safe_endpoint("list groups")
    def list_groups(type: Optional[str] = None) -> FlaskResponse:
        groups = repository.list_groups(get_customer_id(), type=type)
        return json_response('{"groups":[' + ",".join(render_group(g) for g in groups) + "]}")

    @app.route("/groups/count")
    @app.route("/groups/<type>/count")
    @safe_endpoint("count groups")
    def count_groups(type: Optional[str] = None) -> FlaskResponse:
        return jsonify({"count": repository.count_groups(get_customer_id(), type=type)})

    @app.route("/group/<type>/<group_id>")
    @safe_endpoint("get group")
    def get_group(type: str, group_id: str) -> FlaskResponse:
        detail = repository.get_group(
            get_customer_id(), group_id, type=request.args.get("instance_type") or None
        )
        if detail.group.type != type:
            raise NotFoundError("group", group_id)
        return json_response(render_group_detail(detail))

    @app.route("/customer")
    @safe_endpoint("get customer")
    def get_customer() -> FlaskResponse:
        customer = repository.get_customer(get_customer_id())
        return jsonify({"customer": customer.to_dict()})

    # Ingest

    @app.route("/entity/<source_tag>", methods=["POST"])
    @safe_endpoint("put entity")
    def put_entity(source_tag: str) -> FlaskResponse:
        customer_id = get_customer_id()
        entity = normalize(source_tag, customer_id, request.get_data())
        if entity is None:
            raise ValidationError(f"Unsupported entity type '{source_tag}'", field="type")
        stored = repository.put_entity(entity)
        return jsonify({"type": stored})

    # Onboarding

    @app.route("/onboard", methods=["POST"])
    @safe_endpoint("onboard")
    def onboard() -> FlaskResponse:
        if onboarder is None:
            raise APIError("Onboarding is not enabled", status_code=503)
        body = get_validated_json()
        body.setdefault("customer_id", request.headers.get(CUSTOMER_ID_HEADER, ""))
        response = onboarder.onboard(OnboardRequest.from_dict(body))
        return jsonify(response.to_dict()), 202

    @app.route("/onboard/<request_id>")
    @safe_endpoint("get scan")
    def get_scan(request_id: str) -> FlaskResponse:
        customer_id = get_customer_id()
        summary = onboarder.get_scan(request_id) if onboarder is not None else None
        if summary is None or summary.customer_id != customer_id:
            raise NotFoundError("scan", request_id)
        return jsonify(summary.to_dict())

    return app
