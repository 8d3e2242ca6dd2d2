# agendrj/blueprints/admin_locations.py
from flask import Blueprint, request, abort

from . import services, payload, result_json, ok_json, has_role

bp = Blueprint("admin_locations", __name__)


@bp.before_request
def guard():
    if not has_role("master"):
        abort(403)


@bp.route("/locations")
def list_locations():
    return result_json(services().locations.list(request.args.get("q", "")), key="locations")


@bp.route("/locations", methods=["POST"])
def new_location():
    return ok_json(services().locations.create(payload()), key="location", status=201)


@bp.route("/locations/<location_id>")
def show_location(location_id: str):
    return ok_json(services().locations.get(location_id), key="location")


@bp.route("/locations/<location_id>", methods=["PUT"])
def edit_location(location_id: str):
    return ok_json(services().locations.update(location_id, payload()), key="location")


@bp.route("/locations/<location_id>", methods=["DELETE"])
def delete_location(location_id: str):
    services().locations.delete(location_id)
    return ok_json()
