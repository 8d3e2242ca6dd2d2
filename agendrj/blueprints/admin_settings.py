# agendrj/blueprints/admin_settings.py
from flask import Blueprint, abort

from . import services, payload, ok_json, has_role

bp = Blueprint("admin_settings", __name__)


@bp.before_request
def guard():
    if not has_role("master"):
        abort(403)


@bp.route("/settings")
def show_settings():
    return ok_json(services().settings.get(), key="settings")


@bp.route("/settings", methods=["PUT", "POST"])
def update_settings():
    return ok_json(services().settings.update(payload()), key="settings")
