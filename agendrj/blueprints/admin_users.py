# agendrj/blueprints/admin_users.py
from flask import Blueprint, session, abort

from . import services, payload, ok_json, has_role
from ..errors import InvalidState, MissingRequiredField

bp = Blueprint("admin_users", __name__)


@bp.before_request
def guard():
    # Protege tudo que estiver nesse blueprint
    if not has_role("master"):
        abort(403)


def _not_self(user_id: str, action: str) -> None:
    if user_id == session.get("user_id"):
        raise InvalidState(f"Você não pode {action} a sua própria conta.")


@bp.route("/users")
def list_users():
    return ok_json(services().users.list_users(), key="users")


@bp.route("/users/<user_id>", methods=["PUT"])
def edit_user(user_id: str):
    return ok_json(services().users.update_profile(user_id, payload()), key="user")


@bp.route("/users/<user_id>/role", methods=["POST"])
def change_role(user_id: str):
    _not_self(user_id, "alterar o papel de")
    role = (payload().get("role") or "").strip()
    return ok_json(services().users.set_role(user_id, role), key="user")


@bp.route("/users/<user_id>/active", methods=["POST"])
def toggle_active(user_id: str):
    raw = payload().get("is_active")
    if raw is None or raw == "":
        raise MissingRequiredField("Informe se a conta fica ativa.", field="is_active")
    active = raw if isinstance(raw, bool) else str(raw).lower() in ("1", "true", "on")
    if not active:
        _not_self(user_id, "inativar")
    return ok_json(services().users.set_active(user_id, active), key="user")


@bp.route("/users/<user_id>", methods=["DELETE"])
def delete_user(user_id: str):
    _not_self(user_id, "excluir")
    services().users.delete(user_id)
    return ok_json()
