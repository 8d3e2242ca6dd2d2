# agendrj/blueprints/auth.py
from flask import Blueprint, session, abort

from . import services, payload, ok_json

bp = Blueprint("auth", __name__)


def _start_session(user) -> None:
    session.clear()
    session["user_id"] = user.id
    session["name"] = user.name
    session["role"] = user.role


@bp.route("/register", methods=["POST"])
def register():
    user = services().users.register(payload())
    # cadastro já entra logado
    _start_session(user)
    return ok_json(user, key="user", status=201)


@bp.route("/login", methods=["POST"])
def login():
    data = payload()
    user = services().users.authenticate(data.get("email", ""), data.get("password", ""))
    _start_session(user)
    return ok_json(user, key="user")


@bp.route("/logout", methods=["POST"])
def logout():
    session.clear()
    return ok_json()


@bp.route("/me")
def me():
    if not session.get("user_id"):
        abort(401)
    result = services().users.by_id(session["user_id"])
    if result.data is None or not result.data.is_active:
        # conta removida ou inativada depois do login
        session.clear()
        abort(401)
    return ok_json(result.data, key="user", degraded=result.degraded)
