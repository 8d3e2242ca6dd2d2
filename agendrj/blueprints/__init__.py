# agendrj/blueprints/__init__.py
from typing import Any, Dict

from flask import current_app, jsonify, request, session

from ..mirror import StoreResult


def services():
    """Serviços montados em create_app() (ver app.extensions)."""
    return current_app.extensions["agendrj"]


def payload() -> Dict[str, Any]:
    # aceita JSON ou form
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def has_role(*roles: str) -> bool:
    """Papel e situação lidos da conta, não só do que ficou na sessão no login."""
    user_id = session.get("user_id")
    if not user_id:
        return False
    result = services().users.by_id(user_id)
    user = result.data
    if user is None:
        # banco fora e conta fora do espelho: vale o que está na sessão
        return result.degraded and session.get("role") in roles
    if not user.is_active:
        session.clear()
        return False
    session["role"] = user.role
    return user.role in roles


def _dump(data):
    if isinstance(data, list):
        return [_dump(d) for d in data]
    if hasattr(data, "to_dict"):
        return data.to_dict()
    return data


def result_json(result: StoreResult, key: str = "data", status: int = 200, **extra):
    """Resposta padrão; 'degraded' avisa que o dado veio do espelho local."""
    body = {"ok": True, key: _dump(result.data), "degraded": result.degraded, **extra}
    return jsonify(body), status


def ok_json(data=None, key: str = "data", status: int = 200, **extra):
    return jsonify({"ok": True, key: _dump(data), **extra}), status
