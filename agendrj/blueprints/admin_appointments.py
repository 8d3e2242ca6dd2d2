# agendrj/blueprints/admin_appointments.py
from flask import Blueprint, request, abort

from . import services, payload, result_json, ok_json, has_role

bp = Blueprint("admin_appointments", __name__)


@bp.before_request
def guard():
    if not has_role("master"):
        abort(403)


@bp.route("/appointments")
def list_all():
    status = (request.args.get("status") or "").strip()
    svc = services().appointments
    result = svc.list_pending() if status == "pending" else svc.list_all()
    if status and status != "pending":
        result.data = [a for a in result.data if a.status == status]
    return result_json(result, key="appointments")


@bp.route("/appointments/pending")
def list_pending():
    return result_json(services().appointments.list_pending(), key="appointments")


@bp.route("/operators")
def list_operators():
    return ok_json(services().users.operators(), key="operators")


@bp.route("/appointments/<appointment_id>/assign", methods=["POST"])
def assign(appointment_id: str):
    operator_id = (payload().get("operator_id") or "").strip()
    if not operator_id:
        abort(400)
    result = services().appointments.assign_operator(appointment_id, operator_id)
    return result_json(result, key="appointment")


@bp.route("/appointments/<appointment_id>/reactivate", methods=["POST"])
def reactivate(appointment_id: str):
    return result_json(services().appointments.reactivate(appointment_id), key="appointment")


@bp.route("/appointments/<appointment_id>", methods=["DELETE"])
def delete(appointment_id: str):
    result = services().appointments.delete(appointment_id)
    return result_json(result)


@bp.route("/appointments/flush", methods=["POST"])
def flush():
    synced = services().appointments.flush_pending()
    return ok_json(synced, key="synced")


@bp.route("/stats")
def stats():
    return ok_json(services().analytics.stats(), key="stats")
