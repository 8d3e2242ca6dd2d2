# agendrj/blueprints/operator_queue.py
from flask import Blueprint, session, abort

from . import services, payload, result_json, has_role

bp = Blueprint("operator_queue", __name__)


@bp.before_request
def guard():
    if not has_role("operator", "master"):
        abort(403)


@bp.route("/queue")
def my_queue():
    result = services().appointments.list_for_operator(session["user_id"])
    return result_json(result, key="appointments")


@bp.route("/appointments/<appointment_id>/start", methods=["POST"])
def start(appointment_id: str):
    return result_json(services().appointments.start_service(appointment_id), key="appointment")


@bp.route("/appointments/<appointment_id>/complete", methods=["POST"])
def complete(appointment_id: str):
    svc = services()
    result = svc.appointments.complete_service(appointment_id, payload().get("protocol"))
    # link wa.me para enviar o protocolo ao cidadão
    return result_json(
        result,
        key="appointment",
        notification_link=svc.settings.notification_link(result.data),
    )


@bp.route("/appointments/<appointment_id>/abandon", methods=["POST"])
def abandon(appointment_id: str):
    reason = payload().get("reason")
    return result_json(services().appointments.abandon_service(appointment_id, reason), key="appointment")
