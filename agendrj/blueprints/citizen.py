# agendrj/blueprints/citizen.py
from flask import Blueprint, request, abort

from . import services, payload, result_json, has_role
from ..models import ROLES

bp = Blueprint("citizen", __name__)


@bp.before_request
def guard():
    if not has_role(*ROLES):
        abort(401)


@bp.route("/locations")
def list_locations():
    city = (request.args.get("city") or "").strip()
    svc = services().locations
    result = svc.list_by_city(city) if city else svc.list(request.args.get("q", ""))
    return result_json(result, key="locations")


@bp.route("", methods=["GET"])
def list_mine():
    cpf = request.args.get("cpf", "")
    return result_json(services().appointments.list_by_cpf(cpf), key="appointments")


@bp.route("", methods=["POST"])
def create():
    result = services().appointments.create(payload())
    return result_json(result, key="appointment", status=201)


@bp.route("/<appointment_id>")
def detail(appointment_id: str):
    return result_json(services().appointments.get(appointment_id), key="appointment")


@bp.route("/<appointment_id>", methods=["PUT"])
def update(appointment_id: str):
    result = services().appointments.update_details(appointment_id, payload())
    return result_json(result, key="appointment")


@bp.route("/<appointment_id>/cancel", methods=["POST"])
def cancel(appointment_id: str):
    # "sair da fila"
    return result_json(services().appointments.cancel(appointment_id), key="appointment")
