# agendrj/formatters.py
from datetime import date, datetime

from .validators import only_digits

STATUS_LABELS = {
    "pending": "Em atribuição",
    "waiting": "Em Atendimento",
    "in_service": "Em Atendimento",
    "assigned": "Em Atendimento",
    "completed": "Atendimento Realizado",
    "cancelled": "Cancelado",
}


def format_cpf(value) -> str:
    """'52998224725' -> '529.982.247-25'."""
    d = only_digits(value)
    if len(d) != 11:
        return value or ""
    return f"{d[:3]}.{d[3:6]}.{d[6:9]}-{d[9:]}"


def format_phone(value) -> str:
    """Aceita nacional ou +55 e devolve '(21) 9 9999-9999'."""
    d = only_digits(value)
    if len(d) in (12, 13) and d.startswith("55"):
        d = d[2:]
    if len(d) == 11:
        return f"({d[:2]}) {d[2]} {d[3:7]}-{d[7:]}"
    if len(d) == 10:
        return f"({d[:2]}) {d[2:6]}-{d[6:]}"
    return value or ""


def br_date(value) -> str:
    """Formata datas no padrão dd/mm/aaaa.
    Aceita date/datetime ou string 'YYYY-MM-DD'."""
    if not value:
        return ""
    if isinstance(value, (date, datetime)):
        return value.strftime("%d/%m/%Y")
    s = str(value)[:10]
    try:
        y, m, d = s.split("-")
        return f"{d}/{m}/{y}"
    except ValueError:
        return s


def status_label(status: str) -> str:
    return STATUS_LABELS.get(status, "Status desconhecido")


def register_filters(app):
    app.jinja_env.filters["brdate"] = br_date
    app.jinja_env.filters["cpf"] = format_cpf
    app.jinja_env.filters["phone"] = format_phone
    app.jinja_env.filters["status_label"] = status_label
