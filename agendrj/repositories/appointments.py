# agendrj/repositories/appointments.py
from typing import Any, Dict, List, Optional

from ..db import get_conn

_COLS = (
    "id, cpf, name, whatsapp, birth_date, location_id, status, created_at, "
    "operator_id, queue_position, protocol, guardian_cpf, abandon_reason, version"
)

ACTIVE = ("waiting", "assigned", "in_service")


class AppointmentRepository:
    def by_id(self, aid: str) -> Optional[Dict[str, Any]]:
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(f"SELECT {_COLS} FROM appointments WHERE id=%s;", (aid,))
            return cur.fetchone()

    def list(self) -> List[Dict[str, Any]]:
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(f"SELECT {_COLS} FROM appointments ORDER BY created_at DESC;")
            return cur.fetchall()

    def by_field(self, field: str, value: Any) -> List[Dict[str, Any]]:
        if field not in ("cpf", "status", "operator_id", "location_id"):
            raise ValueError(f"campo não filtrável: {field}")
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(
                f"SELECT {_COLS} FROM appointments WHERE {field}=%s ORDER BY created_at;",
                (value,),
            )
            return cur.fetchall()

    def for_operator(self, operator_id: str, statuses=ACTIVE) -> List[Dict[str, Any]]:
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(
                f"""
                SELECT {_COLS} FROM appointments
                 WHERE operator_id=%s AND status = ANY(%s)
                 ORDER BY queue_position NULLS LAST, created_at;
                """,
                (operator_id, list(statuses)),
            )
            return cur.fetchall()

    def insert(self, row: Dict[str, Any]) -> Dict[str, Any]:
        sql = f"""
            INSERT INTO appointments (
              id, cpf, name, whatsapp, birth_date, location_id, status, created_at,
              operator_id, queue_position, protocol, guardian_cpf, abandon_reason, version
            )
            VALUES (
              %(id)s, %(cpf)s, %(name)s, %(whatsapp)s, %(birth_date)s::date,
              %(location_id)s, %(status)s, %(created_at)s::timestamptz,
              %(operator_id)s, %(queue_position)s, %(protocol)s,
              NULLIF(%(guardian_cpf)s,''), %(abandon_reason)s, %(version)s
            )
            ON CONFLICT (id) DO NOTHING
            RETURNING {_COLS};
        """
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(sql, row)
            return cur.fetchone()

    def update(self, aid: str, row: Dict[str, Any], expected_version: int) -> Optional[Dict[str, Any]]:
        """
        Grava o registro inteiro se a versão no banco for a esperada.
        Retorna None quando outro usuário alterou antes (ou o id sumiu).
        """
        sql = f"""
            UPDATE appointments
               SET cpf=%(cpf)s,
                   name=%(name)s,
                   whatsapp=%(whatsapp)s,
                   birth_date=%(birth_date)s::date,
                   location_id=%(location_id)s,
                   status=%(status)s,
                   operator_id=%(operator_id)s,
                   queue_position=%(queue_position)s,
                   protocol=%(protocol)s,
                   guardian_cpf=NULLIF(%(guardian_cpf)s,''),
                   abandon_reason=%(abandon_reason)s,
                   version=version + 1
             WHERE id=%(id)s AND version=%(expected_version)s
         RETURNING {_COLS};
        """
        payload = {**row, "id": aid, "expected_version": expected_version}
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(sql, payload)
            return cur.fetchone()

    def delete(self, aid: str) -> bool:
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute("DELETE FROM appointments WHERE id=%s RETURNING id;", (aid,))
            return bool(cur.fetchone())
