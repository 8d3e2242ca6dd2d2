# agendrj/repositories/analytics.py
from typing import Dict, Any, List
from ..db import get_conn


class AnalyticsRepository:
    def count_by_status(self) -> List[Dict[str, Any]]:
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute("SELECT status, COUNT(*)::int AS qty FROM appointments GROUP BY status;")
            return cur.fetchall()

    def count_by_city(self) -> List[Dict[str, Any]]:
        # agendamentos com local apagado (órfãos) não entram
        sql = """
            SELECT l.city AS city, COUNT(a.id)::int AS qty
              FROM service_locations l
              LEFT JOIN appointments a ON a.location_id = l.id
             GROUP BY l.city
             ORDER BY l.city;
        """
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(sql)
            return cur.fetchall()

    def count_by_operator(self) -> List[Dict[str, Any]]:
        sql = """
            SELECT u.name AS name, COUNT(a.id)::int AS qty
              FROM users u
              LEFT JOIN appointments a ON a.operator_id = u.id
             WHERE u.role = 'operator'
             GROUP BY u.id, u.name
             ORDER BY u.name;
        """
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(sql)
            return cur.fetchall()
