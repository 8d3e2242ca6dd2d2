# agendrj/repositories/service_locations.py
from typing import List, Dict, Any, Optional
from ..db import get_conn

COLS = ["name", "zip_code", "street", "number", "neighborhood", "complement", "city", "state"]

class ServiceLocationRepository:
    def list(self, q: str = "") -> List[Dict[str, Any]]:
        where = ""
        params: list[Any] = []
        if q:
            where = "WHERE name ILIKE %s OR city ILIKE %s OR neighborhood ILIKE %s"
            like = f"%{q}%"
            params = [like, like, like]
        sql = f"""
            SELECT id, {', '.join(COLS)} FROM service_locations
            {where}
            ORDER BY city, name;
        """
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(sql, params)
            return cur.fetchall()

    def by_city(self, city: str) -> List[Dict[str, Any]]:
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(
                f"SELECT id, {', '.join(COLS)} FROM service_locations "
                "WHERE LOWER(city)=LOWER(%s) ORDER BY name;",
                (city,),
            )
            return cur.fetchall()

    def by_id(self, lid: str) -> Optional[Dict[str, Any]]:
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(f"SELECT id, {', '.join(COLS)} FROM service_locations WHERE id=%s;", (lid,))
            return cur.fetchone()

    def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        cols = ["id"] + COLS
        placeholders = ",".join(
            ["NULLIF(%(complement)s,'')" if c == "complement" else f"%({c})s" for c in cols]
        )
        sql = (
            f"INSERT INTO service_locations ({','.join(cols)}) VALUES ({placeholders}) "
            f"RETURNING id, {', '.join(COLS)};"
        )
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(sql, data)
            return cur.fetchone()

    def update(self, lid: str, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        set_clause = ",".join(
            ["complement=NULLIF(%(complement)s,'')" if c == "complement" else f"{c}=%({c})s" for c in COLS]
        )
        sql = f"UPDATE service_locations SET {set_clause} WHERE id=%(id)s RETURNING id, {', '.join(COLS)};"
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(sql, {**data, "id": lid})
            return cur.fetchone()

    def delete(self, lid: str) -> bool:
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute("DELETE FROM service_locations WHERE id=%s RETURNING id;", (lid,))
            return bool(cur.fetchone())
