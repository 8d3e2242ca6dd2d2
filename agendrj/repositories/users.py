# agendrj/repositories/users.py
from typing import Optional, List, Dict, Any
from ..db import get_conn

_PUBLIC = "id, name, email, role, is_active, cpf, whatsapp, birth_date, created_at"

class UserRepository:
    def by_email(self, email: str) -> Optional[Dict[str, Any]]:
        """Inclui password_hash: uso exclusivo da autenticação."""
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(
                f"SELECT {_PUBLIC}, password_hash FROM users WHERE LOWER(email)=LOWER(%s) LIMIT 1;",
                (email,),
            )
            return cur.fetchone()

    def by_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(f"SELECT {_PUBLIC} FROM users WHERE id=%s;", (user_id,))
            return cur.fetchone()

    def exists_email_or_cpf(self, email: str, cpf: str) -> bool:
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(
                "SELECT 1 FROM users WHERE LOWER(email)=LOWER(%s) OR cpf=%s LIMIT 1;",
                (email, cpf),
            )
            return cur.fetchone() is not None

    def list(self) -> List[Dict[str, Any]]:
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(f"SELECT {_PUBLIC} FROM users ORDER BY name;")
            return cur.fetchall()

    def in_roles(self, roles: List[str]) -> List[Dict[str, Any]]:
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(
                f"SELECT {_PUBLIC} FROM users WHERE role = ANY(%s) ORDER BY name;",
                (list(roles),),
            )
            return cur.fetchall()

    def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        sql = f"""
            INSERT INTO users (
              id, name, email, password_hash, role, is_active, cpf, whatsapp, birth_date
            )
            VALUES (
              %(id)s, %(name)s, LOWER(%(email)s), %(password_hash)s,
              %(role)s, TRUE, %(cpf)s, NULLIF(%(whatsapp)s,''), NULLIF(%(birth_date)s,'')::date
            )
            RETURNING {_PUBLIC};
        """
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(sql, data)
            return cur.fetchone()

    def update(self, user_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        sql = f"""
            UPDATE users
               SET name=%(name)s,
                   email=LOWER(%(email)s),
                   whatsapp=NULLIF(%(whatsapp)s,''),
                   birth_date=NULLIF(%(birth_date)s,'')::date
             WHERE id=%(id)s
         RETURNING {_PUBLIC};
        """
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(sql, {**fields, "id": user_id})
            return cur.fetchone()

    def set_role(self, user_id: str, role: str) -> Optional[Dict[str, Any]]:
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(f"UPDATE users SET role=%s WHERE id=%s RETURNING {_PUBLIC};", (role, user_id))
            return cur.fetchone()

    def set_active(self, user_id: str, active: bool) -> Optional[Dict[str, Any]]:
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(f"UPDATE users SET is_active=%s WHERE id=%s RETURNING {_PUBLIC};", (active, user_id))
            return cur.fetchone()

    def delete(self, user_id: str) -> bool:
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute("DELETE FROM users WHERE id=%s RETURNING id;", (user_id,))
            return bool(cur.fetchone())
