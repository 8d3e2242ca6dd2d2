# agendrj/repositories/settings.py
from typing import Optional, Dict, Any
from ..db import get_conn

class SettingsRepository:
    # tabela de linha única (id = 1)
    def get(self) -> Optional[Dict[str, Any]]:
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute("SELECT whatsapp_number, default_message FROM admin_settings WHERE id=1;")
            return cur.fetchone()

    def save(self, data: Dict[str, Any]) -> Dict[str, Any]:
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO admin_settings (id, whatsapp_number, default_message)
                VALUES (1, %(whatsapp_number)s, %(default_message)s)
                ON CONFLICT (id) DO UPDATE SET
                    whatsapp_number = EXCLUDED.whatsapp_number,
                    default_message = EXCLUDED.default_message
                RETURNING whatsapp_number, default_message;
                """,
                data,
            )
            return cur.fetchone()
