# agendrj/db.py
import logging
from contextlib import contextmanager
from typing import Optional

import psycopg2
import psycopg2.extras
from psycopg2.pool import SimpleConnectionPool

from .errors import StoreUnavailable

logger = logging.getLogger(__name__)

_pool: Optional[SimpleConnectionPool] = None

def init_db(db_cfg: dict, maxconn: int = 10) -> None:
    """
    Inicializa o pool de conexões. Chamado uma vez em create_app().
    Se o banco estiver fora do ar no startup, a app sobe mesmo assim
    e as leituras caem no espelho local.
    """
    global _pool
    if _pool is not None:
        return

    try:
        _pool = SimpleConnectionPool(
            minconn=1,
            maxconn=maxconn,
            cursor_factory=psycopg2.extras.RealDictCursor,  # rows como dict
            **db_cfg,
        )
    except psycopg2.OperationalError as e:
        logger.warning("banco indisponível no startup: %s", e)

def _ensure_pool() -> SimpleConnectionPool:
    if _pool is None:
        raise StoreUnavailable("Banco de dados indisponível.")
    return _pool

@contextmanager
def get_conn():
    """
    Uso:
      with get_conn() as conn, conn.cursor() as cur:
          cur.execute("SELECT 1")
    Commit no sucesso, rollback em exceção. Falhas de conexão viram
    StoreUnavailable para os serviços decidirem o fallback.
    """
    pool = _ensure_pool()
    try:
        conn = pool.getconn()
    except (psycopg2.OperationalError, psycopg2.pool.PoolError) as e:
        raise StoreUnavailable("Banco de dados indisponível.") from e

    broken = False
    try:
        yield conn
        conn.commit()
    except (psycopg2.OperationalError, psycopg2.InterfaceError) as e:
        broken = True
        _safe_rollback(conn)
        raise StoreUnavailable("Banco de dados indisponível.") from e
    except Exception:
        _safe_rollback(conn)
        raise
    finally:
        pool.putconn(conn, close=broken or bool(conn.closed))

def _safe_rollback(conn) -> None:
    if conn.closed:
        return
    try:
        conn.rollback()
    except psycopg2.Error:
        logger.debug("rollback falhou", exc_info=True)
