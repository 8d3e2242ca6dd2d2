# agendrj/mirror.py
"""
Espelho local (em memória) dos registros já vistos no banco.

Quando o banco cai, os serviços leem e escrevem aqui para a tela continuar
respondendo. Não há TTL, limite de tamanho nem persistência: se o processo
reiniciar antes de flush_pending() conseguir gravar, as escritas pendentes
se perdem.
"""
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Iterable, List, Optional, Set, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class StoreResult(Generic[T]):
    """Resultado de leitura/escrita: autoritativo (banco) ou degradado (espelho)."""

    data: T
    degraded: bool = False
    cause: Optional[Exception] = None

    @classmethod
    def ok(cls, data: T) -> "StoreResult[T]":
        return cls(data=data)

    @classmethod
    def fallback(cls, data: T, cause: Exception) -> "StoreResult[T]":
        return cls(data=data, degraded=True, cause=cause)


class LocalMirror:
    """Cópia por id de registros (qualquer objeto com atributo `id`)."""

    def __init__(self, name: str = "mirror"):
        self.name = name
        self._rows: Dict[str, Any] = {}
        self._pending: Set[str] = set()
        self._lock = threading.Lock()

    def get(self, rid: str) -> Optional[Any]:
        with self._lock:
            return self._rows.get(rid)

    def select(self, predicate: Callable[[Any], bool] = lambda r: True) -> List[Any]:
        with self._lock:
            return [r for r in self._rows.values() if predicate(r)]

    def remember(self, record: Any) -> None:
        """Registro confirmado pelo banco."""
        with self._lock:
            self._rows[record.id] = record
            self._pending.discard(record.id)

    def remember_many(self, records: Iterable[Any]) -> None:
        with self._lock:
            for r in records:
                self._rows[r.id] = r
                self._pending.discard(r.id)

    def remember_pending(self, record: Any) -> None:
        """Escrita que só existe aqui (banco indisponível)."""
        with self._lock:
            self._rows[record.id] = record
            self._pending.add(record.id)

    def forget(self, rid: str) -> None:
        with self._lock:
            self._rows.pop(rid, None)
            self._pending.discard(rid)

    def is_pending(self, rid: str) -> bool:
        with self._lock:
            return rid in self._pending

    def pending(self) -> List[Any]:
        with self._lock:
            return [self._rows[rid] for rid in self._pending if rid in self._rows]

    def reconcile(
        self,
        durable: Iterable[Any],
        predicate: Callable[[Any], bool] = lambda r: True,
    ) -> List[Any]:
        """
        Mescla uma leitura bem-sucedida do banco com o espelho.

        - o banco vence em conflito de id (e a marca de pendente sai);
        - pendentes que casam com o filtro e não vieram do banco são mantidos;
        - registros limpos que casam com o filtro e sumiram do banco são descartados.
        """
        durable = list(durable)
        seen = {r.id for r in durable}
        merged = list(durable)
        with self._lock:
            for rid in list(self._rows):
                row = self._rows[rid]
                if rid in seen or not predicate(row):
                    continue
                if rid in self._pending:
                    merged.append(row)
                else:
                    del self._rows[rid]
            for r in durable:
                if r.id in self._pending:
                    logger.warning("%s: alteração local de %s descartada; banco prevalece", self.name, r.id)
                self._rows[r.id] = r
                self._pending.discard(r.id)
        return merged
