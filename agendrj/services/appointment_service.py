# agendrj/services/appointment_service.py
"""
Ciclo de vida do agendamento:

    pending -> assigned -> in_service -> completed
    in_service -> pending          (abandono; libera operador e posição)
    não-terminal -> cancelled       (cidadão sai da fila)
    cancelled -> pending           (reativação)

'waiting' é um valor legado equivalente a 'assigned'. 'completed' é final.

Posição na fila = 1 + agendamentos ativos do operador. Não há renumeração
quando alguém da frente sai da fila: as posições podem ter buracos.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..errors import (
    ConcurrentModification, InvalidState, MissingProtocol, MissingReason,
    MissingRequiredField, NotFound, StoreUnavailable, UnresolvedReference,
)
from ..mirror import LocalMirror, StoreResult
from ..models import (
    Appointment, ACTIVE_STATUSES, CANCELLABLE_STATUSES, TERMINAL_STATUSES,
    PENDING, ASSIGNED, IN_SERVICE, COMPLETED, CANCELLED,
)
from ..repositories.appointments import AppointmentRepository
from .location_service import LocationService
from .user_service import UserService
from ..validators import calculate_age, normalize_cpf, normalize_whatsapp, only_digits, parse_date

logger = logging.getLogger(__name__)

GUARDIAN_MIN_AGE = 15


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AppointmentService:
    def __init__(
        self,
        repo: Optional[AppointmentRepository] = None,
        locations: Optional[LocationService] = None,
        users: Optional[UserService] = None,
        mirror: Optional[LocalMirror] = None,
        guardian_min_age: int = GUARDIAN_MIN_AGE,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.repo = repo or AppointmentRepository()
        self.locations = locations or LocationService()
        self.users = users or UserService()
        self.mirror = mirror if mirror is not None else LocalMirror("appointments")
        self.guardian_min_age = guardian_min_age
        self.clock = clock

    # ------------------------------------------------------------------
    # Validação (antes de qualquer escrita)
    # ------------------------------------------------------------------
    def _validated(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        name = (payload.get("name") or "").strip()
        if not name:
            raise MissingRequiredField("Nome é obrigatório.", field="name")

        cpf = normalize_cpf(payload.get("cpf"))
        whatsapp = normalize_whatsapp(payload.get("whatsapp"))
        if not payload.get("birth_date"):
            raise MissingRequiredField("Data de nascimento é obrigatória.", field="birth_date")
        born = parse_date(payload["birth_date"])

        guardian = only_digits(payload.get("guardian_cpf"))
        if calculate_age(born, today=self.clock().date()) < self.guardian_min_age:
            if not guardian:
                raise MissingRequiredField(
                    f"CPF do responsável obrigatório para menores de {self.guardian_min_age} anos.",
                    field="guardian_cpf",
                )
            guardian = normalize_cpf(guardian, field="guardian_cpf")
        elif guardian:
            # informado sem necessidade: ainda precisa ser válido
            guardian = normalize_cpf(guardian, field="guardian_cpf")

        location_id = (payload.get("location_id") or "").strip()
        if not location_id:
            raise MissingRequiredField("Local de atendimento é obrigatório.", field="location_id")
        found = self.locations.by_id(location_id)
        if found.data is None:
            if found.degraded:
                # banco fora e local fora do espelho: não dá para afirmar que não existe
                raise found.cause
            raise UnresolvedReference("Local de atendimento não encontrado.", field="location_id")

        return {
            "name": name,
            "cpf": cpf,
            "whatsapp": whatsapp,
            "birth_date": born.isoformat(),
            "guardian_cpf": guardian or None,
            "location_id": location_id,
        }

    # ------------------------------------------------------------------
    # Acesso ao banco com fallback para o espelho
    # ------------------------------------------------------------------
    def _fetch(self, aid: str) -> Tuple[Appointment, Optional[StoreUnavailable]]:
        try:
            row = self.repo.by_id(aid)
        except StoreUnavailable as e:
            logger.warning("appointments: %s lido do espelho local", aid)
            rec = self.mirror.get(aid)
            if rec is None:
                raise NotFound("Agendamento não encontrado.")
            return rec, e

        if row is None:
            # criado com o banco fora e ainda não sincronizado
            if self.mirror.is_pending(aid):
                return self.mirror.get(aid), None
            self.mirror.forget(aid)
            raise NotFound("Agendamento não encontrado.")

        rec = Appointment.from_row(row)
        if self.mirror.is_pending(aid):
            logger.warning("appointments: alteração local de %s descartada; banco prevalece", aid)
        self.mirror.remember(rec)
        return rec, None

    def _query(
        self,
        fetch: Callable[[], List[Dict[str, Any]]],
        predicate: Callable[[Appointment], bool],
        sort_key: Callable[[Appointment], Any] = lambda a: a.created_at or "",
    ) -> StoreResult[List[Appointment]]:
        try:
            rows = fetch()
        except StoreUnavailable as e:
            logger.warning("appointments: consulta atendida pelo espelho local (%s)", e)
            return StoreResult.fallback(sorted(self.mirror.select(predicate), key=sort_key), e)
        merged = self.mirror.reconcile([Appointment.from_row(r) for r in rows], predicate)
        return StoreResult.ok(sorted(merged, key=sort_key))

    def _write(self, current: Appointment, updated: Appointment) -> Appointment:
        row = self.repo.update(current.id, updated.to_row(), expected_version=current.version)
        if row is None:
            raise ConcurrentModification(
                "Agendamento alterado por outro usuário. Recarregue e tente novamente."
            )
        return Appointment.from_row(row)

    def _push(self, rec: Appointment) -> Appointment:
        """Grava no banco um registro que estava só no espelho."""
        row = self.repo.by_id(rec.id)
        if row is None:
            return Appointment.from_row(self.repo.insert(rec.to_row()))
        saved = self.repo.update(rec.id, rec.to_row(), expected_version=rec.version)
        if saved is None:
            # alguém mexeu no banco enquanto estávamos offline: banco prevalece
            self.mirror.remember(Appointment.from_row(row))
            raise ConcurrentModification(
                "Agendamento alterado por outro usuário enquanto o banco estava indisponível."
            )
        return Appointment.from_row(saved)

    def _save(
        self,
        current: Appointment,
        updated: Appointment,
        cause: Optional[StoreUnavailable] = None,
    ) -> StoreResult[Appointment]:
        if cause is None:
            try:
                if self.mirror.is_pending(current.id):
                    saved = self._push(updated)
                else:
                    saved = self._write(current, updated)
            except StoreUnavailable as e:
                cause = e
            else:
                self.mirror.remember(saved)
                return StoreResult.ok(saved)

        logger.warning("appointments: %s gravado só no espelho local (%s)", updated.id, cause)
        self.mirror.remember_pending(updated)
        return StoreResult.fallback(updated, cause)

    # ------------------------------------------------------------------
    # Consultas
    # ------------------------------------------------------------------
    def get(self, aid: str) -> StoreResult[Appointment]:
        rec, cause = self._fetch(aid)
        return StoreResult.fallback(rec, cause) if cause else StoreResult.ok(rec)

    def list_all(self) -> StoreResult[List[Appointment]]:
        return self._query(self.repo.list, lambda a: True)

    def list_by_cpf(self, cpf: str) -> StoreResult[List[Appointment]]:
        digits = only_digits(cpf)
        return self._query(lambda: self.repo.by_field("cpf", digits), lambda a: a.cpf == digits)

    def list_pending(self) -> StoreResult[List[Appointment]]:
        return self._query(lambda: self.repo.by_field("status", PENDING), lambda a: a.status == PENDING)

    def list_for_operator(self, operator_id: str) -> StoreResult[List[Appointment]]:
        """Fila ativa do operador, em ordem de posição."""
        return self._query(
            lambda: self.repo.for_operator(operator_id),
            lambda a: a.operator_id == operator_id and a.status in ACTIVE_STATUSES,
            sort_key=lambda a: (a.queue_position is None, a.queue_position or 0, a.created_at or ""),
        )

    # ------------------------------------------------------------------
    # Criação / edição pelo cidadão
    # ------------------------------------------------------------------
    def create(self, payload: Dict[str, Any]) -> StoreResult[Appointment]:
        data = self._validated(payload)
        appt = Appointment(
            id=str(uuid.uuid4()),
            status=PENDING,
            created_at=self.clock().isoformat(),
            **data,
        )
        try:
            saved = Appointment.from_row(self.repo.insert(appt.to_row()))
        except StoreUnavailable as e:
            logger.warning("appointments: %s criado só no espelho local (%s)", appt.id, e)
            self.mirror.remember_pending(appt)
            return StoreResult.fallback(appt, e)
        self.mirror.remember(saved)
        logger.info("agendamento criado: %s", saved.id)
        return StoreResult.ok(saved)

    def update_details(self, aid: str, payload: Dict[str, Any]) -> StoreResult[Appointment]:
        current, cause = self._fetch(aid)
        if current.status != PENDING:
            raise InvalidState("Só é possível editar agendamentos em atribuição.")
        merged = {
            k: payload.get(k, getattr(current, k))
            for k in ("name", "cpf", "whatsapp", "birth_date", "guardian_cpf", "location_id")
        }
        return self._save(current, current.evolve(**self._validated(merged)), cause)

    # ------------------------------------------------------------------
    # Transições
    # ------------------------------------------------------------------
    def assign_operator(self, aid: str, operator_id: str) -> StoreResult[Appointment]:
        current, cause = self._fetch(aid)
        if current.status in TERMINAL_STATUSES:
            raise InvalidState("Agendamento finalizado ou cancelado não pode ser distribuído.")

        looked_up = self.users.by_id(operator_id)
        operator = looked_up.data
        if operator is None and looked_up.degraded:
            raise looked_up.cause
        if operator is None or not operator.is_staff or not operator.is_active:
            raise UnresolvedReference("Operador não encontrado.", field="operator_id")

        queue = self.list_for_operator(operator_id)
        ahead = sum(1 for a in queue.data if a.id != aid)
        updated = current.evolve(status=ASSIGNED, operator_id=operator_id, queue_position=ahead + 1)
        result = self._save(current, updated, cause or queue.cause)
        logger.info("agendamento %s atribuído a %s (posição %s)", aid, operator_id, ahead + 1)
        return result

    def start_service(self, aid: str) -> StoreResult[Appointment]:
        current, cause = self._fetch(aid)
        if current.status in TERMINAL_STATUSES:
            raise InvalidState("Agendamento finalizado ou cancelado não pode ser iniciado.")
        return self._save(current, current.evolve(status=IN_SERVICE), cause)

    def complete_service(self, aid: str, protocol: Optional[str]) -> StoreResult[Appointment]:
        if not protocol or not str(protocol).strip():
            raise MissingProtocol("Anexe o protocolo para concluir o atendimento.", field="protocol")
        current, cause = self._fetch(aid)
        if current.status == COMPLETED:
            raise InvalidState("Atendimento já concluído.")
        if current.status == CANCELLED:
            raise InvalidState("Agendamento cancelado não pode ser concluído.")
        # operador e posição ficam registrados no histórico
        return self._save(current, current.evolve(status=COMPLETED, protocol=protocol), cause)

    def abandon_service(self, aid: str, reason: Optional[str]) -> StoreResult[Appointment]:
        reason = (reason or "").strip()
        if not reason:
            raise MissingReason("Informe o motivo da desistência.", field="reason")
        current, cause = self._fetch(aid)
        if current.status in TERMINAL_STATUSES:
            raise InvalidState("Agendamento finalizado ou cancelado não pode ser devolvido.")
        updated = current.evolve(
            status=PENDING, operator_id=None, queue_position=None, abandon_reason=reason
        )
        logger.info("agendamento %s devolvido para atribuição", aid)
        return self._save(current, updated, cause)

    def cancel(self, aid: str) -> StoreResult[Appointment]:
        current, cause = self._fetch(aid)
        if current.status not in CANCELLABLE_STATUSES:
            raise InvalidState("Agendamento não pode mais ser cancelado.")
        return self._save(current, current.evolve(status=CANCELLED, queue_position=None), cause)

    def reactivate(self, aid: str) -> StoreResult[Appointment]:
        current, cause = self._fetch(aid)
        if current.status != CANCELLED:
            raise InvalidState("Apenas agendamentos cancelados podem ser reativados.")
        updated = current.evolve(
            status=PENDING, operator_id=None, queue_position=None, abandon_reason=None
        )
        return self._save(current, updated, cause)

    def delete(self, aid: str) -> StoreResult[None]:
        if self.mirror.is_pending(aid):
            try:
                self.repo.delete(aid)
            except StoreUnavailable as e:
                # nunca chegou ao banco; basta esquecer
                self.mirror.forget(aid)
                return StoreResult.fallback(None, e)
            self.mirror.forget(aid)
            return StoreResult.ok(None)

        # exclusão definitiva não é adiada: sem banco, falha
        if not self.repo.delete(aid):
            self.mirror.forget(aid)
            raise NotFound("Agendamento não encontrado.")
        self.mirror.forget(aid)
        logger.info("agendamento excluído: %s", aid)
        return StoreResult.ok(None)

    # ------------------------------------------------------------------
    # Sincronização do espelho
    # ------------------------------------------------------------------
    def flush_pending(self) -> int:
        """Tenta gravar no banco o que ficou só no espelho. Retorna quantos foram."""
        synced = 0
        for rec in self.mirror.pending():
            try:
                saved = self._push(rec)
            except StoreUnavailable:
                logger.warning("appointments: banco ainda indisponível; %d pendente(s)",
                               len(self.mirror.pending()))
                break
            except ConcurrentModification:
                logger.warning("appointments: alteração local de %s descartada", rec.id)
                continue
            self.mirror.remember(saved)
            synced += 1
        if synced:
            logger.info("appointments: %d registro(s) sincronizado(s)", synced)
        return synced
