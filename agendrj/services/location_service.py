# agendrj/services/location_service.py
import logging
import uuid
from typing import Optional, Dict, Any, List

from ..errors import InvalidInput, MissingRequiredField, NotFound, StoreUnavailable
from ..mirror import LocalMirror, StoreResult
from ..models import ServiceLocation
from ..repositories.service_locations import ServiceLocationRepository
from ..validators import only_digits

logger = logging.getLogger(__name__)

_REQUIRED = {
    "name": "Nome",
    "zip_code": "CEP",
    "street": "Logradouro",
    "number": "Número",
    "neighborhood": "Bairro",
    "city": "Cidade",
    "state": "UF",
}


def _clean(payload: Dict[str, Any]) -> Dict[str, Any]:
    data = {k: (str(payload.get(k) or "")).strip() for k in list(_REQUIRED) + ["complement"]}
    for key, label in _REQUIRED.items():
        if not data[key]:
            raise MissingRequiredField(f"{label} é obrigatório.", field=key)

    cep = only_digits(data["zip_code"])
    if len(cep) != 8:
        raise InvalidInput("CEP deve ter 8 dígitos.", field="zip_code")
    data["zip_code"] = f"{cep[:5]}-{cep[5:]}"

    uf = data["state"].upper()
    if len(uf) != 2 or not uf.isalpha():
        raise InvalidInput("UF deve ter 2 letras.", field="state")
    data["state"] = uf
    return data


class LocationService:
    def __init__(self, repo: Optional[ServiceLocationRepository] = None,
                 mirror: Optional[LocalMirror] = None) -> None:
        self.repo = repo or ServiceLocationRepository()
        self.mirror = mirror if mirror is not None else LocalMirror("service_locations")

    # -------
    # Leitura
    # -------
    def list(self, q: str = "") -> StoreResult[List[ServiceLocation]]:
        needle = (q or "").strip().lower()

        def match(loc: ServiceLocation) -> bool:
            if not needle:
                return True
            return any(needle in (v or "").lower() for v in (loc.name, loc.city, loc.neighborhood))

        try:
            rows = self.repo.list(needle)
        except StoreUnavailable as e:
            logger.warning("service_locations: listagem pelo espelho local (%s)", e)
            locs = sorted(self.mirror.select(match), key=lambda l: (l.city, l.name))
            return StoreResult.fallback(locs, e)
        return StoreResult.ok(self.mirror.reconcile([ServiceLocation.from_row(r) for r in rows], match))

    def list_by_city(self, city: str) -> StoreResult[List[ServiceLocation]]:
        wanted = (city or "").strip().lower()

        def match(loc: ServiceLocation) -> bool:
            return loc.city.lower() == wanted

        try:
            rows = self.repo.by_city(wanted)
        except StoreUnavailable as e:
            logger.warning("service_locations: busca por cidade pelo espelho local (%s)", e)
            return StoreResult.fallback(self.mirror.select(match), e)
        return StoreResult.ok(self.mirror.reconcile([ServiceLocation.from_row(r) for r in rows], match))

    def by_id(self, lid: str) -> StoreResult[Optional[ServiceLocation]]:
        """Busca exata por id; não tenta casar ids parecidos."""
        try:
            row = self.repo.by_id(lid)
        except StoreUnavailable as e:
            logger.warning("service_locations: %s lido do espelho local", lid)
            return StoreResult.fallback(self.mirror.get(lid), e)
        if row is None:
            self.mirror.forget(lid)
            return StoreResult.ok(None)
        loc = ServiceLocation.from_row(row)
        self.mirror.remember(loc)
        return StoreResult.ok(loc)

    def get(self, lid: str) -> ServiceLocation:
        loc = self.by_id(lid).data
        if loc is None:
            raise NotFound("Local de atendimento não encontrado.")
        return loc

    # -------
    # Escrita (só master; sem fallback)
    # -------
    def create(self, payload: Dict[str, Any]) -> ServiceLocation:
        data = _clean(payload)
        data["id"] = str(uuid.uuid4())
        loc = ServiceLocation.from_row(self.repo.create(data))
        self.mirror.remember(loc)
        logger.info("local de atendimento criado: %s", loc.id)
        return loc

    def update(self, lid: str, payload: Dict[str, Any]) -> ServiceLocation:
        row = self.repo.update(lid, _clean(payload))
        if row is None:
            raise NotFound("Local de atendimento não encontrado.")
        loc = ServiceLocation.from_row(row)
        self.mirror.remember(loc)
        return loc

    def delete(self, lid: str) -> None:
        # agendamentos que apontam para o local ficam órfãos
        if not self.repo.delete(lid):
            raise NotFound("Local de atendimento não encontrado.")
        self.mirror.forget(lid)
        logger.info("local de atendimento removido: %s", lid)
