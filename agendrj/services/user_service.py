# agendrj/services/user_service.py
import logging
import uuid
from typing import Optional, Dict, Any, List

from passlib.hash import pbkdf2_sha256

from ..errors import (
    AuthenticationFailed, DuplicateAccount, InvalidInput, MissingRequiredField,
    NotFound, StoreUnavailable,
)
from ..mirror import LocalMirror, StoreResult
from ..models import User, ROLES, STAFF_ROLES
from ..repositories.users import UserRepository
from ..validators import normalize_cpf, normalize_whatsapp, parse_date

logger = logging.getLogger(__name__)

MIN_PASSWORD = 6


def hash_password(password: str) -> str:
    return pbkdf2_sha256.hash(password)


def _profile(payload: Dict[str, Any]) -> Dict[str, Any]:
    name = (payload.get("name") or "").strip()
    email = (payload.get("email") or "").strip().lower()
    if not name:
        raise MissingRequiredField("Nome é obrigatório.", field="name")
    if "@" not in email:
        raise InvalidInput("E-mail inválido.", field="email")

    whatsapp = (payload.get("whatsapp") or "").strip()
    if whatsapp:
        whatsapp = normalize_whatsapp(whatsapp)

    birth = (payload.get("birth_date") or "").strip()
    if birth:
        birth = parse_date(birth).isoformat()

    return {"name": name, "email": email, "whatsapp": whatsapp, "birth_date": birth}


class UserService:
    def __init__(self, repo: Optional[UserRepository] = None,
                 mirror: Optional[LocalMirror] = None):
        self.users = repo or UserRepository()
        self.mirror = mirror if mirror is not None else LocalMirror("users")

    # ---- Autenticação / Cadastro ----
    def register(self, payload: Dict[str, Any]) -> User:
        """Cadastro público: sempre com papel 'user'."""
        data = _profile(payload)
        data["cpf"] = normalize_cpf(payload.get("cpf"))
        password = payload.get("password") or ""
        if len(password) < MIN_PASSWORD:
            raise InvalidInput(f"Senha deve ter ao menos {MIN_PASSWORD} caracteres.", field="password")

        if self.users.exists_email_or_cpf(data["email"], data["cpf"]):
            raise DuplicateAccount("Usuário já cadastrado com este e-mail ou CPF.")

        data.update({
            "id": str(uuid.uuid4()),
            "role": "user",
            "password_hash": hash_password(password),
        })
        user = User.from_row(self.users.create(data))
        self.mirror.remember(user)
        logger.info("usuário cadastrado: %s", user.id)
        return user

    def authenticate(self, email: str, password: str) -> User:
        row = self.users.by_email((email or "").strip())
        if not row or not row.get("password_hash") \
                or not pbkdf2_sha256.verify(password or "", row["password_hash"]):
            raise AuthenticationFailed("Usuário ou senha inválidos.")
        user = User.from_row(row)
        if not user.is_active:
            raise AuthenticationFailed("Usuário inativo.")
        user.password_hash = None
        self.mirror.remember(user)
        return user

    # ---- Consulta ----
    def by_id(self, user_id: str) -> StoreResult[Optional[User]]:
        try:
            row = self.users.by_id(user_id)
        except StoreUnavailable as e:
            logger.warning("users: %s lido do espelho local", user_id)
            return StoreResult.fallback(self.mirror.get(user_id), e)
        if row is None:
            self.mirror.forget(user_id)
            return StoreResult.ok(None)
        user = User.from_row(row)
        self.mirror.remember(user)
        return StoreResult.ok(user)

    def get(self, user_id: str) -> User:
        user = self.by_id(user_id).data
        if user is None:
            raise NotFound("Usuário não encontrado.")
        return user

    def list_users(self) -> List[User]:
        users = [User.from_row(r) for r in self.users.list()]
        self.mirror.remember_many(users)
        return users

    def operators(self) -> List[User]:
        """Quem pode receber agendamentos (operator e master ativos)."""
        users = [User.from_row(r) for r in self.users.in_roles(sorted(STAFF_ROLES))]
        self.mirror.remember_many(users)
        return [u for u in users if u.is_active]

    # ---- Administração ----
    def update_profile(self, user_id: str, payload: Dict[str, Any]) -> User:
        row = self.users.update(user_id, _profile(payload))
        if row is None:
            raise NotFound("Usuário não encontrado.")
        user = User.from_row(row)
        self.mirror.remember(user)
        return user

    def set_role(self, user_id: str, role: str) -> User:
        if role not in ROLES:
            raise InvalidInput("Papel inválido.", field="role")
        row = self.users.set_role(user_id, role)
        if row is None:
            raise NotFound("Usuário não encontrado.")
        user = User.from_row(row)
        self.mirror.remember(user)
        logger.info("papel de %s alterado para %s", user_id, role)
        return user

    def set_active(self, user_id: str, active: bool) -> User:
        row = self.users.set_active(user_id, bool(active))
        if row is None:
            raise NotFound("Usuário não encontrado.")
        user = User.from_row(row)
        self.mirror.remember(user)
        logger.info("usuário %s %s", user_id, "ativado" if active else "inativado")
        return user

    def delete(self, user_id: str) -> None:
        if not self.users.delete(user_id):
            raise NotFound("Usuário não encontrado.")
        self.mirror.forget(user_id)
