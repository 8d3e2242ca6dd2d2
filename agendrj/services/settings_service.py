# agendrj/services/settings_service.py
import logging
from typing import Optional, Dict, Any
from urllib.parse import quote

from ..errors import StoreUnavailable
from ..models import AdminSettings, Appointment
from ..repositories.settings import SettingsRepository
from ..validators import normalize_whatsapp, only_digits

logger = logging.getLogger(__name__)


class SettingsService:
    def __init__(self, repo: Optional[SettingsRepository] = None) -> None:
        self.repo = repo or SettingsRepository()

    def get(self) -> AdminSettings:
        row = self.repo.get()
        if not row:
            return AdminSettings()
        return AdminSettings(
            whatsapp_number=row.get("whatsapp_number") or "",
            default_message=row.get("default_message") or AdminSettings.default_message,
        )

    def update(self, payload: Dict[str, Any]) -> AdminSettings:
        current = self.get()
        number = (payload.get("whatsapp_number") or "").strip()
        data = {
            "whatsapp_number": normalize_whatsapp(number, field="whatsapp_number") if number
            else current.whatsapp_number,
            "default_message": (payload.get("default_message") or "").strip() or current.default_message,
        }
        row = self.repo.save(data)
        return AdminSettings(**row)

    def notification_message(self, appt: Appointment, settings: Optional[AdminSettings] = None) -> str:
        if settings is None:
            try:
                settings = self.get()
            except StoreUnavailable:
                # o atendimento já foi registrado; a mensagem sai com o texto padrão
                logger.warning("admin_settings: banco indisponível, usando mensagem padrão")
                settings = AdminSettings()
        # só {name} é substituído; outras chaves ficam como estão
        return settings.default_message.replace("{name}", appt.name)

    def notification_link(self, appt: Appointment, settings: Optional[AdminSettings] = None) -> str:
        """Link wa.me para avisar o cidadão ao concluir o atendimento."""
        text = self.notification_message(appt, settings)
        return f"https://wa.me/{only_digits(appt.whatsapp)}?text={quote(text)}"
