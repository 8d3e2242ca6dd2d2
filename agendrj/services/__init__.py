# agendrj/services/__init__.py
from dataclasses import dataclass

from .analytics_service import AnalyticsService
from .appointment_service import AppointmentService
from .location_service import LocationService
from .settings_service import SettingsService
from .user_service import UserService


@dataclass
class Services:
    """Serviços de um processo; cada um dono do seu espelho local."""

    users: UserService
    locations: LocationService
    appointments: AppointmentService
    analytics: AnalyticsService
    settings: SettingsService


def build_services(config) -> Services:
    users = UserService()
    locations = LocationService()
    appointments = AppointmentService(
        locations=locations,
        users=users,
        guardian_min_age=config.get("GUARDIAN_MIN_AGE", 15),
    )
    return Services(
        users=users,
        locations=locations,
        appointments=appointments,
        analytics=AnalyticsService(),
        settings=SettingsService(),
    )
