# agendrj/services/analytics_service.py
from typing import Any, Dict, Optional

from ..models import ACTIVE_STATUSES
from ..repositories.analytics import AnalyticsRepository


class AnalyticsService:
    def __init__(self, repo: Optional[AnalyticsRepository] = None):
        self.repo = repo or AnalyticsRepository()

    def stats(self) -> Dict[str, Any]:
        by_status = {r["status"]: int(r["qty"]) for r in self.repo.count_by_status()}

        return {
            "total_appointments": sum(by_status.values()),
            "by_status": {
                "pending": by_status.get("pending", 0),
                # waiting/assigned/in_service contam juntos como "em atendimento"
                "in_progress": sum(by_status.get(s, 0) for s in ACTIVE_STATUSES),
                "completed": by_status.get("completed", 0),
                "cancelled": by_status.get("cancelled", 0),
            },
            "by_city": {r["city"]: int(r["qty"]) for r in self.repo.count_by_city()},
            "by_operator": {r["name"]: int(r["qty"]) for r in self.repo.count_by_operator()},
        }
