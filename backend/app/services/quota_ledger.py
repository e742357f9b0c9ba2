# backend/app/services/quota_ledger.py
"""
Per-user, per-feature usage counters that gate the AI-backed operations.

Usage is check -> run the operation -> commit. The check is a plain read and
the commit an atomic $inc, so two concurrent requests from one user can both
pass the check and push the counter one past the limit. The limits are soft.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from app.core.config import Settings
from app.core.errors import QuotaExceededError
from app.models import FeatureUsage

logger = logging.getLogger(__name__)


class Feature(str, Enum):
    DOCTOR_SEARCH = "doctor_search"
    DIET_PLAN = "diet_plan"
    PRESCRIPTION_SCAN = "prescription_scan"


COUNTER_FIELDS = {
    Feature.DOCTOR_SEARCH: "searchCount",
    Feature.DIET_PLAN: "dietPlanCount",
    Feature.PRESCRIPTION_SCAN: "prescriptionScanCount",
}

LIMIT_MESSAGES = {
    Feature.DOCTOR_SEARCH: "You have reached your maximum search limit.",
    Feature.DIET_PLAN: "You have reached your maximum diet plan generation limit.",
    Feature.PRESCRIPTION_SCAN: "You have reached your maximum scan limit.",
}


@dataclass
class QuotaCheck:
    allowed: bool
    current_count: int


def limits_from_settings(settings: Settings) -> Dict[Feature, int]:
    return {
        Feature.DOCTOR_SEARCH: settings.DOCTOR_SEARCH_LIMIT,
        Feature.DIET_PLAN: settings.DIET_PLAN_LIMIT,
        Feature.PRESCRIPTION_SCAN: settings.PRESCRIPTION_SCAN_LIMIT,
    }


class QuotaLedger:
    def __init__(self, users, limits: Dict[Feature, int]):
        self.users = users
        self.limits = limits

    def limit_for(self, feature: Feature) -> int:
        return self.limits[feature]

    async def current_count(self, user_id: str, feature: Feature) -> int:
        user = await self.users.get(user_id)
        if not user:
            return 0
        return int(user.get(COUNTER_FIELDS[feature]) or 0)

    async def check_and_reserve(
        self, user_id: str, feature: Feature, limit: Optional[int] = None
    ) -> QuotaCheck:
        """Read the counter and compare it with the limit. Never mutates."""
        if limit is None:
            limit = self.limit_for(feature)
        count = await self.current_count(user_id, feature)
        return QuotaCheck(allowed=count < limit, current_count=count)

    async def ensure_allowed(self, user_id: str, feature: Feature) -> QuotaCheck:
        check = await self.check_and_reserve(user_id, feature)
        if not check.allowed:
            logger.info(
                "User %s hit the %s limit (%d uses)", user_id, feature.value, check.current_count
            )
            raise QuotaExceededError(LIMIT_MESSAGES[feature], check.current_count)
        return check

    async def commit(
        self, user_id: str, feature: Feature, record: Optional[Dict[str, Any]] = None
    ) -> int:
        """Consume one use. Creates the user record if it does not exist yet.

        Fields in `record` are written in the same update as the counter.
        """
        count = await self.users.increment(user_id, COUNTER_FIELDS[feature], record)
        logger.info("User %s %s count is now %d", user_id, feature.value, count)
        return count

    async def usage(self, user_id: str) -> Dict[str, FeatureUsage]:
        user = await self.users.get(user_id) or {}
        report = {}
        for feature in Feature:
            used = int(user.get(COUNTER_FIELDS[feature]) or 0)
            limit = self.limit_for(feature)
            report[feature.value] = FeatureUsage(
                used=used, limit=limit, remaining=max(0, limit - used)
            )
        return report
