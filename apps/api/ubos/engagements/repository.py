from __future__ import annotations

from ubos.engagements.models import Engagement
from ubos.platform.tenancy.repository import ScopedRepository


class EngagementRepository(ScopedRepository[Engagement]):
    model = Engagement
    resource = "engagements.engagement"
