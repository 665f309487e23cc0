from typing import Any, Dict, List

from app.models.notification import NotificationPreference


class NotificationPreferenceRepository:

    async def find_by_event_type(self, store_id: int, event_type: str) -> List[NotificationPreference]:
        return await NotificationPreference.filter(store_id=store_id, event_type=event_type).order_by("id")

    async def create(self, store_id: int, data: Dict[str, Any]) -> NotificationPreference:
        return await NotificationPreference.create(store_id=store_id, **data)
