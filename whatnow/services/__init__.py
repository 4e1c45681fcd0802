from whatnow.services import (
    analytics_service,
    group_service,
    profile_service,
    settlement_service,
    swipe_service,
    task_service,
)


__all__ = [
    "analytics_service",
    "group_service",
    "profile_service",
    "settlement_service",
    "swipe_service",
    "task_service",
]
