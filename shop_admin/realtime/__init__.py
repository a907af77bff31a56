# shop_admin/realtime/__init__.py
from .redis_service import RedisService
from .events import RealtimeEvents

redis_service = RedisService()
realtime_events = RealtimeEvents(redis_service)

__all__ = ["RedisService", "RealtimeEvents", "redis_service", "realtime_events"]
