from portal_shared.database.engine import (
    AsyncSessionFactory,
    Base,
    get_async_session_factory,
    get_session,
)
from portal_shared.database.redis_client import RedisClient, get_redis_client
from portal_shared.database.types import UTCDateTime, utcnow

__all__ = [
    "AsyncSessionFactory",
    "Base",
    "get_async_session_factory",
    "get_session",
    "RedisClient",
    "get_redis_client",
    "UTCDateTime",
    "utcnow",
]
