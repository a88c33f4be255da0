"""Route handlers for the consent exchange API."""
from src.server.routes.health import create_health_router
from src.server.routes.messages import create_messages_router
from src.server.routes.preferences import create_preferences_router
from src.server.routes.proximity import create_proximity_router
from src.server.routes.push_tokens import create_push_tokens_router
from src.server.routes.users import create_users_router
__all__ = [
    "create_health_router",
    "create_messages_router",
    "create_preferences_router",
    "create_proximity_router",
    "create_push_tokens_router",
    "create_users_router",
]
