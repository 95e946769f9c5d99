from notion_cms.gateway.api.v1.media import router as media_router
from notion_cms.gateway.api.v1.webhooks import router as webhooks_router

__all__ = ["routers"]
routers = [webhooks_router, media_router]
