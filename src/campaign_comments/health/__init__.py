from campaign_comments.health.router import router


__all__ = ["router"]
