"""Run the API with uvicorn."""

import uvicorn

from campaign_comments.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "campaign_comments.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        log_config=None,
    )


if __name__ == "__main__":
    main()
