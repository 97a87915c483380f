"""Run the API server: ``python -m asteroids``."""

import uvicorn

from .config import get_settings


def main():
    settings = get_settings()
    uvicorn.run(
        "asteroids.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
