# app/__main__.py
"""Run the gateway: `python -m app` or the `files-gateway` script."""
import uvicorn

from app.config import settings


def run() -> None:
    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.PORT, log_level=settings.LOG_LEVEL.lower())


if __name__ == "__main__":
    run()
