"""Run the service with uvicorn: python -m authcore"""

import uvicorn

from authcore.core.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "authcore.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level="debug" if settings.DEBUG else "info",
    )


if __name__ == "__main__":
    main()
