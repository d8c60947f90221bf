"""Run the backend with uvicorn: ``python -m chainwatch``."""

import uvicorn

from chainwatch.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "chainwatch.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
