"""Run the donor finder with uvicorn."""

import uvicorn

from .config import settings


def main() -> None:
    uvicorn.run(
        "donor_finder.app:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
