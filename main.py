#   Entry point of the test report dashboard backend
#
#   Tasks of this script:
#       1. Loads the settings from the environment
#       2. Starts the FastAPI application with uvicorn

from __future__ import annotations

import uvicorn

from report_dashboard.config import load_settings
from report_dashboard.services.logging_service import logging_service


def main() -> None:
    settings = load_settings()
    logging_service.configure(settings.log_level, settings.log_file)
    uvicorn.run(
        "report_dashboard.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
