from __future__ import annotations

import uvicorn
from devkit.observability import configure_logging

from provider_directory.config import load_provider_directory_settings


def main() -> None:
    settings = load_provider_directory_settings()
    configure_logging(settings.LOG_LEVEL)
    uvicorn.run(
        "provider_directory.monitoring.app:app",
        host=settings.PROVIDER_DIRECTORY_HOST,
        port=settings.PROVIDER_DIRECTORY_PORT,
        reload=False,
    )


if __name__ == "__main__":
    main()
