"""
Run the API with uvicorn: ``python -m artifact_backend``.
"""

from __future__ import annotations

import uvicorn

from artifact_backend.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "artifact_backend.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
