"""Entry point for running the application with uvicorn."""

import uvicorn

from haul_ops.config import get_settings


def main() -> None:
    """Run the application."""
    settings = get_settings()
    uvicorn.run(
        "haul_ops.api.app:create_app",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )


if __name__ == "__main__":
    main()
