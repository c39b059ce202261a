"""Application entry point.

Usage:
    # Development with auto-reload
    uvicorn recipe_keeper.main:app --reload

    # Production
    uvicorn recipe_keeper.main:app --host 0.0.0.0 --port 8000 --workers 4
"""

from recipe_keeper.factory import create_app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    from recipe_keeper.core.config import get_settings

    settings = get_settings()

    uvicorn.run(
        "recipe_keeper.main:app",
        host=settings.server.host,
        port=settings.server.port,
        reload=settings.is_development,
        log_level=settings.logging.level.lower(),
    )
