"""Main entry point for running the FastAPI application with auto-reload."""
import uvicorn

from cvmatch.config import settings

if __name__ == "__main__":
    print(f"Starting {settings.app_name} v{settings.version}")
    print(f"Debug mode: {settings.debug}")
    print(f"Data directory: {settings.storage.data_dir.resolve()}")
    print(f"AI extraction: {'Enabled' if settings.extraction.api_key else 'Disabled'}")
    print(f"Auto-reload: {'Enabled' if settings.debug else 'Disabled'}")
    print("-" * 50)

    uvicorn.run(
        "cvmatch.api:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        reload_dirs=["cvmatch", "ai", "config"] if settings.debug else None,
        reload_includes=["*.py"] if settings.debug else None,
        log_level=settings.logging.level.lower(),
    )
