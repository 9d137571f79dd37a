"""
Main entry point for the site mapper service.
"""

from dotenv import load_dotenv

from .config import MapperSettings
from .logging import setup_logger

# Load environment variables
load_dotenv(override=True)

logger = setup_logger("site_mapper")


def run_server():
    """Run the FastAPI server."""
    import uvicorn

    from .api import app

    settings: MapperSettings = app.state.settings
    logger.info(f"Starting site mapper API on {settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run_server()
