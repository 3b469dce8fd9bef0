"""Main application entry point.

Runs the NiceGUI chat interface against the remote document assistant API.
Environment variables are loaded from .env file.
"""

import logging
import os
import sys

from dotenv import load_dotenv

# Load environment variables before any other imports that might need them
load_dotenv()

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


def main() -> None:
    """Application entry point.

    The context is created here and torn down on shutdown; every page
    renders from it.
    """
    from nicegui import app, ui

    from docassist.context import AppContext
    from docassist.ui.chat_page import register_pages

    context = AppContext()
    register_pages(context)

    app.on_startup(context.start)
    app.on_shutdown(context.shutdown)

    logger.info(f"Using API at {context.config.api_base_url}")
    ui.run(
        title="Document Assistant",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8080")),
        storage_secret=os.getenv("NICEGUI_STORAGE_SECRET", "docassist-secret"),
        reload=False,
    )


if __name__ in {"__main__", "__mp_main__"}:
    main()
