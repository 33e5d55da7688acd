"""Web server entry point for the inventory web application"""

import os

import uvicorn

# Load environment variables from .env file BEFORE importing anything else
from dotenv import load_dotenv
load_dotenv()

from web.main import create_app

app = create_app()


if __name__ == "__main__":
    host = os.getenv("WEB_HOST", "127.0.0.1")
    port = int(os.getenv("WEB_PORT", "8000"))
    environment = os.getenv("ENVIRONMENT", "development").lower()

    print(f"Starting Inventario in {environment} mode on {host}:{port}")

    # Sessions and carts live in process memory: a single worker keeps them consistent
    uvicorn.run(
        app,
        host=host,
        port=port,
        workers=1,
        log_level="info",
        access_log=True,
    )
