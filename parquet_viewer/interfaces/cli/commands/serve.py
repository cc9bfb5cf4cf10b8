import argparse

import uvicorn

from .base import BaseCommand
from ....core.config import get_settings


class Command(BaseCommand):
    name = "serve"
    description = "Run the HTTP API with uvicorn"

    def add_arguments(self, parser: argparse.ArgumentParser):
        parser.add_argument("--host", default=None, help="Bind address (defaults to HOST)")
        parser.add_argument("--port", type=int, default=None, help="Bind port (defaults to PORT)")
        parser.add_argument("--reload", action="store_true", help="Reload on code changes")

    def handle(self, host=None, port=None, reload=False, **kwargs):
        settings = get_settings()
        host = host or settings.HOST
        port = port or settings.PORT

        self.print_info(f"Serving {settings.PROJECT_NAME} on http://{host}:{port}")
        uvicorn.run(
            "parquet_viewer.main:app",
            host=host,
            port=port,
            reload=reload,
            log_level=settings.logging.level.lower(),
        )
