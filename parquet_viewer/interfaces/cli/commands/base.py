"""
Base command class for all CLI commands
"""

import argparse
import sys
from abc import ABC, abstractmethod
from typing import List, Optional

from ...dependencies import get_file_service
from ....services.file_service import ParquetFileService


class BaseCommand(ABC):
    """Base class for all commands"""

    name: Optional[str] = None
    description = "No description provided"

    def __init__(self, service: Optional[ParquetFileService] = None, stdout=None):
        self._service = service
        self.stdout = stdout or sys.stdout
        self.parser = self._create_parser()

    @property
    def service(self) -> ParquetFileService:
        if self._service is None:
            self._service = get_file_service()
        return self._service

    def _create_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog=self.name,
            description=self.description,
            add_help=False
        )
        self.add_arguments(parser)
        return parser

    def add_arguments(self, parser: argparse.ArgumentParser):
        """Override to add command arguments"""
        pass

    @abstractmethod
    def handle(self, *args, **kwargs):
        """Run the command with the parsed arguments"""
        pass

    def run(self, args: List[str]):
        parsed_args = self.parser.parse_args(args)
        return self.handle(**vars(parsed_args))

    def help(self):
        self.parser.print_help()

    def write(self, text: str):
        self.stdout.write(text + "\n")

    def print_success(self, message: str):
        print(f"\033[92m✓ {message}\033[0m", file=sys.stderr)

    def print_error(self, message: str):
        print(f"\033[91m✗ {message}\033[0m", file=sys.stderr)

    def print_info(self, message: str):
        print(f"\033[94mℹ {message}\033[0m", file=sys.stderr)
