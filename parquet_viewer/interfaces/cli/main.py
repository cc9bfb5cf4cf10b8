#!/usr/bin/env python3
"""
Parquet Viewer CLI
Entry point for all CLI commands
"""

import argparse
import importlib
import pkgutil
import sys
from typing import Dict, List, Optional, Type

from parquet_viewer.core.exceptions import AppException
from parquet_viewer.core.logging import setup_logging
from parquet_viewer.interfaces.cli import commands as commands_package
from parquet_viewer.interfaces.cli.commands.base import BaseCommand
from parquet_viewer.services.file_service import ParquetFileService


class CLIManager:
    def __init__(self, service: Optional[ParquetFileService] = None):
        self.service = service
        self.available_commands = self._discover_commands()

    def _discover_commands(self) -> Dict[str, Type[BaseCommand]]:
        """Discover every module in the commands package that defines a Command class"""
        commands = {}

        for module_info in pkgutil.iter_modules(commands_package.__path__):
            if module_info.name.startswith("_") or module_info.name == "base":
                continue

            module = importlib.import_module(f"{commands_package.__name__}.{module_info.name}")
            command_class = getattr(module, "Command", None)
            if command_class is not None:
                commands[command_class.name or module_info.name] = command_class

        return commands

    def create(self, command_name: str) -> BaseCommand:
        return self.available_commands[command_name](service=self.service)

    def list_commands(self):
        print("Available commands:")
        print("=" * 40)

        if not self.available_commands:
            print("No commands found.")
            return

        for name, command_class in sorted(self.available_commands.items()):
            print(f"  {name:<20} {command_class.description}")

    def run_command(self, command_name: str, args: List[str]) -> int:
        """Run one command; return the process exit code"""
        if command_name not in self.available_commands:
            print(f"Unknown command: {command_name}", file=sys.stderr)
            print("Use 'parquet-viewer help' to see available commands.", file=sys.stderr)
            return 1

        command = self.create(command_name)
        try:
            command.run(args)
        except AppException as e:
            command.print_error(f"{e.error_code}: {e.message}")
            return 1
        return 0


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(
        description="Parquet Viewer CLI",
        add_help=False
    )
    parser.add_argument('command', nargs='?', help='Command to run')
    parser.add_argument('args', nargs='*', help='Arguments for the command')

    # Command-specific options are passed through untouched
    args, unknown = parser.parse_known_args(argv)
    all_args = args.args + unknown

    cli_manager = CLIManager()

    if not args.command or args.command == 'help':
        if all_args:
            command_name = all_args[0]
            if command_name in cli_manager.available_commands:
                cli_manager.create(command_name).help()
            else:
                print(f"Unknown command: {command_name}")
        else:
            print("Parquet Viewer CLI")
            print("Usage: parquet-viewer <command> [args...]")
            print()
            cli_manager.list_commands()
            print()
            print("Use 'parquet-viewer help <command>' for help on a specific command.")
        return

    setup_logging(stream=sys.stderr)
    sys.exit(cli_manager.run_command(args.command, all_args))


if __name__ == "__main__":
    main()
