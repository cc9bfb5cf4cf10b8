import argparse
import os
import tempfile

from .base import BaseCommand


class Command(BaseCommand):
    name = "export"
    description = "Export a whole file as CSV or XLSX"

    def add_arguments(self, parser: argparse.ArgumentParser):
        parser.add_argument("file_id", help="File id from the listing")
        parser.add_argument("--format", default="csv", help="csv, excel, xlsx or spreadsheet")
        parser.add_argument("--output", "-o", default=None, help="Output path (defaults to the suggested filename)")

    def handle(self, file_id, format="csv", output=None, **kwargs):
        directory = os.path.dirname(os.path.abspath(output)) if output else os.getcwd()

        # Written next to the target and moved into place only when complete
        fd, partial = tempfile.mkstemp(prefix=".export-", dir=directory)
        try:
            with os.fdopen(fd, "wb") as sink:
                filename = self.service.export(file_id, format, sink)
            target = output or os.path.join(directory, filename)
            os.replace(partial, target)
        except BaseException:
            if os.path.exists(partial):
                os.unlink(partial)
            raise

        self.print_success(f"Exported file {file_id} to {target}")
        return target
