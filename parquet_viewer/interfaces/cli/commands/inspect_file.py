import argparse

from .base import BaseCommand
from ....schemas.parquet import MetadataResponse


class Command(BaseCommand):
    name = "inspect"
    description = "Print a file's schema and metadata as JSON"

    def add_arguments(self, parser: argparse.ArgumentParser):
        parser.add_argument("file_id", help="File id from the listing")

    def handle(self, file_id, **kwargs):
        metadata = self.service.get_metadata(file_id)
        self.write(MetadataResponse.from_domain(metadata).model_dump_json(by_alias=True, indent=2))
