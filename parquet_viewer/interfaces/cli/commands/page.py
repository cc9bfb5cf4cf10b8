import argparse

from .base import BaseCommand
from ....core.constants import DEFAULT_PAGE_SIZE
from ....schemas.parquet import RowWindowResponse


class Command(BaseCommand):
    name = "page"
    description = "Print one page of rows as JSON"

    def add_arguments(self, parser: argparse.ArgumentParser):
        parser.add_argument("file_id", help="File id from the listing")
        parser.add_argument("--page", type=int, default=0, help="Zero-based page number")
        parser.add_argument("--page-size", type=int, default=DEFAULT_PAGE_SIZE, help="Rows per page")

    def handle(self, file_id, page=0, page_size=DEFAULT_PAGE_SIZE, **kwargs):
        window = self.service.get_page(file_id, page, page_size)
        self.write(RowWindowResponse.from_domain(window).model_dump_json(by_alias=True, indent=2))
