from .base import BaseCommand


class Command(BaseCommand):
    name = "list"
    description = "List Parquet files in the configured store"

    def handle(self, **kwargs):
        entries = self.service.list_files()
        if not entries:
            self.print_info("No Parquet files found")
            return

        self.write(f"{'ID':<6} {'SIZE':>12}  {'LAST MODIFIED':<25} PATH")
        for entry in entries:
            self.write(
                f"{entry.id:<6} {entry.size_bytes:>12}  "
                f"{entry.last_modified.isoformat():<25} {entry.remote_path}"
            )
