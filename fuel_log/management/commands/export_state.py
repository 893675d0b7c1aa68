import json
from pathlib import Path

from django.core.management.base import BaseCommand

from fuel_log.storage import load_state


class Command(BaseCommand):
    help = "Write the stored app state as JSON to a file, or to stdout."

    def add_arguments(self, parser):
        parser.add_argument("path", nargs="?", type=Path, default=None)
        parser.add_argument("--key", default=None, help="Storage slot to read (defaults to FUEL_LOG_STATE_KEY)")

    def handle(self, *args, **options):
        text = json.dumps(load_state(options["key"]).as_dict(), indent=2, ensure_ascii=False)
        path = options["path"]
        if path is None:
            self.stdout.write(text)
            return
        path.write_text(text + "\n", encoding="utf-8")
        self.stdout.write(self.style.SUCCESS(f"Wrote {path}"))
