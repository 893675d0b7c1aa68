from pathlib import Path

from django.core.management.base import BaseCommand, CommandError

from fuel_log.normalize import parse_raw
from fuel_log.storage import replace_state


class Command(BaseCommand):
    help = "Load an app state JSON file (current or legacy shape) into the storage slot, replacing it."

    def add_arguments(self, parser):
        parser.add_argument("path", type=Path, help="JSON file exported from the browser app or export_state")
        parser.add_argument("--key", default=None, help="Storage slot to write (defaults to FUEL_LOG_STATE_KEY)")

    def handle(self, *args, **options):
        path = options["path"]
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise CommandError(f"Cannot read {path}: {exc}") from exc
        if parse_raw(raw) is None:
            raise CommandError(f"{path} does not hold a JSON object")

        state = replace_state(raw, key=options["key"])
        self.stdout.write(
            self.style.SUCCESS(
                f"Imported {len(state.work_logs)} work logs, {len(state.drivers)} drivers, "
                f"{len(state.trucks)} trucks and {len(state.trailers)} trailers"
            )
        )
