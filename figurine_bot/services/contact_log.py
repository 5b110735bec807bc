"""
Append-only CSV of customers who reached the bot: (phone, display name).

One row per phone; later messages from a logged phone are ignored.
"""

import csv
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

CONTACTS_FILENAME = "contacts.csv"
CSV_HEADER = ["phone", "name"]


class ContactLog:
    def __init__(self, path: Path):
        self.path = Path(path)
        self._seen: set[str] = set()
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            with open(self.path, newline="", encoding="utf-8") as f:
                for row in csv.DictReader(f):
                    if row.get("phone"):
                        self._seen.add(row["phone"])
        except OSError as e:
            logger.error(f"Failed to read contact log {self.path}: {e}")

    def record(self, phone: str, name: str | None) -> bool:
        """Append (phone, name) unless the phone is already logged. Returns True if a row was written."""
        if not phone or phone in self._seen:
            return False

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            write_header = not self.path.exists() or self.path.stat().st_size == 0
            with open(self.path, "a", newline="", encoding="utf-8") as f:
                writer = csv.writer(f)
                if write_header:
                    writer.writerow(CSV_HEADER)
                writer.writerow([phone, name or ""])
        except OSError as e:
            logger.error(f"Failed to append {phone} to contact log: {e}")
            return False

        self._seen.add(phone)
        return True

    def __contains__(self, phone: str) -> bool:
        return phone in self._seen
