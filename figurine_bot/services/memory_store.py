"""
Free-text memory - answers taught by admins over chat.

An admin phone sends "ensinar: pergunta = resposta" and later customers who
send the same (normalized) question get the stored answer.
"""

import json
import logging
import re
from pathlib import Path

from figurine_bot.services.text_normalization import normalize_command, normalize_text

logger = logging.getLogger(__name__)

MEMORY_FILENAME = "memory.json"

_TEACH_PREFIXES = ("ensinar:", "ensinar", "aprenda:", "aprenda")
_TEACH_SEPARATOR = re.compile(r"^(.*?)(?:=>|->|=)(.*)$", re.DOTALL)


def is_teach_command(text: str) -> bool:
    return normalize_command(text).startswith(("ensinar", "aprenda"))


def parse_teach_command(text: str) -> tuple[str, str] | None:
    """
    Parse "ensinar: pergunta = resposta" into (normalized question, answer).

    Accepted separators: "=", "=>", "->". Returns None if either side is empty.
    """
    rest = normalize_text(text)
    lowered = rest.lower()
    for prefix in _TEACH_PREFIXES:
        if lowered.startswith(prefix):
            rest = rest[len(prefix):].strip()
            break
    else:
        return None

    match = _TEACH_SEPARATOR.match(rest)
    if not match:
        return None

    question = normalize_command(match.group(1))
    answer = match.group(2).strip()
    if not question or not answer:
        return None
    return question, answer


class MemoryStore:
    """{"global": {question: answer}} persisted as JSON, rewritten on every change."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._data: dict[str, dict[str, str]] = {"global": {}}
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
            if isinstance(data, dict):
                data.setdefault("global", {})
                self._data = data
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load memory from {self.path}: {e}")

    def get_answer(self, text: str) -> str | None:
        return self._data["global"].get(normalize_command(text))

    def set_answer(self, question: str, answer: str) -> None:
        self._data["global"][normalize_command(question)] = answer
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(self._data, f, indent=2, ensure_ascii=False)
        logger.info(f"Memory updated: {question!r}")
