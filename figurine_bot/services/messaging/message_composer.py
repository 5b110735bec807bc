"""
Message composer - loads customer-facing copy from YAML and the assistant
system prompt from text, reloading either file when it changes on disk.

Packaged copy (figurine_bot/copy) is always loaded as the base; a configured
prompts directory overlays it key by key, so the shop can edit wording in
production without a deploy. Keys holding a list are variants: one is picked
deterministically per phone (same customer always gets the same variant).
"""

import hashlib
import logging
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

COPY_DIR = Path(__file__).resolve().parent.parent.parent / "copy"
REPLIES_FILENAME = "replies.yml"
SYSTEM_PROMPT_FILENAME = "system.txt"
FALLBACK_SYSTEM_PROMPT = "Você é o atendente da 3DFANS no WhatsApp."


class _WatchedFile:
    """A file whose parsed contents are refreshed whenever its mtime changes."""

    def __init__(self, path: Path, parse, empty):
        self.path = path
        self._parse = parse
        self._empty = empty
        self._mtime: float | None = None
        self.value = empty

    def refresh(self) -> bool:
        try:
            mtime = self.path.stat().st_mtime
        except OSError:
            if self._mtime is not None:
                logger.warning(f"Script file disappeared: {self.path}")
            self._mtime = None
            self.value = self._empty
            return False

        if mtime == self._mtime:
            return False

        try:
            with open(self.path, encoding="utf-8") as f:
                self.value = self._parse(f) or self._empty
            logger.info(f"Loaded script file {self.path}")
        except Exception as e:
            logger.error(f"Failed to load script file {self.path}: {e}")
            self.value = self._empty
        self._mtime = mtime
        return True


def _read_text(f) -> str:
    return f.read().strip()


class MessageComposer:
    """Composes messages from YAML copy with hot reload and per-phone variant selection."""

    def __init__(self, prompts_dir: Path | str | None = None):
        self._files = [_WatchedFile(COPY_DIR / REPLIES_FILENAME, yaml.safe_load, {})]
        self._system_files = [_WatchedFile(COPY_DIR / SYSTEM_PROMPT_FILENAME, _read_text, "")]

        if prompts_dir is not None and Path(prompts_dir).resolve() != COPY_DIR:
            prompts_dir = Path(prompts_dir)
            self._files.append(_WatchedFile(prompts_dir / REPLIES_FILENAME, yaml.safe_load, {}))
            self._system_files.append(
                _WatchedFile(prompts_dir / SYSTEM_PROMPT_FILENAME, _read_text, "")
            )

        self._copy_data: dict[str, Any] = {}
        self.reload_if_changed(force=True)

    def reload_if_changed(self, force: bool = False) -> bool:
        changed = False
        for watched in self._files + self._system_files:
            changed = watched.refresh() or changed
        if changed or force:
            merged: dict[str, Any] = {}
            for watched in self._files:
                if isinstance(watched.value, dict):
                    merged.update(watched.value)
            self._copy_data = merged
        return changed

    @property
    def system_prompt(self) -> str:
        self.reload_if_changed()
        # Overlay wins when it has content
        for watched in reversed(self._system_files):
            if watched.value:
                return watched.value
        return FALLBACK_SYSTEM_PROMPT

    def _select_variant(self, key: str, phone: str | None = None) -> str:
        if key not in self._copy_data:
            logger.warning(f"Message key not found: {key}")
            return f"[MISSING: {key}]"

        variants = self._copy_data[key]
        if not isinstance(variants, list):
            return str(variants)
        if not variants:
            logger.warning(f"No variants found for key: {key}")
            return ""

        if phone:
            hash_value = int(hashlib.md5(f"{key}:{phone}".encode()).hexdigest(), 16)
            return str(variants[hash_value % len(variants)])
        return str(variants[0])

    def render(self, key: str, phone: str | None = None, **kwargs: Any) -> str:
        """
        Render a message from copy.

        "{nome}" is special-cased: it renders as " Name" when a name is known
        and disappears otherwise, so "Olá{nome}!" reads naturally either way.

        Example:
            composer.render("welcome", phone="5511999998888", nome="Ana")
        """
        self.reload_if_changed()
        template = self._select_variant(key, phone)

        nome = kwargs.pop("nome", None)
        kwargs["nome"] = f" {nome}" if nome else ""

        try:
            return template.format(**kwargs)
        except KeyError as e:
            logger.warning(f"Missing template variable {e} for key {key}")
            return template
        except Exception as e:
            logger.error(f"Failed to render message {key}: {e}")
            return template

    def render_all(self, key: str, **kwargs: Any) -> list[str]:
        """Render every entry of a list key in order (e.g. staged progress updates)."""
        self.reload_if_changed()
        entries = self._copy_data.get(key) or []
        if not isinstance(entries, list):
            entries = [entries]
        rendered = []
        for entry in entries:
            try:
                rendered.append(str(entry).format(**kwargs))
            except (KeyError, IndexError, ValueError):
                rendered.append(str(entry))
        return rendered
