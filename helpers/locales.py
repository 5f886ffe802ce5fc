"""
Locale loading and key lookup.

Strings live in ``<locales>/<language>/<namespace>.json``. Keys are written
``namespace:path:to:leaf`` (``misc:voice:not_in_voice``) and placeholders as
``{{name}}``.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable
from pathlib import Path
from typing import Any

from utils.logging import get_logger

logger = get_logger(__name__)

Localizer = Callable[..., str]

_PLACEHOLDER = re.compile(r"\{\{\s*(\w+)\s*\}\}")


def _project_root() -> Path:
    return Path(__file__).resolve().parent.parent


class LocaleManager:
    """Holds every loaded language and resolves keys with fallback to the default language."""

    def __init__(self, path: str | Path | None = None, default_language: str = "en") -> None:
        path = Path(path) if path else _project_root() / "locales"
        if not path.is_absolute():
            path = _project_root() / path
        self.path = path
        self.default_language = default_language
        self._strings: dict[str, dict[str, Any]] = {}

    @property
    def languages(self) -> list[str]:
        return sorted(self._strings)

    def load(self) -> int:
        """(Re)load every ``<lang>/<namespace>.json`` file; returns the number of files read."""
        strings: dict[str, dict[str, Any]] = {}
        loaded = 0
        if not self.path.is_dir():
            logger.warning("Locale directory %s not found; keys will render as-is", self.path)
            self._strings = strings
            return 0

        for lang_dir in sorted(p for p in self.path.iterdir() if p.is_dir()):
            namespaces: dict[str, Any] = {}
            for file in sorted(lang_dir.glob("*.json")):
                try:
                    with file.open(encoding="utf-8") as fh:
                        namespaces[file.stem] = json.load(fh)
                    loaded += 1
                except (OSError, ValueError) as exc:
                    logger.exception("Failed to load locale file %s: %s", file, exc)
            strings[lang_dir.name] = namespaces

        self._strings = strings
        logger.info("Loaded %s locale file(s) for %s", loaded, ", ".join(self.languages) or "no languages")
        return loaded

    def has_language(self, language: str | None) -> bool:
        return bool(language) and language in self._strings

    def _lookup(self, language: str, key: str) -> str | None:
        node: Any = self._strings.get(language)
        for part in key.split(":"):
            if not isinstance(node, dict):
                return None
            node = node.get(part)
        return node if isinstance(node, str) else None

    def translate(self, language: str | None, key: str, /, **substitutions: Any) -> str:
        """
        Resolve ``key`` in ``language``, falling back to the default language
        and finally to the key itself, then fill ``{{placeholders}}``.
        """
        text = None
        if language:
            text = self._lookup(language, key)
        if text is None and language != self.default_language:
            text = self._lookup(self.default_language, key)
        if text is None:
            logger.debug("Missing locale key %s (%s)", key, language)
            text = key

        if not substitutions:
            return text
        return _PLACEHOLDER.sub(
            lambda m: str(substitutions[m.group(1)]) if m.group(1) in substitutions else m.group(0),
            text,
        )

    def get_localizer(self, language: str | None = None) -> Localizer:
        """Bind a language: ``localize = locales.get_localizer("de"); localize("misc:voice:in_afk")``."""
        language = language if self.has_language(language) else self.default_language

        def localize(key: str, /, **substitutions: Any) -> str:
            return self.translate(language, key, **substitutions)

        return localize
