"""Snapshot wrapper that refuses edits based on stale line positions."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import replace

from .config import EditorConfig
from .exceptions import StaleItemError
from .jsonc import parse_jsonc
from .lines import split_lines
from .models import ConfigItem
from .mutators import (
    add_array_item,
    add_item,
    changed_keys,
    remove_item,
    toggle_block,
    toggle_line,
    update_top_level_keys,
)
from .scanner import parse_array_section, parse_object_section, scan_section

logger = logging.getLogger(__name__)


class JsoncDocument:
    """A JSONC document paired with a generation counter.

    Items returned by the scanning methods are stamped with the generation
    they were scanned at. Every edit that changes the text bumps the
    generation, and item-based edits reject items from an older generation
    with `StaleItemError` instead of touching the wrong lines.

    Args:
        text: Initial document text.
        config: Formatting configuration used for insertions.

    Examples:
        document = JsoncDocument(path.read_text())
        for item in document.array_items("plugin"):
            if item.key == "old-plugin":
                document.toggle(item, enable=False)
                break
        path.write_text(document.text)
    """

    def __init__(self, text: str, config: EditorConfig | None = None):
        self._text = text
        self._generation = 0
        self.config = config or EditorConfig()

    @property
    def text(self) -> str:
        return self._text

    @property
    def generation(self) -> int:
        return self._generation

    def __repr__(self) -> str:
        return f"{type(self).__name__}(generation={self._generation}, lines={len(split_lines(self._text))})"

    def _stamp(self, items: list[ConfigItem]) -> list[ConfigItem]:
        return [replace(item, generation=self._generation) for item in items]

    def array_items(self, section_key: str) -> list[ConfigItem]:
        return self._stamp(parse_array_section(self._text, section_key))

    def object_items(self, section_key: str) -> list[ConfigItem]:
        return self._stamp(parse_object_section(self._text, section_key))

    def items(self, section_key: str) -> list[ConfigItem]:
        """Scan a section whether it holds an array or an object."""
        return self._stamp(scan_section(self._text, section_key))

    def values(self) -> object:
        """Parse the whole document into Python values."""
        return parse_jsonc(self._text)

    def _check(self, item: ConfigItem) -> None:
        if item.generation != self._generation:
            logger.debug("Rejecting stale item %r", item.key)
            raise StaleItemError(item.generation, self._generation)

    def _apply(self, edit: Callable[[str], str]) -> bool:
        updated = edit(self._text)
        if updated == self._text:
            return False
        self._text = updated
        self._generation += 1
        return True

    def toggle(self, item: ConfigItem, enable: bool) -> bool:
        """Enable or disable a scanned item.

        Returns:
            bool: True when the text changed.

        Raises:
            StaleItemError: If `item` was scanned before the latest edit.
        """
        self._check(item)
        if item.is_block:
            return self._apply(lambda text: toggle_block(text, item.start_line, item.end_line, enable))
        return self._apply(lambda text: toggle_line(text, item.start_line, enable))

    def remove(self, item: ConfigItem) -> bool:
        """Delete a scanned item.

        Raises:
            StaleItemError: If `item` was scanned before the latest edit.
        """
        self._check(item)
        return self._apply(lambda text: remove_item(text, item.start_line, item.end_line))

    def add(self, section_key: str, key: str, value: object) -> bool:
        return self._apply(lambda text: add_item(text, section_key, key, value, self.config))

    def append(self, section_key: str, value: str) -> bool:
        return self._apply(lambda text: add_array_item(text, section_key, value, self.config))

    def update(self, updates: Mapping[str, object]) -> bool:
        return self._apply(lambda text: update_top_level_keys(text, updates, self.config))

    def save_changes(self, before: Mapping[str, object], after: Mapping[str, object]) -> bool:
        """Write only the root properties that differ between two snapshots."""
        changes = changed_keys(before, after)
        if not changes:
            return False
        return self.update(changes)
