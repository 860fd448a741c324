"""Data models for jsonc-editor."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ConfigScope(Enum):
    """Where a config file lives.

    Attributes:
        LOCAL: Config file in the current working directory.
        GLOBAL: Config file in the user's config directory.
    """

    LOCAL = "local"
    GLOBAL = "global"


@dataclass(frozen=True)
class ConfigItem:
    """Positioned entry of an array or object section.

    Items are snapshots of the text they were scanned from; any edit to that
    text invalidates their line numbers.

    Attributes:
        key: String content of an array entry, or the key of an object property.
        enabled: False when the entry is commented out with ``//``.
        start_line: Zero-based index of the first line of the entry.
        end_line: Zero-based index of the last line of the entry (inclusive).
        raw: Source text of the entry's lines, joined with newlines.
        generation: Generation of the `JsoncDocument` that produced the item, or
            None when produced by the bare scanner functions.
    """

    key: str
    enabled: bool
    start_line: int
    end_line: int
    raw: str
    generation: int | None = None

    @property
    def is_block(self) -> bool:
        return self.end_line > self.start_line
