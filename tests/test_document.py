from __future__ import annotations

import textwrap

import pytest

from jsonc_editor.config import EditorConfig
from jsonc_editor.document import JsoncDocument
from jsonc_editor.exceptions import StaleItemError
from jsonc_editor.scanner import parse_array_section


def _doc(content: str) -> str:
    return textwrap.dedent(content).strip("\n")


CONFIG_DOC = _doc(
    """
    {
      "theme": "light",
      "plugin": [
        "alpha",
        "beta"
      ],
      "mcp": {
        "local": {
          "type": "local"
        },
        "remote": {
          "type": "remote"
        }
      }
    }
    """
)


def test_scanned_items_carry_current_generation():
    document = JsoncDocument(CONFIG_DOC)

    items = document.array_items("plugin")

    assert document.generation == 0
    assert [item.generation for item in items] == [0, 0]
    assert [item.key for item in document.items("mcp")] == ["local", "remote"]


def test_toggle_line_item_bumps_generation():
    document = JsoncDocument(CONFIG_DOC)
    beta = document.array_items("plugin")[1]

    assert document.toggle(beta, enable=False) is True

    assert document.generation == 1
    assert '    // "beta"' in document.text.split("\n")
    assert [item.enabled for item in document.array_items("plugin")] == [True, False]


def test_toggle_block_item_comments_every_line():
    document = JsoncDocument(CONFIG_DOC)
    local = document.object_items("mcp")[0]

    document.toggle(local, enable=False)

    assert document.text.split("\n")[7:10] == [
        '    // "local": {',
        '      // "type": "local"',
        "    // },",
    ]
    local = document.object_items("mcp")[0]
    assert local.enabled is False
    document.toggle(local, enable=True)
    assert document.text == CONFIG_DOC


def test_noop_edit_keeps_generation():
    document = JsoncDocument(CONFIG_DOC)
    alpha = document.array_items("plugin")[0]

    assert document.toggle(alpha, enable=True) is False
    assert document.generation == 0
    assert document.text == CONFIG_DOC


def test_stale_item_is_rejected():
    document = JsoncDocument(CONFIG_DOC)
    alpha, beta = document.array_items("plugin")

    document.remove(alpha)

    with pytest.raises(StaleItemError) as exc_info:
        document.toggle(beta, enable=False)
    assert exc_info.value.item_generation == 0
    assert exc_info.value.document_generation == 1

    with pytest.raises(StaleItemError):
        document.remove(beta)


def test_unstamped_items_are_rejected():
    document = JsoncDocument(CONFIG_DOC)
    item = parse_array_section(CONFIG_DOC, "plugin")[0]

    with pytest.raises(StaleItemError):
        document.toggle(item, enable=False)


def test_remove_then_rescan():
    document = JsoncDocument(CONFIG_DOC)

    document.remove(document.object_items("mcp")[0])

    assert [item.key for item in document.object_items("mcp")] == ["remote"]
    assert [item.start_line for item in document.object_items("mcp")] == [7]


def test_add_and_append():
    document = JsoncDocument(CONFIG_DOC)

    assert document.add("mcp", "extra", {"type": "local"}) is True
    assert document.append("plugin", "gamma") is True
    assert document.append("plugin", "gamma") is False

    assert [item.key for item in document.object_items("mcp")] == ["local", "remote", "extra"]
    assert [item.key for item in document.array_items("plugin")] == ["alpha", "beta", "gamma"]
    assert document.generation == 2


def test_add_uses_document_config():
    document = JsoncDocument('{\n  "mcp": {\n  }\n}', EditorConfig(entry_indent="  "))

    document.add("mcp", "a", 1)

    assert document.text == '{\n  "mcp": {\n  "a": 1\n  }\n}'


def test_update_and_values():
    document = JsoncDocument(CONFIG_DOC)

    document.update({"theme": "dark", "share": "manual"})

    values = document.values()
    assert values["theme"] == "dark"
    assert values["share"] == "manual"
    assert values["plugin"] == ["alpha", "beta"]


def test_save_changes_only_touches_changed_keys():
    document = JsoncDocument(CONFIG_DOC)
    before = document.values()

    assert document.save_changes(before, dict(before)) is False
    assert document.save_changes(before, dict(before, theme="dark")) is True

    assert document.text == CONFIG_DOC.replace('"light"', '"dark"')


def test_repr_reports_generation_and_line_count():
    assert repr(JsoncDocument("{\n}")) == "JsoncDocument(generation=0, lines=2)"
