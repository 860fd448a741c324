from __future__ import annotations

import json
import string

from hypothesis import assume, given
from hypothesis import strategies as st
from jsonc_editor.jsonc import parse_jsonc, strip_comments, strip_trailing_commas
from jsonc_editor.lines import get_brace_and_bracket_delta, split_lines
from jsonc_editor.mutators import remove_item, toggle_line, update_top_level_key
from jsonc_editor.scanner import parse_array_section, parse_object_section

line_content = st.text(alphabet=string.ascii_letters + string.digits + ' \t"{}[],:/.@-', max_size=40)
indentation = st.text(alphabet=" \t", max_size=8)
entry_names = st.text(alphabet=string.ascii_letters + string.digits + "@/.-_", min_size=1, max_size=20)
keys = st.text(alphabet=string.ascii_letters, min_size=1, max_size=8)
json_keys = st.text(min_size=1, max_size=8)

json_values = st.recursive(
    st.none()
    | st.booleans()
    | st.integers()
    | st.floats(allow_nan=False, allow_infinity=False)
    | st.text(max_size=20),
    lambda children: st.lists(children, max_size=4)
    | st.dictionaries(st.text(max_size=8), children, max_size=4),
    max_leaves=12,
)


@given(indentation, line_content)
def test_disable_then_enable_restores_line(indent: str, content: str):
    assume(not content.lstrip().startswith("//"))
    line = f"{indent}{content.lstrip()}"

    disabled = toggle_line(line, 0, False)

    assert disabled.strip().startswith("//")
    assert toggle_line(disabled, 0, True) == line


@given(st.lists(line_content, min_size=1, max_size=8), st.data())
def test_disable_is_idempotent(lines: list[str], data):
    raw = "\n".join(lines)
    index = data.draw(st.integers(min_value=0, max_value=len(lines) - 1))

    once = toggle_line(raw, index, False)

    assert toggle_line(once, index, False) == once
    assert len(split_lines(once)) == len(lines)


@given(st.text(max_size=40))
def test_string_literals_never_shift_depth(value: str):
    assert get_brace_and_bracket_delta(f'"key": {json.dumps(value)},') == 0


@given(st.lists(st.tuples(entry_names, st.booleans()), max_size=12, unique_by=lambda entry: entry[0]))
def test_array_scan_matches_generated_entries(entries):
    body = [f'    {"" if enabled else "// "}"{name}",' for name, enabled in entries]
    raw = "\n".join(["{", '  "plugin": [', *body, "  ]", "}"])

    items = parse_array_section(raw, "plugin")

    assert [(item.key, item.enabled) for item in items] == entries
    assert [item.start_line for item in items] == list(range(2, 2 + len(entries)))


@given(st.dictionaries(json_keys, json_values, min_size=1, max_size=5), st.data())
def test_removing_any_scanned_property_drops_only_that_key(section, data):
    raw = json.dumps({"section": section, "after": True}, indent=2)
    items = parse_object_section(raw, "section")
    assert [item.key for item in items] == list(section)

    item = data.draw(st.sampled_from(items))
    result = remove_item(raw, item.start_line, item.end_line)

    expected = {key: value for key, value in section.items() if key != item.key}
    assert parse_jsonc(result) == {"section": expected, "after": True}


@given(st.dictionaries(json_keys, json_values, min_size=1, max_size=5), json_keys, json_values)
def test_update_top_level_key_sets_value(document, key: str, value):
    raw = json.dumps(document, indent=2)

    result = update_top_level_key(raw, key, value)

    assert parse_jsonc(result) == {**document, key: value}


@given(st.dictionaries(keys, json_values, min_size=1, max_size=5))
def test_parse_jsonc_agrees_with_json(document):
    raw = json.dumps(document, indent=2)
    assert parse_jsonc(raw) == json.loads(raw)


def _root_keys(text: str) -> list[str]:
    pairs = json.loads(strip_trailing_commas(strip_comments(text)), object_pairs_hook=list)
    return [key for key, _ in pairs]


@given(
    st.dictionaries(json_keys, json_values, min_size=1, max_size=5), json_keys, json_values, json_values
)
def test_updating_a_key_twice_leaves_one_declaration(document, key: str, first, second):
    raw = json.dumps(document, indent=2)

    result = update_top_level_key(update_top_level_key(raw, key, first), key, second)

    assert _root_keys(result).count(key) == 1
    assert parse_jsonc(result) == {**document, key: second}


@given(st.dictionaries(json_keys, json_values, min_size=1, max_size=5), json_keys, json_values)
def test_update_keeps_crlf_line_endings(document, key: str, value):
    raw = json.dumps(document, indent=2).replace("\n", "\r\n") + "\r\n"

    result = update_top_level_key(raw, key, value)

    assert "\n" not in result.replace("\r\n", "")
    assert result.endswith("}\r\n")
    assert parse_jsonc(result) == {**document, key: value}
