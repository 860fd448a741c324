"""Line and depth primitives shared by the scanners and mutators.

Every helper works on a single line (or a list of lines) and never raises on
malformed input: unbalanced or truncated documents degrade to best-effort
answers.
"""

from __future__ import annotations

import json
import re

from .constants import COMMENT_MARKER, STRING_PATTERN


def split_lines(raw: str) -> list[str]:
    """Split document text into lines; ``"\\n".join`` restores it exactly."""
    return raw.split("\n")


def strip_strings(line: str) -> str:
    """Replace every JSON string literal in `line` with an empty ``""``.

    Structural characters inside string values (for example a model ID
    containing ``"{}"``) no longer affect brace or bracket counting afterwards.

    Args:
        line: A single line of JSONC text.

    Returns:
        str: The line with string literals collapsed.

    Examples:
        strip_strings('"a": "{x}",')  # '"": "",'
        strip_strings('"say \\\\"hi\\\\""')  # '""'
    """
    return STRING_PATTERN.sub('""', line)


def get_brace_delta(line: str) -> int:
    """Net count of ``{`` minus ``}`` outside string literals."""
    content = strip_strings(line)
    return content.count("{") - content.count("}")


def get_brace_and_bracket_delta(line: str) -> int:
    """Net count of ``{``/``[`` minus ``}``/``]`` outside string literals."""
    content = strip_strings(line)
    opens = content.count("{") + content.count("[")
    closes = content.count("}") + content.count("]")
    return opens - closes


def quote_key(key: str) -> str:
    """Render `key` as a JSON string literal, escaping quotes and backslashes."""
    return json.dumps(key, ensure_ascii=False)


def unquote_key(text: str) -> str:
    """Decode the content of a JSON string literal found in the document.

    Both ``"a\\"b"`` and ``"\\u0061"`` style escapes are resolved, so keys
    compare equal however they were written. Content with invalid escapes is
    returned as written.

    Examples:
        unquote_key('a\\\\"b')  # 'a"b'
    """
    try:
        return json.loads(f'"{text}"', strict=False)
    except json.JSONDecodeError:
        return text


def leading_whitespace(line: str) -> str:
    return line[: len(line) - len(line.lstrip())]


def is_comment(line: str) -> bool:
    return line.strip().startswith(COMMENT_MARKER)


def find_section_start(lines: list[str], section_key: str, opener: str) -> int:
    """Locate the header line of a top-level array or object section.

    Only the first uncommented match is honoured; documents with duplicate
    top-level keys are not supported.

    Args:
        lines: Document lines.
        section_key: Name of the section, without quotes.
        opener: ``"{"`` for object sections, ``"["`` for array sections.

    Returns:
        int: Zero-based index of the header line, or -1 when the section is absent.

    Examples:
        find_section_start(['{', '  "plugin": ['], "plugin", "[")  # 1
    """
    header_pattern = re.compile(rf'"((?:\\.|[^"\\])*)"\s*:\s*{re.escape(opener)}')
    for index, line in enumerate(lines):
        if not line or is_comment(line):
            continue
        for match in header_pattern.finditer(line):
            if unquote_key(match.group(1)) == section_key:
                return index
    return -1


def find_balanced_block_end(lines: list[str], start_line: int) -> int:
    """Find the line where a block opened on `start_line` is closed again.

    Depth starts at zero on `start_line` and accumulates the brace and bracket
    delta of each line; the first line where it drops to zero or below ends
    the block. A single-line value therefore ends on its own line.

    Args:
        lines: Document lines.
        start_line: Zero-based index of the line that opens the block.

    Returns:
        int: Zero-based index of the closing line, or the last line of the
            document when the block never balances.
    """
    depth = 0
    for index in range(start_line, len(lines)):
        depth += get_brace_and_bracket_delta(lines[index])
        if depth <= 0:
            return index
    return len(lines) - 1


def split_trailing_comment(text: str) -> tuple[str, str]:
    """Separate a trailing ``//`` comment that sits outside string literals.

    Args:
        text: A line fragment, typically the value part of a property.

    Returns:
        tuple[str, str]: The fragment without the comment (right-stripped) and
            the comment including its leading whitespace; the second element is
            empty when there is no comment.

    Examples:
        split_trailing_comment('"dark", // theme')  # ('"dark",', ' // theme')
        split_trailing_comment('"http://x"')  # ('"http://x"', '')
    """
    cursor = 0
    marker = -1
    for match in STRING_PATTERN.finditer(text):
        marker = text.find(COMMENT_MARKER, cursor, match.start())
        if marker != -1:
            break
        cursor = match.end()
    else:
        marker = text.find(COMMENT_MARKER, cursor)

    if marker == -1:
        return text, ""

    body = text[:marker].rstrip()
    return body, text[len(body) :]
