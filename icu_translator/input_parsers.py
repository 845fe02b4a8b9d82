import json
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from icu_translator.errors import FormatError

INPUT_FORMAT_ARB = 'arb'
INPUT_FORMAT_JS = 'js'
INPUT_FORMAT_TEXT = 'text'
INPUT_FORMATS = (INPUT_FORMAT_ARB, INPUT_FORMAT_JS, INPUT_FORMAT_TEXT)

# Formats whose entries carry a message identifier.
ID_FORMATS = (INPUT_FORMAT_ARB, INPUT_FORMAT_JS)

_STRING_QUOTES = ('"', "'", '`')
_RECORD_KEY_PATTERN = re.compile(
    r'''(?:(?P<quote>["'])(?P<quoted_key>[^"'\n]+)(?P=quote)|(?P<key>[A-Za-z_$][\w$]*))\s*:\s*\{'''
)
_DEFAULT_MESSAGE_PATTERN = re.compile(r'\bdefaultMessage\s*:\s*(?=["\'`])')


@dataclass(frozen=True)
class ParsedEntry:
    """A single source string taken from pasted input."""
    original: str
    id: Optional[str] = None


def _skip_string_literal(text: str, start: int) -> int:
    """
    Return the index just past the string literal opening at ``start``.

    A backslash escapes the next character. An unterminated literal runs to the
    end of the text.
    """
    quote = text[start]
    i = start + 1
    while i < len(text):
        char = text[i]
        if char == '\\':
            i += 2
            continue
        if char == quote:
            return i + 1
        i += 1
    return len(text)


def _skip_comment(text: str, start: int) -> int:
    """Return the index just past a `//` or `/* */` comment at ``start``, or ``start`` if there is none."""
    if text.startswith('//', start):
        end = text.find('\n', start)
        return len(text) if end == -1 else end + 1
    if text.startswith('/*', start):
        end = text.find('*/', start + 2)
        return len(text) if end == -1 else end + 2
    return start


def _find_closing_brace(text: str, open_index: int) -> int:
    """
    Find the brace that closes the one at ``open_index``, ignoring braces that
    appear inside string literals.

    Returns:
        int: The index of the closing brace, or -1 if it is never closed.
    """
    depth = 0
    i = open_index
    while i < len(text):
        char = text[i]
        if char == '/' and _skip_comment(text, i) != i:
            i = _skip_comment(text, i)
            continue
        if char in _STRING_QUOTES:
            i = _skip_string_literal(text, i)
            continue
        if char == '{':
            depth += 1
        elif char == '}':
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return -1


def _mask_nested_objects(body: str) -> str:
    """
    Blank out everything inside nested braces so only top-level fields remain
    visible. Comments are blanked at every depth.
    """
    masked = []
    depth = 0
    i = 0
    while i < len(body):
        char = body[i]
        if char == '/' and _skip_comment(body, i) != i:
            end = _skip_comment(body, i)
            masked.append(' ' * (end - i))
            i = end
            continue
        if char in _STRING_QUOTES:
            end = _skip_string_literal(body, i)
            segment = body[i:end]
            masked.append(segment if depth == 0 else ' ' * len(segment))
            i = end
            continue
        if char == '{':
            depth += 1
            masked.append(' ')
        elif char == '}':
            depth = max(depth - 1, 0)
            masked.append(' ')
        else:
            masked.append(char if depth == 0 else ' ')
        i += 1
    return ''.join(masked)


def _read_default_message(body: str) -> Optional[str]:
    """Return the raw text of the record's own ``defaultMessage`` literal, if any."""
    match = _DEFAULT_MESSAGE_PATTERN.search(_mask_nested_objects(body))
    if not match:
        return None
    start = match.end()
    end = _skip_string_literal(body, start)
    if end - start < 2 or body[end - 1] != body[start]:
        return None
    return body[start + 1:end - 1]


def _is_identifier_start(text: str, index: int) -> bool:
    if index > 0 and (text[index - 1].isalnum() or text[index - 1] in '_$'):
        return False
    char = text[index]
    return char.isalpha() or char in '_$'


def parse_arb(text: str) -> List[ParsedEntry]:
    """
    Parse ARB content pasted as a JSON object of message keys to strings.

    A bare ``"key": "value",`` fragment without the enclosing braces is accepted
    as well: a single trailing comma is dropped and the fragment is wrapped in
    braces before parsing. Keys starting with ``@`` are metadata and skipped.
    A leading byte order mark is ignored.

    Args:
        text (str): The pasted ARB content.

    Returns:
        List[ParsedEntry]: One entry per message, in key order.

    Raises:
        FormatError: If the content cannot be read as an ARB object.
    """
    candidate = text.lstrip('\ufeff').strip()
    if not candidate.startswith('{') and ':' in candidate:
        if candidate.endswith(','):
            candidate = candidate[:-1]
        candidate = '{' + candidate + '}'

    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as json_exc:
        raise FormatError(
            INPUT_FORMAT_ARB,
            f"Invalid ARB input: expected a JSON object of message keys to strings ({json_exc.msg} "
            f"at line {json_exc.lineno}, column {json_exc.colno})."
        ) from json_exc

    if not isinstance(data, dict):
        raise FormatError(
            INPUT_FORMAT_ARB,
            "Invalid ARB input: expected a JSON object of message keys to strings, "
            f"got a JSON {type(data).__name__}."
        )

    entries = []
    for key, value in data.items():
        if key.startswith('@'):
            continue
        if not isinstance(value, str):
            raise FormatError(
                INPUT_FORMAT_ARB,
                f"Invalid ARB input: the value of '{key}' must be a string."
            )
        if not value.strip():
            continue
        entries.append(ParsedEntry(original=value, id=key))
    return entries


def parse_js_messages(text: str) -> List[ParsedEntry]:
    """
    Extract ``key: { ... defaultMessage: '...' ... }`` records from JS/TS source.

    This is a tolerant scanner rather than a JavaScript parser. It walks the
    text outside of string literals, looks for an identifier (or quoted key)
    followed by an object literal and takes the ``defaultMessage`` declared
    directly in that object, wherever it sits among the other fields. Records
    wrapped in outer objects (``defineMessages({...})``, nested groups) are
    found too. Escapes inside the message are kept exactly as written.

    Args:
        text (str): The pasted JS/TS source.

    Returns:
        List[ParsedEntry]: One entry per record, in source order.

    Raises:
        FormatError: If no record could be found.
    """
    entries = []
    i = 0
    while i < len(text):
        char = text[i]
        is_quote = char in ('"', "'")
        if is_quote or _is_identifier_start(text, i):
            match = _RECORD_KEY_PATTERN.match(text, i)
            if match:
                open_index = match.end() - 1
                close_index = _find_closing_brace(text, open_index)
                if close_index == -1:
                    break
                message = _read_default_message(text[open_index + 1:close_index])
                if message is not None:
                    key = match.group('key') or match.group('quoted_key')
                    if message.strip():
                        entries.append(ParsedEntry(original=message, id=key))
                    i = close_index + 1
                else:
                    # Not a message record itself; look for records inside it.
                    i = open_index + 1
                continue
            if is_quote:
                i = _skip_string_literal(text, i)
                continue
            # Skip the rest of the identifier.
            while i < len(text) and (text[i].isalnum() or text[i] in '_$'):
                i += 1
            continue
        if char == '`':
            i = _skip_string_literal(text, i)
            continue
        if char == '/' and _skip_comment(text, i) != i:
            i = _skip_comment(text, i)
            continue
        i += 1

    if not entries:
        raise FormatError(
            INPUT_FORMAT_JS,
            "Invalid JS/TS input: expected message records like "
            "`key: { id: '...', defaultMessage: '...' }` but none were found."
        )
    return entries


def parse_plain_text(text: str) -> List[ParsedEntry]:
    """
    Split plain text into one entry per non-blank line.

    Lines are trimmed; blank and whitespace-only lines are dropped. An empty
    result is not an error here, the caller reports it as nothing to translate.
    """
    return [ParsedEntry(original=line.strip()) for line in text.splitlines() if line.strip()]


def parse_input(text: str, input_format: str) -> List[ParsedEntry]:
    """
    Parse pasted input with the parser for ``input_format``.

    Args:
        text (str): The raw pasted text.
        input_format (str): One of ``arb``, ``js`` or ``text``.

    Returns:
        List[ParsedEntry]: The parsed entries.

    Raises:
        FormatError: If the format is unknown or the text does not match it.
    """
    if input_format == INPUT_FORMAT_ARB:
        return parse_arb(text)
    if input_format == INPUT_FORMAT_JS:
        return parse_js_messages(text)
    if input_format == INPUT_FORMAT_TEXT:
        return parse_plain_text(text)
    raise FormatError(
        input_format,
        f"Unknown input format '{input_format}'. Expected one of: {', '.join(INPUT_FORMATS)}."
    )


def unique_originals(entries: List[ParsedEntry]) -> Tuple[str, ...]:
    """Return the distinct ``original`` strings of ``entries`` in first-seen order."""
    return tuple(dict.fromkeys(entry.original for entry in entries))
