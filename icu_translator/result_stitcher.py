from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from icu_translator.input_parsers import ParsedEntry
from icu_translator.translation_client import ServiceTranslation

# Shown in place of a translation the service did not return.
PENDING_MARKER = '...'


@dataclass
class TranslationResult:
    """A translated string joined back to the identifier it was pasted with."""
    original: str
    translations: Dict[str, str] = field(default_factory=dict)
    id: Optional[str] = None

    def translation_for(self, language_code: str) -> str:
        """Return the translation for ``language_code``, or the pending marker if it is missing."""
        return self.translations.get(language_code) or PENDING_MARKER


def stitch_results(
        entries: Sequence[ParsedEntry],
        service_results: Sequence[ServiceTranslation]
) -> List[TranslationResult]:
    """
    Attach the parsed identifiers to the translation service's results.

    Results are matched to entries by exact ``original`` text, so the order the
    service answers in does not matter. When the same original text appears more
    than once in the input, every result for it gets the identifier of the first
    such entry.

    Args:
        entries (Sequence[ParsedEntry]): The entries parsed from the input.
        service_results (Sequence[ServiceTranslation]): The service's answer.

    Returns:
        List[TranslationResult]: One result per service item, in service order.
    """
    first_id_by_original: Dict[str, Optional[str]] = {}
    for entry in entries:
        first_id_by_original.setdefault(entry.original, entry.id)

    return [
        TranslationResult(
            original=item.original,
            translations=dict(item.translations),
            id=first_id_by_original.get(item.original)
        )
        for item in service_results
    ]


def extract_argument_names(text: str) -> List[str]:
    """
    Return the names of the top-level ICU arguments in ``text``.

    ``"{count, plural, one{# file} other{# files}} in {folder}"`` gives
    ``['count', 'folder']``. Text inside plural/select branches is not inspected,
    since it is translated. ICU apostrophe quoting is not interpreted.
    """
    names = []
    depth = 0
    start = -1
    for i, char in enumerate(text):
        if char == '{':
            if depth == 0:
                start = i + 1
            depth += 1
        elif char == '}' and depth > 0:
            depth -= 1
            if depth == 0:
                names.append(text[start:i].split(',', 1)[0].strip())
    return names


def check_placeholder_parity(original: str, translated: str) -> bool:
    """
    Checks that a translation carries the same ICU arguments as its original.

    Arguments may be reordered, but each must appear as many times as in the
    original.
    """
    return Counter(extract_argument_names(original)) == Counter(extract_argument_names(translated))


def find_placeholder_mismatches(results: Sequence[TranslationResult]) -> List[Tuple[str, str, str]]:
    """
    List the translations whose ICU arguments differ from their original.

    Returns:
        List[Tuple[str, str, str]]: ``(original, language_code, translation)`` triples.
    """
    mismatches = []
    for result in results:
        for code, translated in result.translations.items():
            if not check_placeholder_parity(result.original, translated):
                mismatches.append((result.original, code, translated))
    return mismatches


def find_missing_languages(
        results: Sequence[TranslationResult],
        language_codes: Sequence[str]
) -> Dict[str, List[str]]:
    """Map each original that lacks a requested translation to the missing codes."""
    missing: Dict[str, List[str]] = {}
    for result in results:
        absent = [code for code in language_codes if not result.translations.get(code)]
        if absent:
            missing[result.original] = absent
    return missing
