import re
from typing import List, Sequence

from icu_translator.input_parsers import ID_FORMATS
from icu_translator.result_stitcher import TranslationResult

EXPORT_SCOPE_ALL = 'all'
EXPORT_SCOPE_IDS = 'ids'
EXPORT_SCOPE_TRANSLATIONS = 'translations'
EXPORT_SCOPES = (EXPORT_SCOPE_ALL, EXPORT_SCOPE_IDS, EXPORT_SCOPE_TRANSLATIONS)

_CELL_BREAK_PATTERN = re.compile(r'[\t\r\n]')


def _clean_cell(value: str) -> str:
    """Replace characters that would break the tab separated row structure."""
    return _CELL_BREAK_PATTERN.sub(' ', value or '')


def shows_id_column(input_format: str) -> bool:
    return input_format in ID_FORMATS


def export_tsv(
        results: Sequence[TranslationResult],
        languages: Sequence[str],
        input_format: str,
        scope: str = EXPORT_SCOPE_ALL
) -> str:
    """
    Serialize results as tab separated rows, ready to paste into a spreadsheet.

    Args:
        results (Sequence[TranslationResult]): The stitched results.
        languages (Sequence[str]): The language columns, in display order.
        input_format (str): The input format; ``arb`` and ``js`` get an ID column.
        scope (str): ``all`` for the whole table, ``ids`` for the ID column only,
            ``translations`` for the language columns only.

    Returns:
        str: The rows joined by newlines, without a header row. Missing
        translations are exported as empty cells.
    """
    if scope not in EXPORT_SCOPES:
        raise ValueError(f"Unknown export scope '{scope}'. Expected one of: {', '.join(EXPORT_SCOPES)}.")

    if scope == EXPORT_SCOPE_IDS:
        return '\n'.join(_clean_cell(result.id or '') for result in results)

    rows = []
    for result in results:
        cells: List[str] = []
        if scope == EXPORT_SCOPE_ALL:
            if shows_id_column(input_format):
                cells.append(_clean_cell(result.id or ''))
            cells.append(_clean_cell(result.original))
        cells.extend(_clean_cell(result.translations.get(code, '')) for code in languages)
        rows.append('\t'.join(cells))
    return '\n'.join(rows)
