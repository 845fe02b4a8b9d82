"""Target language presets ("arrangements") and their resolution per input format."""
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from icu_translator.input_parsers import INPUT_FORMATS, INPUT_FORMAT_ARB, INPUT_FORMAT_JS

logger = logging.getLogger(__name__)

CUSTOM_ARRANGEMENT = 'custom'

# Languages for plain text input, where English is the source and not a target.
STANDARD_LANGUAGES = (
    'fr',  # French
    'es',  # Spanish
    'pt',  # Portuguese
    'de',  # German
    'ru',  # Russian
    'it',  # Italian
    'uk',  # Ukrainian
    'ro',  # Romanian
    'cs',  # Czech
    'pl',  # Polish
    'nl',  # Dutch
    'lt',  # Lithuanian
    'et',  # Estonian
    'lv',  # Latvian
    'sk',  # Slovak
    'hu',  # Hungarian
    'bg',  # Bulgarian
    'th',  # Thai
    'vi',  # Vietnamese
)

# ARB and JS/TS message files usually need an 'en' entry of their own.
CODE_LANGUAGES = ('en',) + STANDARD_LANGUAGES


@dataclass(frozen=True)
class Arrangement:
    """A named target language preset and the input formats it applies to."""
    name: str
    label: str
    formats: Tuple[str, ...]
    languages: Tuple[str, ...] = ()

    @property
    def is_custom(self) -> bool:
        return self.name == CUSTOM_ARRANGEMENT


DEFAULT_ARRANGEMENTS: Dict[str, Arrangement] = {
    'with_english': Arrangement(
        name='with_english',
        label='English + standard languages',
        formats=(INPUT_FORMAT_ARB, INPUT_FORMAT_JS),
        languages=CODE_LANGUAGES,
    ),
    'standard': Arrangement(
        name='standard',
        label='Standard languages',
        formats=INPUT_FORMATS,
        languages=STANDARD_LANGUAGES,
    ),
    CUSTOM_ARRANGEMENT: Arrangement(
        name=CUSTOM_ARRANGEMENT,
        label='Custom list',
        formats=INPUT_FORMATS,
    ),
}


def dedupe_languages(codes: Iterable[str]) -> List[str]:
    """Drop repeated language codes while keeping their first-seen order."""
    return list(dict.fromkeys(codes))


def parse_custom_languages(custom_text: Optional[str]) -> List[str]:
    """
    Split a comma separated list of language codes.

    Tokens are trimmed, empty tokens are dropped and repeats removed.

    Args:
        custom_text (Optional[str]): Text such as ``"fr, es,,zh-CN"``.

    Returns:
        List[str]: The codes in the order they were typed.
    """
    if not custom_text:
        return []
    return dedupe_languages(token.strip() for token in custom_text.split(',') if token.strip())


def build_arrangements(arrangement_list: List[Dict]) -> Dict[str, Arrangement]:
    """
    Build arrangements from the ``arrangements`` list of ``config.yaml``.

    Entries without a name, or non-custom entries without languages, are skipped.
    The custom arrangement is always available.

    Args:
        arrangement_list (List[Dict]): Raw entries with ``name``, ``label``,
            ``formats`` and ``languages`` keys.

    Returns:
        Dict[str, Arrangement]: Arrangements keyed by name, in configured order.
    """
    arrangements: Dict[str, Arrangement] = {}
    for item in arrangement_list:
        name = item.get('name')
        if not name:
            logger.warning("Skipping arrangement without a name: %s", item)
            continue
        formats = tuple(fmt for fmt in item.get('formats', INPUT_FORMATS) if fmt in INPUT_FORMATS)
        languages = tuple(dedupe_languages(str(code).strip() for code in item.get('languages', []) if str(code).strip()))
        if name != CUSTOM_ARRANGEMENT and not languages:
            logger.warning("Skipping arrangement '%s': it lists no languages.", name)
            continue
        arrangements[name] = Arrangement(
            name=name,
            label=item.get('label', name),
            formats=formats or INPUT_FORMATS,
            languages=languages,
        )

    if CUSTOM_ARRANGEMENT not in arrangements:
        arrangements[CUSTOM_ARRANGEMENT] = DEFAULT_ARRANGEMENTS[CUSTOM_ARRANGEMENT]
    return arrangements


def arrangements_for_format(
        input_format: str,
        arrangements: Optional[Dict[str, Arrangement]] = None
) -> List[str]:
    """Return the names of the arrangements valid for ``input_format``, in preset order."""
    arrangements = arrangements if arrangements is not None else DEFAULT_ARRANGEMENTS
    return [name for name, arrangement in arrangements.items() if input_format in arrangement.formats]


def validate_arrangement(
        input_format: str,
        arrangement_name: Optional[str],
        arrangements: Optional[Dict[str, Arrangement]] = None
) -> str:
    """
    Return ``arrangement_name`` if it is valid for ``input_format``, otherwise the
    first arrangement that is.
    """
    valid_names = arrangements_for_format(input_format, arrangements)
    if arrangement_name in valid_names:
        return arrangement_name
    if not valid_names:
        raise ValueError(f"No arrangement is available for input format '{input_format}'.")
    fallback = valid_names[0]
    logger.info(
        "Arrangement '%s' is not available for '%s' input, using '%s' instead.",
        arrangement_name, input_format, fallback
    )
    return fallback


def resolve_languages(
        input_format: str,
        arrangement_name: Optional[str],
        custom_text: Optional[str] = None,
        arrangements: Optional[Dict[str, Arrangement]] = None
) -> List[str]:
    """
    Resolve the ordered target language codes for a format and arrangement.

    Args:
        input_format (str): The selected input format.
        arrangement_name (Optional[str]): The selected arrangement. An arrangement
            that is not valid for the format falls back to the first valid one.
        custom_text (Optional[str]): The comma separated list used by the
            custom arrangement.
        arrangements (Optional[Dict[str, Arrangement]]): Available arrangements,
            the built-in presets by default.

    Returns:
        List[str]: Deduplicated language codes; empty when a custom list is blank.
    """
    arrangements = arrangements if arrangements is not None else DEFAULT_ARRANGEMENTS
    name = validate_arrangement(input_format, arrangement_name, arrangements)
    arrangement = arrangements[name]
    if arrangement.is_custom:
        return parse_custom_languages(custom_text)
    return dedupe_languages(arrangement.languages)


class LanguageSelection:
    """
    The current format/arrangement choice of a user.

    Changing the input format re-validates the arrangement, since which presets
    are offered depends on the format.
    """

    def __init__(
            self,
            input_format: str,
            arrangement: Optional[str] = None,
            custom_text: str = '',
            arrangements: Optional[Dict[str, Arrangement]] = None
    ):
        self.arrangements = arrangements if arrangements is not None else DEFAULT_ARRANGEMENTS
        self.input_format = input_format
        self.custom_text = custom_text
        self.arrangement = validate_arrangement(input_format, arrangement, self.arrangements)

    @property
    def available_arrangements(self) -> List[str]:
        return arrangements_for_format(self.input_format, self.arrangements)

    def set_input_format(self, input_format: str) -> None:
        self.input_format = input_format
        self.arrangement = validate_arrangement(input_format, self.arrangement, self.arrangements)

    def set_arrangement(self, arrangement: str) -> None:
        self.arrangement = validate_arrangement(self.input_format, arrangement, self.arrangements)

    def languages(self) -> List[str]:
        return resolve_languages(self.input_format, self.arrangement, self.custom_text, self.arrangements)
