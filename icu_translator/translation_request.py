import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import tiktoken

logger = logging.getLogger(__name__)

# Tokens kept free for the model's answer when checking the prompt size.
RESPONSE_TOKEN_RESERVE = 1000


@dataclass(frozen=True)
class TranslationRequest:
    """Everything the translation service needs for one batch."""
    system_prompt: str
    user_prompt: str
    output_schema: Dict[str, Any]
    source_strings: List[str]
    languages: List[str]


def count_tokens(text: str, model_name: str = 'gpt-4o-mini') -> int:
    """Count the number of tokens in ``text`` for ``model_name``.

    ``tiktoken.encoding_for_model`` may need to download model data. When that
    fails the function falls back to ``gpt2``, and as a last resort to a simple
    whitespace split.
    """
    try:
        encoding = tiktoken.encoding_for_model(model_name)
    except Exception:
        try:
            encoding = tiktoken.get_encoding("gpt2")
        except Exception:
            return len(text.split())

    try:
        return len(encoding.encode(text))
    except Exception:
        return len(text.split())


def build_translation_schema(language_codes: Sequence[str]) -> Dict[str, Any]:
    """
    Build the JSON Schema of the expected response for ``language_codes``.

    The response is an array with one object per source string. Each object has
    the ``original`` string and a ``translations`` object holding one string
    property per requested language code.

    Args:
        language_codes (Sequence[str]): The requested target language codes.

    Returns:
        Dict[str, Any]: The schema.
    """
    translation_properties = {
        code: {
            "type": "string",
            "description": f"The translation in {code}."
        }
        for code in language_codes
    }

    return {
        "type": "array",
        "description": "A list of translation objects, one for each original English string provided.",
        "items": {
            "type": "object",
            "properties": {
                "original": {
                    "type": "string",
                    "description": "The original English ICU string that was translated."
                },
                "translations": {
                    "type": "object",
                    "properties": translation_properties,
                    "required": list(translation_properties),
                    "description": "An object containing the translations, where each key is a language code."
                }
            },
            "required": ["original", "translations"]
        }
    }


def _build_system_prompt(language_list: str, output_schema: Dict[str, Any]) -> str:
    return f"""
You are a specialized translation tool for software localization.
Your goal is to translate a given list of English strings that follow the ICU Message Format into multiple languages.

**Core Instruction**:
- **Preserve placeholders verbatim**: A placeholder is any text delimited by curly braces, including the braces themselves, such as `{{name}}` or `{{count, plural, =0{{no items}} other{{# items}}}}`. Copy placeholder names, argument types and keywords (`plural`, `select`, `one`, `other`, `=0`, `#`) exactly as they appear.
- **Translate only the surrounding natural language**, including the human readable text inside plural and select branches.
- **Do not add** explanations, quotation marks or any text outside the JSON.

**Language List**:
Provide the translations for the following languages: {language_list}.

**Output Format**:
Respond with a valid JSON array only, with no markdown, that adheres to this JSON Schema:
{json.dumps(output_schema, ensure_ascii=False, indent=2)}

Each object in the array must correspond to one of the original input strings, repeat it unchanged in `original`, and contain its translations. Ensure every requested language is present as a key in the `translations` object for every string.
"""


def build_translation_request(
        source_strings: Sequence[str],
        language_codes: Sequence[str],
        model_name: str = 'gpt-4o-mini',
        max_model_tokens: Optional[int] = None
) -> TranslationRequest:
    """
    Build the prompt and output schema that ask for ``source_strings`` to be
    translated into every language of ``language_codes``.

    Repeated source strings and language codes are sent once.

    Args:
        source_strings (Sequence[str]): The English ICU strings to translate.
        language_codes (Sequence[str]): The target language codes, in display order.
        model_name (str): The model the prompt is sized for.
        max_model_tokens (Optional[int]): When given, a warning is logged if the
            prompt leaves less than the response reserve within this budget.

    Returns:
        TranslationRequest: The request to hand to the translation client.
    """
    strings = list(dict.fromkeys(source_strings))
    languages = list(dict.fromkeys(language_codes))

    output_schema = build_translation_schema(languages)
    system_prompt = _build_system_prompt(', '.join(languages), output_schema)
    user_prompt = f"""
**Input Strings**:
Here is a JSON array of the ICU strings to translate:
{json.dumps(strings, ensure_ascii=False)}
"""

    prompt_tokens = count_tokens(system_prompt + user_prompt, model_name)
    logger.debug(
        "Built translation request: %d string(s), %d language(s), ~%d prompt tokens.",
        len(strings), len(languages), prompt_tokens
    )
    if max_model_tokens and prompt_tokens + RESPONSE_TOKEN_RESERVE > max_model_tokens:
        logger.warning(
            "Translation prompt uses ~%d tokens, leaving less than %d of the %d token budget for the response.",
            prompt_tokens, RESPONSE_TOKEN_RESERVE, max_model_tokens
        )

    return TranslationRequest(
        system_prompt=system_prompt,
        user_prompt=user_prompt,
        output_schema=output_schema,
        source_strings=strings,
        languages=languages,
    )
