"""Client for the LLM-backed translation service."""
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import jsonschema
from openai import (
    APIConnectionError,
    APIStatusError,
    APITimeoutError,
    AsyncOpenAI,
    OpenAIError,
    RateLimitError
)
from openai.types.chat import (
    ChatCompletionSystemMessageParam,
    ChatCompletionUserMessageParam
)

from icu_translator.errors import (
    ConfigurationError,
    ResponseEmptyError,
    ResponseParseError,
    ResponseShapeError,
    TranslationServiceError
)
from icu_translator.translation_request import TranslationRequest

logger = logging.getLogger(__name__)

_CODE_FENCE_PATTERN = re.compile(r'^```[\w-]*\s*\n?(.*?)\n?\s*```$', re.DOTALL)


@dataclass
class ServiceTranslation:
    """One item of the translation service's answer."""
    original: str
    translations: Dict[str, str] = field(default_factory=dict)


def _strip_code_fence(text: str) -> str:
    match = _CODE_FENCE_PATTERN.match(text)
    return match.group(1).strip() if match else text


def _normalize_item(item: Any) -> ServiceTranslation:
    """Coerce one response item into a ServiceTranslation without failing the batch."""
    if not isinstance(item, dict):
        logger.warning("Ignoring malformed response item: %r", item)
        return ServiceTranslation(original='', translations={})

    original = item.get('original')
    if not isinstance(original, str):
        original = ''

    raw_translations = item.get('translations')
    translations: Dict[str, str] = {}
    if isinstance(raw_translations, dict):
        for code, value in raw_translations.items():
            if isinstance(value, str):
                translations[code] = value
            else:
                logger.debug("Dropping non-string '%s' translation for '%s'.", code, original)
    return ServiceTranslation(original=original, translations=translations)


def parse_translation_response(
        response_text: Optional[str],
        output_schema: Optional[Dict[str, Any]] = None
) -> List[ServiceTranslation]:
    """
    Parse and normalize the translation service's response body.

    Args:
        response_text (Optional[str]): The raw response body.
        output_schema (Optional[Dict[str, Any]]): The schema the response was
            requested with. A mismatch is only logged.

    Returns:
        List[ServiceTranslation]: One item per array element. An empty array
        gives an empty list.

    Raises:
        ResponseEmptyError: If the body is empty.
        ResponseParseError: If the body is not valid JSON.
        ResponseShapeError: If the JSON top level is not an array.
    """
    text = (response_text or '').strip()
    if not text:
        raise ResponseEmptyError("Received an empty response from the translation service.")

    text = _strip_code_fence(text)
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as json_exc:
        logger.debug("Invalid translation response (JSON Decode Error):\n---\n%s\n---", text)
        raise ResponseParseError(
            f"Failed to parse the translation response: {json_exc.msg} "
            f"at line {json_exc.lineno}, column {json_exc.colno}."
        ) from json_exc

    if not isinstance(parsed, list):
        raise ResponseShapeError(
            f"Translation response is not in the expected array format (got a JSON {type(parsed).__name__})."
        )

    if output_schema is not None:
        try:
            jsonschema.validate(instance=parsed, schema=output_schema)
        except jsonschema.ValidationError as schema_exc:
            logger.warning(
                "Translation response did not fully match the requested schema: %s", schema_exc.message
            )

    return [_normalize_item(item) for item in parsed]


class TranslationClient:
    """
    Sends translation requests to the OpenAI chat completions API.

    The API key is passed in explicitly; the client never reads it from the
    environment. A single request is made per call, without retries.
    """

    def __init__(
            self,
            api_key: Optional[str],
            model_name: str,
            temperature: float = 0.3,
            request_timeout: float = 120.0,
            openai_client: Optional[AsyncOpenAI] = None
    ):
        if openai_client is None:
            if not api_key:
                raise ConfigurationError(
                    "OPENAI_API_KEY is not set. Add it to your environment or .env file."
                )
            openai_client = AsyncOpenAI(api_key=api_key)
        self.client = openai_client
        self.model_name = model_name
        self.temperature = temperature
        self.request_timeout = request_timeout

    @classmethod
    def from_config(cls, app_config) -> 'TranslationClient':
        """Create a client from an ``AppConfig``."""
        return cls(
            api_key=app_config.openai_api_key,
            model_name=app_config.model_name,
            temperature=app_config.temperature,
            request_timeout=app_config.request_timeout,
        )

    async def translate(self, request: TranslationRequest) -> List[ServiceTranslation]:
        """
        Translate one batch.

        Args:
            request (TranslationRequest): The request built for the batch.

        Returns:
            List[ServiceTranslation]: The normalized translations.

        Raises:
            TranslationServiceError: If the service call fails, or one of its
                subclasses if the response body is unusable.
        """
        logger.info(
            "Requesting translations of %d string(s) into %d language(s) from '%s'.",
            len(request.source_strings), len(request.languages), self.model_name
        )
        try:
            response = await self.client.chat.completions.create(
                model=self.model_name,
                messages=[
                    ChatCompletionSystemMessageParam(role="system", content=request.system_prompt),
                    ChatCompletionUserMessageParam(role="user", content=request.user_prompt)
                ],
                temperature=self.temperature,
                timeout=self.request_timeout,
            )
        except (RateLimitError, APITimeoutError, APIConnectionError, APIStatusError, OpenAIError) as api_exc:
            logger.error("API error occurred: %s - %s", api_exc.__class__.__name__, api_exc)
            raise TranslationServiceError(
                f"Failed to fetch translation from the translation service ({api_exc.__class__.__name__})."
            ) from api_exc

        response_text = response.choices[0].message.content if response.choices else None
        results = parse_translation_response(response_text, request.output_schema)
        logger.info("Received %d translation item(s).", len(results))
        return results
