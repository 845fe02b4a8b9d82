"""Unit tests for the translation client and response parsing."""
import json
import unittest
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from openai import APIConnectionError

from conftest import make_chat_response
from icu_translator.errors import (
    ConfigurationError,
    ResponseEmptyError,
    ResponseParseError,
    ResponseShapeError,
    TranslationServiceError
)
from icu_translator.translation_client import (
    ServiceTranslation,
    TranslationClient,
    parse_translation_response
)
from icu_translator.translation_request import build_translation_request


class TestParseTranslationResponse:

    def test_valid_array_is_normalized(self):
        body = json.dumps([
            {"original": "Hi", "translations": {"fr": "Salut", "es": "Hola"}},
        ])

        results = parse_translation_response(body)

        assert results == [ServiceTranslation(original="Hi", translations={"fr": "Salut", "es": "Hola"})]

    def test_empty_array_is_a_valid_empty_result(self):
        assert parse_translation_response("[]") == []

    @pytest.mark.parametrize("body", [None, "", "   \n"])
    def test_empty_body(self, body):
        with pytest.raises(ResponseEmptyError):
            parse_translation_response(body)

    @pytest.mark.parametrize("body", ["not json", "[{\"original\": \"Hi\",", "{'single': 'quotes'}"])
    def test_unparseable_body(self, body):
        with pytest.raises(ResponseParseError):
            parse_translation_response(body)

    @pytest.mark.parametrize("body", ['{"original": "Hi"}', '"text"', '42', 'null'])
    def test_non_array_top_level(self, body):
        with pytest.raises(ResponseShapeError):
            parse_translation_response(body)

    def test_missing_fields_are_defaulted(self):
        body = json.dumps([{"translations": {"fr": "Salut"}}, {"original": "Bye"}, "garbage", None])

        results = parse_translation_response(body)

        assert results == [
            ServiceTranslation(original="", translations={"fr": "Salut"}),
            ServiceTranslation(original="Bye", translations={}),
            ServiceTranslation(original="", translations={}),
            ServiceTranslation(original="", translations={}),
        ]

    def test_non_string_translations_are_dropped(self):
        body = json.dumps([{"original": "Hi", "translations": {"fr": "Salut", "es": None, "de": 3}}])

        results = parse_translation_response(body)

        assert results[0].translations == {"fr": "Salut"}

    def test_markdown_code_fence_is_stripped(self):
        body = "```json\n[{\"original\": \"Hi\", \"translations\": {\"fr\": \"Salut\"}}]\n```"

        results = parse_translation_response(body)

        assert results[0].translations == {"fr": "Salut"}


class TestResponseSchemaValidation(unittest.TestCase):

    def test_schema_mismatch_is_logged_not_raised(self):
        schema = build_translation_request(["Hi"], ["fr", "es"]).output_schema
        body = json.dumps([{"original": "Hi", "translations": {"fr": "Salut"}}])

        with self.assertLogs("icu_translator.translation_client", level="WARNING") as logs:
            results = parse_translation_response(body, schema)

        self.assertEqual(results[0].translations, {"fr": "Salut"})
        self.assertTrue(any("did not fully match" in line for line in logs.output))


class TestTranslationClientConstruction(unittest.TestCase):

    def test_missing_api_key_is_a_configuration_error(self):
        with patch('icu_translator.translation_client.AsyncOpenAI') as mock_openai:
            with self.assertRaises(ConfigurationError):
                TranslationClient(api_key=None, model_name='gpt-4o-mini')
            with self.assertRaises(ConfigurationError):
                TranslationClient(api_key='', model_name='gpt-4o-mini')
        mock_openai.assert_not_called()

    def test_api_key_is_injected(self):
        with patch('icu_translator.translation_client.AsyncOpenAI') as mock_openai:
            client = TranslationClient(api_key='sk-test', model_name='gpt-4o-mini')
        mock_openai.assert_called_once_with(api_key='sk-test')
        self.assertIs(client.client, mock_openai.return_value)

    def test_from_config(self):
        app_config = MagicMock(
            openai_api_key='sk-test', model_name='gpt-4o', temperature=0.1, request_timeout=30.0
        )
        with patch('icu_translator.translation_client.AsyncOpenAI'):
            client = TranslationClient.from_config(app_config)
        self.assertEqual(client.model_name, 'gpt-4o')
        self.assertEqual(client.temperature, 0.1)
        self.assertEqual(client.request_timeout, 30.0)


class TestTranslationClientTranslate(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.openai_client = MagicMock()
        self.openai_client.chat.completions.create = AsyncMock()
        self.client = TranslationClient(
            api_key=None, model_name='gpt-4o-mini', openai_client=self.openai_client
        )
        self.request = build_translation_request(['Hi', 'Bye'], ['fr'])

    async def test_sends_prompts_and_returns_items(self):
        self.openai_client.chat.completions.create.return_value = make_chat_response(json.dumps([
            {"original": "Hi", "translations": {"fr": "Salut"}},
            {"original": "Bye", "translations": {"fr": "Au revoir"}},
        ]))

        results = await self.client.translate(self.request)

        self.assertEqual([r.original for r in results], ['Hi', 'Bye'])
        kwargs = self.openai_client.chat.completions.create.call_args.kwargs
        self.assertEqual(kwargs['model'], 'gpt-4o-mini')
        self.assertEqual(kwargs['messages'][0]['role'], 'system')
        self.assertEqual(kwargs['messages'][0]['content'], self.request.system_prompt)
        self.assertEqual(kwargs['messages'][1]['content'], self.request.user_prompt)

    async def test_single_call_without_retry_on_parse_failure(self):
        self.openai_client.chat.completions.create.return_value = make_chat_response("Sorry, I cannot do that.")

        with self.assertRaises(ResponseParseError):
            await self.client.translate(self.request)
        self.assertEqual(self.openai_client.chat.completions.create.await_count, 1)

    async def test_empty_message_content(self):
        self.openai_client.chat.completions.create.return_value = make_chat_response(None)

        with self.assertRaises(ResponseEmptyError):
            await self.client.translate(self.request)

    async def test_api_error_is_wrapped(self):
        self.openai_client.chat.completions.create.side_effect = APIConnectionError(request=MagicMock())

        with self.assertRaises(TranslationServiceError) as ctx:
            await self.client.translate(self.request)
        self.assertNotIsInstance(ctx.exception, ResponseParseError)
        self.assertIn('APIConnectionError', str(ctx.exception))


if __name__ == '__main__':
    unittest.main()
