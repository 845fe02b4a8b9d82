import json
import unittest
from unittest.mock import patch, MagicMock

from icu_translator.translation_request import (
    build_translation_request,
    build_translation_schema,
    count_tokens
)


class TestBuildTranslationSchema(unittest.TestCase):

    def test_one_string_property_per_language(self):
        schema = build_translation_schema(['fr', 'es'])

        translations = schema['items']['properties']['translations']
        self.assertEqual(set(translations['properties']), {'fr', 'es'})
        for code, prop in translations['properties'].items():
            self.assertEqual(prop['type'], 'string')
            self.assertIn(code, prop['description'])
        self.assertEqual(set(translations['required']), {'fr', 'es'})

    def test_array_of_objects_with_original_and_translations(self):
        schema = build_translation_schema(['de'])

        self.assertEqual(schema['type'], 'array')
        self.assertEqual(schema['items']['type'], 'object')
        self.assertEqual(schema['items']['properties']['original']['type'], 'string')
        self.assertEqual(schema['items']['required'], ['original', 'translations'])

    def test_property_set_matches_input_for_many_codes(self):
        codes = ['en', 'fr', 'zh-CN', 'pt-BR', 'sr-Latn']
        schema = build_translation_schema(codes)
        self.assertEqual(set(schema['items']['properties']['translations']['properties']), set(codes))


class TestBuildTranslationRequest(unittest.TestCase):

    def test_request_carries_strings_languages_and_schema(self):
        strings = ['Hello {name}', '{count, plural, one{# file} other{# files}}']

        request = build_translation_request(strings, ['fr', 'es'])

        self.assertEqual(request.source_strings, strings)
        self.assertEqual(request.languages, ['fr', 'es'])
        self.assertIn(json.dumps(strings, ensure_ascii=False), request.user_prompt)
        self.assertIn('fr, es', request.system_prompt)
        self.assertIn('{name}', request.system_prompt)
        self.assertIn('placeholder', request.system_prompt.lower())
        self.assertEqual(
            set(request.output_schema['items']['properties']['translations']['properties']),
            {'fr', 'es'}
        )

    def test_repeated_strings_and_codes_are_sent_once(self):
        request = build_translation_request(['Hi', 'Bye', 'Hi'], ['fr', 'fr', 'de'])

        self.assertEqual(request.source_strings, ['Hi', 'Bye'])
        self.assertEqual(request.languages, ['fr', 'de'])

    def test_non_ascii_strings_are_not_escaped(self):
        request = build_translation_request(['Grüße, {name}'], ['fr'])
        self.assertIn('Grüße, {name}', request.user_prompt)

    def test_warns_when_prompt_exceeds_budget(self):
        with patch('icu_translator.translation_request.count_tokens', return_value=5000):
            with self.assertLogs('icu_translator.translation_request', level='WARNING') as logs:
                build_translation_request(['Hi'], ['fr'], max_model_tokens=4000)
        self.assertTrue(any('token budget' in line for line in logs.output))


class TestCountTokens(unittest.TestCase):

    def test_count_tokens_fallback(self):
        with patch('icu_translator.translation_request.tiktoken.encoding_for_model', side_effect=Exception()):
            fake_enc = MagicMock()
            fake_enc.encode.side_effect = lambda s: list(s.split())
            with patch('icu_translator.translation_request.tiktoken.get_encoding', return_value=fake_enc):
                count = count_tokens('one two three')
        self.assertEqual(count, 3)

    def test_count_tokens_whitespace_fallback(self):
        with patch('icu_translator.translation_request.tiktoken.encoding_for_model', side_effect=Exception()):
            with patch('icu_translator.translation_request.tiktoken.get_encoding', side_effect=Exception()):
                count = count_tokens('one two three four')
        self.assertEqual(count, 4)


if __name__ == '__main__':
    unittest.main()
