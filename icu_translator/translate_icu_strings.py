import argparse
import asyncio
import logging
import sys
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from tqdm import tqdm

from icu_translator.app_config import load_app_config
from icu_translator.errors import (
    ConfigurationError,
    FormatError,
    ResponseEmptyError,
    ResponseParseError,
    ResponseShapeError,
    TranslationServiceError,
    TranslatorError,
    ValidationError
)
from icu_translator.input_parsers import INPUT_FORMATS, parse_input, unique_originals
from icu_translator.language_sets import CUSTOM_ARRANGEMENT, LanguageSelection
from icu_translator.result_export import EXPORT_SCOPES, EXPORT_SCOPE_ALL, export_tsv
from icu_translator.result_stitcher import (
    TranslationResult,
    find_missing_languages,
    find_placeholder_mismatches,
    stitch_results
)
from icu_translator.translation_client import TranslationClient
from icu_translator.translation_request import build_translation_request

# Named explicitly so the logger stays under the package logger when run with -m.
logger = logging.getLogger('icu_translator.translate_icu_strings')

# parse, build request, call the service, stitch
_PIPELINE_STEPS = 4


@dataclass
class TranslationOutcome:
    """What one translate action produced: results, or a message explaining why not."""
    languages: List[str] = field(default_factory=list)
    results: List[TranslationResult] = field(default_factory=list)
    error_message: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error_message is None


def describe_error(exc: Exception) -> str:
    """Turn a pipeline error into the single message shown to the user."""
    if isinstance(exc, FormatError):
        return str(exc)
    if isinstance(exc, ValidationError):
        return str(exc)
    if isinstance(exc, ConfigurationError):
        return f"Translation is not configured: {exc}"
    if isinstance(exc, ResponseEmptyError):
        return "Translation failed: the translation service returned nothing. Please try again."
    if isinstance(exc, ResponseParseError):
        return ("Translation failed: the translation service returned output that could not be read as JSON. "
                "Try again, or translate fewer strings at once.")
    if isinstance(exc, ResponseShapeError):
        return "Translation failed: the translation service returned data in an unexpected structure."
    if isinstance(exc, TranslationServiceError):
        return f"Translation failed: {exc}"
    if isinstance(exc, TranslatorError):
        return f"Translation failed: {exc}"
    return "An unknown error occurred during translation."


async def translate_input(
        raw_text: str,
        input_format: str,
        languages: Sequence[str],
        client: TranslationClient,
        max_model_tokens: Optional[int] = None,
        show_progress: bool = False
) -> List[TranslationResult]:
    """
    Parse pasted input, translate it into ``languages`` and join the results back
    to their identifiers.

    With ``show_progress`` a tqdm bar on stderr follows the pipeline steps.

    Raises:
        ValidationError: If there is nothing to translate or no language selected.
        FormatError: If the input does not match ``input_format``.
        TranslationServiceError: If the translation service call fails.
    """
    if not raw_text.strip():
        raise ValidationError("Please enter at least one string to translate.")
    if not languages:
        raise ValidationError("Please select at least one target language.")

    with tqdm(total=_PIPELINE_STEPS, desc="Translating", unit="step", file=sys.stderr,
              leave=False, disable=not show_progress) as progress:
        entries = parse_input(raw_text, input_format)
        if not entries:
            raise ValidationError("Nothing to translate: the input contains no strings.")
        logger.info("Parsed %d string(s) from '%s' input.", len(entries), input_format)
        progress.update(1)

        request = build_translation_request(
            unique_originals(entries),
            languages,
            model_name=client.model_name,
            max_model_tokens=max_model_tokens
        )
        progress.update(1)

        progress.set_postfix_str(f"{len(request.source_strings)} string(s) x {len(request.languages)} language(s)")
        service_results = await client.translate(request)
        progress.update(1)

        results = stitch_results(entries, service_results)
        progress.update(1)

    for original, code, translated in find_placeholder_mismatches(results):
        logger.warning("Placeholder mismatch in '%s' translation of '%s': '%s'", code, original, translated)
    missing = find_missing_languages(results, request.languages)
    if missing:
        logger.warning("%d string(s) are missing at least one requested translation.", len(missing))
        for original, codes in missing.items():
            logger.debug("Missing %s for '%s'.", ', '.join(codes), original)

    return results


async def run_translation(
        raw_text: str,
        selection: LanguageSelection,
        app_config=None,
        client: Optional[TranslationClient] = None,
        show_progress: bool = False
) -> TranslationOutcome:
    """
    Run one translate action and never raise.

    Every error is logged and turned into a single human readable message on
    the returned outcome.

    Args:
        raw_text (str): The pasted input.
        selection (LanguageSelection): The chosen format and languages.
        app_config: The ``AppConfig`` used to create a client when none is given.
        client (Optional[TranslationClient]): An existing client.
        show_progress (bool): Whether to draw a progress bar on stderr.

    Returns:
        TranslationOutcome: The results or the error message.
    """
    outcome = TranslationOutcome()
    try:
        outcome.languages = selection.languages()
        if not raw_text.strip():
            raise ValidationError("Please enter at least one string to translate.")
        if not outcome.languages:
            raise ValidationError("Please select at least one target language.")
        if client is None:
            if app_config is None:
                raise ConfigurationError("No application configuration was provided.")
            client = TranslationClient.from_config(app_config)
        max_model_tokens = app_config.max_model_tokens if app_config is not None else None
        outcome.results = await translate_input(
            raw_text, selection.input_format, outcome.languages, client, max_model_tokens,
            show_progress=show_progress
        )
        logger.info("Translation finished with %d result(s).", len(outcome.results))
    except TranslatorError as exc:
        logger.error("Translation failed: %s: %s", exc.__class__.__name__, exc)
        outcome.error_message = describe_error(exc)
    except Exception as exc:
        logger.error("An unexpected error occurred: %s", exc, exc_info=True)
        outcome.error_message = describe_error(exc)
    return outcome


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Translate ICU message strings from ARB, JS/TS or plain text input."
    )
    parser.add_argument('input', nargs='?', default='-',
                        help="File to read the strings from, '-' for stdin (default).")
    parser.add_argument('--format', dest='input_format', choices=INPUT_FORMATS,
                        help="Input format. Defaults to the configured default_input_format.")
    parser.add_argument('--arrangement',
                        help="Language arrangement to translate into. Falls back to the first one "
                             "available for the input format.")
    parser.add_argument('--languages', default='',
                        help="Comma separated language codes; implies the custom arrangement.")
    parser.add_argument('--scope', choices=EXPORT_SCOPES, default=EXPORT_SCOPE_ALL,
                        help="Which columns to export.")
    parser.add_argument('--output', help="Write the tab separated table to this file instead of stdout.")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Command line entry point: translate the input and print a tab separated table.
    """
    args = _build_arg_parser().parse_args(argv)
    app_config = load_app_config()

    input_format = args.input_format or app_config.default_input_format
    arrangement = CUSTOM_ARRANGEMENT if args.languages else (args.arrangement or app_config.default_arrangement)
    selection = LanguageSelection(
        input_format,
        arrangement=arrangement,
        custom_text=args.languages,
        arrangements=app_config.arrangements
    )

    try:
        if args.input == '-':
            raw_text = sys.stdin.read()
        else:
            with open(args.input, 'r', encoding='utf-8-sig') as input_file:
                raw_text = input_file.read()
    except OSError as e:
        print(f"Could not read input '{args.input}': {e}", file=sys.stderr)
        return 1

    outcome = asyncio.run(run_translation(
        raw_text, selection, app_config=app_config, show_progress=sys.stderr.isatty()
    ))
    if not outcome.succeeded:
        print(outcome.error_message, file=sys.stderr)
        return 1

    table = export_tsv(outcome.results, outcome.languages, selection.input_format, args.scope)
    if args.output:
        try:
            with open(args.output, 'w', encoding='utf-8') as output_file:
                output_file.write(table + '\n')
        except OSError as e:
            print(f"Could not write output '{args.output}': {e}", file=sys.stderr)
            return 1
        logger.info("Wrote %d row(s) to '%s'.", len(outcome.results), args.output)
    else:
        print(table)
    return 0


if __name__ == "__main__":
    sys.exit(main())
