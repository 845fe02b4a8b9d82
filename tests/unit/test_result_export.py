"""Unit tests for the tab separated export."""
import pytest

from icu_translator.result_export import export_tsv, shows_id_column
from icu_translator.result_stitcher import TranslationResult


@pytest.fixture
def results():
    return [
        TranslationResult(id='greeting', original='Hello {name}', translations={'fr': 'Bonjour {name}', 'es': 'Hola {name}'}),
        TranslationResult(id='multi', original='Line one\nLine two', translations={'fr': 'Ligne un\nLigne\tdeux'}),
    ]


class TestExportTsv:

    def test_all_columns_with_ids_for_arb(self, results):
        table = export_tsv(results, ['fr', 'es'], 'arb')

        assert table.split('\n') == [
            'greeting\tHello {name}\tBonjour {name}\tHola {name}',
            'multi\tLine one Line two\tLigne un Ligne deux\t',
        ]

    def test_text_input_has_no_id_column(self, results):
        table = export_tsv(results, ['fr'], 'text')

        assert table.split('\n')[0] == 'Hello {name}\tBonjour {name}'

    def test_language_columns_follow_requested_order(self, results):
        table = export_tsv(results[:1], ['es', 'fr'], 'js', scope='translations')

        assert table == 'Hola {name}\tBonjour {name}'

    def test_ids_scope(self, results):
        assert export_tsv(results, ['fr'], 'arb', scope='ids') == 'greeting\nmulti'

    def test_every_row_has_the_same_number_of_cells(self, results):
        rows = export_tsv(results, ['fr', 'es', 'de'], 'arb').split('\n')
        assert {len(row.split('\t')) for row in rows} == {5}

    def test_unknown_scope(self, results):
        with pytest.raises(ValueError):
            export_tsv(results, ['fr'], 'arb', scope='everything')

    def test_empty_results(self):
        assert export_tsv([], ['fr'], 'arb') == ''

    @pytest.mark.parametrize("input_format, expected", [('arb', True), ('js', True), ('text', False)])
    def test_id_column_per_format(self, input_format, expected):
        assert shows_id_column(input_format) is expected
