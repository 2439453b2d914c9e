"""Tests for loading and cleaning the raw survey export."""

import pandas as pd
import pytest

from survey_report_generator import (
    REQUIRED_COLUMNS,
    SchemaError,
    clean_survey_data,
    load_survey_data,
)


# =========================================================================
# Column shape
# =========================================================================

class TestColumnShape:
    def test_fourteen_columns_succeeds(self, raw_export):
        result = clean_survey_data(raw_export)
        assert list(result.columns) == list(REQUIRED_COLUMNS)

    def test_thirteen_columns_raises(self, raw_export):
        with pytest.raises(SchemaError, match="13 columns, expected 14"):
            clean_survey_data(raw_export.drop(columns=['pdf_export_title']))

    def test_fifteen_columns_raises(self, raw_export):
        raw = raw_export.assign(extra='x')
        with pytest.raises(SchemaError, match="15 columns, expected 14"):
            clean_survey_data(raw)

    def test_missing_bookkeeping_column_raises(self, raw_export):
        raw = raw_export.rename(columns={'pdf_loop': 'loop'})
        with pytest.raises(SchemaError, match="pdf_loop"):
            clean_survey_data(raw)

    def test_missing_required_field_raises(self, raw_export):
        raw = raw_export.rename(columns={'pdf_export_country': 'region'})
        with pytest.raises(SchemaError, match="country"):
            clean_survey_data(raw)

    def test_schema_error_is_value_error(self, raw_export):
        with pytest.raises(ValueError):
            clean_survey_data(raw_export.iloc[:, :5])

    def test_input_not_modified(self, raw_export):
        before = raw_export.copy()
        clean_survey_data(raw_export)
        pd.testing.assert_frame_equal(raw_export, before)


# =========================================================================
# Sub-item renumbering
# =========================================================================

class TestRenumbering:
    def test_sparse_and_missing_numbers_become_dense(self, make_raw_export):
        raw = make_raw_export([
            ('R1', 'q7c', None, 'Stem', 'first', '1'),
            ('R1', 'q7c', '3', 'Stem', 'second', '2'),
            ('R1', 'q7c', None, 'Stem', 'third', '3'),
        ])
        result = clean_survey_data(raw)
        assert result['sub_item_index'].tolist() == [1, 2, 3]
        assert result['sub_item_text'].tolist() == ['first', 'second', 'third']

    def test_numbering_restarts_per_question(self, raw_export):
        result = clean_survey_data(raw_export)
        q5a = result[result['question_id'] == 'q5a']['sub_item_index'].tolist()
        q6a = result[result['question_id'] == 'q6a']['sub_item_index'].tolist()
        assert q5a == [1, 2]
        assert q6a == [1]

    def test_questions_are_grouped_and_stable(self, raw_export):
        first = clean_survey_data(raw_export)
        second = clean_survey_data(raw_export)
        pd.testing.assert_frame_equal(first, second)

        qids = first['question_id'].tolist()
        assert qids == sorted(qids)


# =========================================================================
# Field cleanup
# =========================================================================

class TestFieldCleanup:
    def test_ampersand_in_customer(self, raw_export):
        result = clean_survey_data(raw_export)
        customers = result[result['respondent_id'] == 'R1']['customer'].unique()
        assert customers.tolist() == ['A and B']
        assert not result['customer'].str.contains('&').any()

    def test_leading_and_removed_from_response(self, make_raw_export):
        raw = make_raw_export([
            ('R1', 'q4', None, 'Stem', 'x', ', and something else  '),
            ('R1', 'q4', None, 'Stem', 'y', 'bread, and butter'),
        ])
        result = clean_survey_data(raw)
        assert result['response_value'].tolist() == ['something else', 'bread, and butter']

    def test_curly_apostrophe_in_sub_item(self, make_raw_export):
        raw = make_raw_export([
            ('R1', 'q5a', '1', 'Stem', 'Vendor’s support', '4'),
        ])
        result = clean_survey_data(raw)
        assert result['sub_item_text'].iloc[0] == "Vendor's support"

    def test_tags_stripped_from_stems_and_labels(self, raw_export):
        result = clean_survey_data(raw_export)
        assert not result['question_stem_text'].str.contains('<', na=False).any()
        stem = result[result['question_id'] == 'q3']['question_stem_text'].iloc[0]
        assert stem == 'Which product lines do you use?'

    def test_missing_sub_item_text_stays_missing(self, raw_export):
        result = clean_survey_data(raw_export)
        assert result[result['question_id'] == 'q3']['sub_item_text'].isna().all()


# =========================================================================
# Incomplete respondents
# =========================================================================

class TestDropIncomplete:
    def _with_missing_title(self, raw_export):
        raw = raw_export.copy()
        raw.loc[raw['pdf_export_respid'] == 'R2', 'pdf_export_title'] = None
        return raw

    def test_kept_by_default(self, raw_export):
        result = clean_survey_data(self._with_missing_title(raw_export))
        assert 'R2' in result['respondent_id'].tolist()

    def test_dropped_when_requested(self, raw_export):
        result = clean_survey_data(
            self._with_missing_title(raw_export), drop_incomplete=True
        )
        assert 'R2' not in result['respondent_id'].tolist()
        assert {'R1', 'R3'} <= set(result['respondent_id'])


# =========================================================================
# load_survey_data
# =========================================================================

class TestLoadSurveyData:
    def test_reads_all_columns_as_text(self, export_file):
        df = load_survey_data(export_file)
        assert len(df.columns) == 14
        assert df['response'].map(lambda v: isinstance(v, str) or pd.isna(v)).all()

    def test_blank_cells_are_missing(self, export_file):
        df = load_survey_data(export_file)
        assert df[df['qid'] == 'q3']['sub_qid'].isna().all()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_survey_data(tmp_path / 'nope.tsv')

    def test_round_trip_through_cleaning(self, export_file):
        result = clean_survey_data(load_survey_data(export_file))
        assert set(result['respondent_id']) == {'R1', 'R2', 'R3'}
