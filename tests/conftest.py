# Tests configuration for survey_report_generator
import logging
import pytest
import pandas as pd
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

RAW_COLUMNS = [
    'pdf_loop', 'responseid',
    'pdf_export_respid', 'pdf_export_last_name', 'pdf_export_first_name',
    'pdf_export_title', 'pdf_export_customer', 'pdf_export_country',
    'complete_datetime', 'qid', 'sub_qid', 'main_q_text', 'sub_q_text',
    'response',
]

CLEAN_COLUMNS = [
    'respondent_id', 'first_name', 'last_name', 'title', 'customer',
    'country', 'completed_at', 'question_id', 'sub_item_index',
    'question_stem_text', 'sub_item_text', 'response_value',
]

RESPONDENTS = {
    'R1': {
        'last_name': 'Lovelace', 'first_name': 'Ada', 'title': 'CTO',
        'customer': 'A & B', 'country': 'UK',
        'completed': '2025-05-01 00:00:01',
    },
    'R2': {
        'last_name': 'Hopper', 'first_name': 'Grace', 'title': 'Director',
        'customer': 'Navy/Labs', 'country': 'US',
        'completed': '2025-08-05 12:59:00',
    },
    'R3': {
        'last_name': 'Turing', 'first_name': 'Alan', 'title': 'Lead',
        'customer': 'Bletchley', 'country': 'UK',
        'completed': '2025-09-01 09:00:00',
    },
}

# (respid, qid, sub_qid, main_q_text, sub_q_text, response)
ANSWERS = [
    ('R1', 'q3', None, '<b>Which product lines</b> do you use?', None,
     '[Vendor] [Sector 1], [Vendor] [Sector 3] (main line, daily), and Other'),
    ('R1', 'q5a', '1', 'How satisfied are you with <i>delivery</i>?', 'On time', '4'),
    ('R1', 'q5a', '2', 'How satisfied are you with <i>delivery</i>?', 'Complete', '5'),
    ('R1', 'q6a', '1', 'Support & service', 'Response time', '3'),
    ('R1', 'q5c', '1', 'Pricing', 'Value for money', '2'),
    ('R2', 'q3', None, '<b>Which product lines</b> do you use?', None,
     '[Vendor] [Sector 2]'),
    ('R2', 'q5b', '1', 'Quality', 'Build quality', '5'),
    ('R3', 'q3', None, '<b>Which product lines</b> do you use?', None,
     '[Vendor] [Sector 4]'),
    ('R3', 'q5d', '1', 'Training', 'Course material', '1'),
]


def _raw_row(respid, qid, sub_qid, main_q_text, sub_q_text, response):
    person = RESPONDENTS[respid]
    return {
        'pdf_loop': '1',
        'responseid': f'resp_{respid}',
        'pdf_export_respid': respid,
        'pdf_export_last_name': person['last_name'],
        'pdf_export_first_name': person['first_name'],
        'pdf_export_title': person['title'],
        'pdf_export_customer': person['customer'],
        'pdf_export_country': person['country'],
        'complete_datetime': person['completed'],
        'qid': qid,
        'sub_qid': sub_qid,
        'main_q_text': main_q_text,
        'sub_q_text': sub_q_text,
        'response': response,
    }


@pytest.fixture
def raw_export():
    """Raw 14-column export for three respondents."""
    return pd.DataFrame([_raw_row(*a) for a in ANSWERS], columns=RAW_COLUMNS)


@pytest.fixture
def make_raw_export():
    """Factory for raw exports built from (respid, qid, sub_qid, stem, label, response) tuples."""
    def _make(answers):
        return pd.DataFrame([_raw_row(*a) for a in answers], columns=RAW_COLUMNS)
    return _make


@pytest.fixture
def make_clean_data():
    """Factory for already cleaned rows: (qid, stem, label, response) for one respondent."""
    def _make(rows, respondent_id='R1'):
        records = []
        for i, (qid, stem, label, response) in enumerate(rows, start=1):
            records.append({
                'respondent_id': respondent_id,
                'first_name': 'Ada',
                'last_name': 'Lovelace',
                'title': 'CTO',
                'customer': 'Analytical Engines',
                'country': 'UK',
                'completed_at': '2025-06-01 10:00:00',
                'question_id': qid,
                'sub_item_index': i,
                'question_stem_text': stem,
                'sub_item_text': label,
                'response_value': response,
            })
        return pd.DataFrame(records, columns=CLEAN_COLUMNS)
    return _make


@pytest.fixture
def export_file(tmp_path, raw_export):
    """Raw export written as a tab-delimited file."""
    path = tmp_path / 'anon_data.tsv'
    raw_export.to_csv(path, sep='\t', index=False)
    return path


@pytest.fixture(autouse=True)
def reset_logger():
    """Drop handlers installed by setup_logging() during a test."""
    yield
    logging.getLogger('SurveyReportGenerator').handlers.clear()
    logging.getLogger('SurveyReportGenerator').setLevel(logging.NOTSET)
