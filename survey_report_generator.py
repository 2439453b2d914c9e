"""
Survey Report Generator
=======================

A tool to turn a long-format survey export into personalized "Online Results"
report documents, one per respondent.

The export holds one row per respondent x question x sub-item. Rows are
cleaned, restricted to a reporting window, and split by respondent. Each
respondent's answer to the branch question decides which follow-up question
blocks appear in their report; every block is rendered as a LaTeX table
inside a Quarto document that the publishing toolchain turns into a PDF.

Features:
    - Declarative column cleanup for the raw export (drop, de-prefix, rename)
    - Inclusive date-window filtering of responses
    - Conditional report sections driven by the branch question
    - LaTeX-safe escaping of every survey-supplied string
    - Run folder per day with a small run log
    - CLI and GUI interfaces

Usage:
    CLI: python survey_report_generator.py -s 2025-05-01 -e 2025-08-05 data.tsv
    GUI: python survey_report_generator.py (no arguments)
"""

import csv
import logging
import os
import re
import sys
from datetime import date

import pandas as pd

# Optional GUI support - gracefully degrade if tkinter unavailable
try:
    import tkinter as tk
    from tkinter import filedialog, messagebox, ttk
    TKINTER_AVAILABLE = True
except ImportError:
    TKINTER_AVAILABLE = False


# =============================================================================
# CONSTANTS
# =============================================================================

# Raw exports always carry exactly this many columns
EXPECTED_COLUMN_COUNT = 14

# Export bookkeeping columns that nothing downstream needs
DROP_COLUMNS = ('pdf_loop', 'responseid')

# Prefix the export tool adds to embedded-data columns
COLUMN_PREFIX = 'pdf_export_'

# Export column name -> working column name
RENAME_COLUMNS = {
    'respid': 'respondent_id',
    'complete_datetime': 'completed_at',
    'qid': 'question_id',
    'sub_qid': 'sub_item_index',
    'main_q_text': 'question_stem_text',
    'sub_q_text': 'sub_item_text',
    'response': 'response_value',
}

# Columns every cleaned dataset must provide
REQUIRED_COLUMNS = (
    'respondent_id', 'first_name', 'last_name', 'title', 'customer',
    'country', 'completed_at', 'question_id', 'sub_item_index',
    'question_stem_text', 'sub_item_text', 'response_value',
)

# Respondent metadata that must be present when dropping incomplete rows
RESPONDENT_COLUMNS = ('last_name', 'first_name', 'country', 'customer', 'title')

DEFAULT_TIMESTAMP_FIELD = 'completed_at'

# The question whose answer selects the follow-up blocks (q5x ... q10x)
BRANCH_QUESTION_ID = 'q3'
DEPENDENT_QUESTION_NUMBERS = tuple(range(5, 11))

# Branch answer label -> letter suffix of the dependent question ids.
# Order here is the order sections appear in a report.
SELECTION_LOOKUP = (
    ('[Vendor] [Sector 1]', 'a'),
    ('[Vendor] [Sector 2]', 'b'),
    ('[Vendor] [Sector 3]', 'c'),
    ('[Vendor] [Sector 4]', 'd'),
)

# LaTeX specials and their safe forms. Backslash must stay first.
LATEX_REPLACEMENTS = (
    ('\\', '\\textbackslash{}'),
    ('&', '\\&'),
    ('%', '\\%'),
    ('$', '\\$'),
    ('#', '\\#'),
    ('_', '\\_'),
    ('{', '\\{'),
    ('}', '\\}'),
    ('~', '\\textasciitilde{}'),
    ('^', '\\textasciicircum{}'),
)

# Table pieces (booktabs + xcolor are expected in the document preamble)
TABLE_HEADER = (
    "\\begin{tabular}{p{0.6\\linewidth} p{0.2\\linewidth}}\n"
    "\\toprule\n"
    "\\textbf{Item} & \\textbf{Score} \\\\ \\midrule"
)
TABLE_ROW = "\\addlinespace[0.2cm]\n{label} & {score} \\\\ \\addlinespace[0.2cm]"
ROW_SEPARATOR = "\\arrayrulecolor[gray]{0.8}\\hline\\arrayrulecolor{black}"
TABLE_FOOTER = "\\bottomrule\n\\end{tabular}"

SECTION_RULE = "\\vspace{-1em}\\hrule\\vspace{0.5em}"
SCALE_FOOTNOTE = (
    "\\scriptsize 5-point scale: 1=Strongly Disagree; 5=Strongly Agree"
    "\\normalsize"
)

# Output layout
DEFAULT_OUTPUT_DIR = 'output'
REPORT_FILE_TEMPLATE = 'report_{}.qmd'
RUN_LOG_NAME = 'log.txt'
OUTPUT_FILE_TEMPLATE = 'Online Results - {customer}, {first_name} {last_name}'

# Input file extensions we expect from the export tool
INPUT_EXTENSIONS = ('.tsv', '.txt', '.csv')


# =============================================================================
# LOGGING SETUP
# =============================================================================

logger = logging.getLogger('SurveyReportGenerator')


def setup_logging(debug=False, log_file=None):
    """
    Configure logging with optional file output.

    Args:
        debug: If True, sets logging level to DEBUG; otherwise WARNING.
        log_file: Optional path to write log output to the file.
    """
    level = logging.DEBUG if debug else logging.WARNING
    logger.setLevel(level)
    logger.handlers.clear()

    formatter = logging.Formatter(
        '%(asctime)s | %(levelname)-8s | %(message)s',
        datefmt='%H:%M:%S'
    )
    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(formatter)
    logger.addHandler(console)

    # File output also records where each message came from
    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s | %(levelname)-8s | %(funcName)s:%(lineno)d | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        logger.addHandler(file_handler)


# =============================================================================
# ERRORS
# =============================================================================

class SchemaError(ValueError):
    """Raised when an export does not have the expected columns."""


class AlignmentError(ValueError):
    """Raised when table labels and responses cannot be paired row for row."""


class EmptyWindowError(ValueError):
    """Raised when no responses fall inside the reporting window."""


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def as_text(value):
    """
    Convert a cell value to text without trimming it.

    Args:
        value: Any scalar (maybe None, NaN, or any type).

    Returns:
        The value as a string, or '' for missing values.
    """
    if value is None:
        return ''
    if not isinstance(value, str) and pd.isna(value):
        return ''
    return str(value)


def safe_str(value):
    """Safely convert any value to a stripped string ('' for NaN/None)."""
    return as_text(value).strip()


def is_empty(value):
    """
    Check if a value is empty or null.

    Sequences count as empty when they have no elements, scalars when they
    are NaN, None, or blank.
    """
    if isinstance(value, (list, tuple, pd.Series)):
        return len(value) == 0
    return safe_str(value) == ''


def _apply_elementwise(func, text):
    # Strings map to strings, sequences map element by element
    if isinstance(text, pd.Series):
        return text.map(lambda v: func(as_text(v)))
    if isinstance(text, (list, tuple)):
        return [func(as_text(v)) for v in text]
    return func(as_text(text))


def parse_datetime(value):
    """
    Parse a window bound into a pandas Timestamp.

    Accepts datetime objects and ISO-like strings such as '2025-05-01' or
    '2025-05-01 00:00:01'.

    Raises:
        ValueError: If the value cannot be parsed.
    """
    try:
        stamp = pd.Timestamp(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Cannot parse date/time '{value}': {e}") from e
    if pd.isna(stamp):
        raise ValueError(f"Cannot parse date/time '{value}'")
    return stamp


# =============================================================================
# TEXT SANITIZING
# =============================================================================

def strip_html_tags(text):
    """
    Remove HTML tags from survey text.

    Question stems exported from the survey tool may contain formatting
    tags. Every '<...>' run is removed (non-greedy, no nesting awareness);
    nothing is substituted in its place.

    Args:
        text: A string, a list/tuple of strings, or a pandas Series.

    Returns:
        Same shape as the input with tags removed. Missing values become ''.
    """
    return _apply_elementwise(lambda s: re.sub(r'<.*?>', '', s), text)


def _escape_latex_regex(text):
    # Backslash first, so the backslashes added below are left alone
    text = re.sub(r'\\', r'\\textbackslash{}', text)
    text = re.sub(r'([#$%&_{}])', r'\\\1', text)
    text = re.sub(r'~', r'\\textasciitilde{}', text)
    return re.sub(r'\^', r'\\textasciicircum{}', text)


def _escape_latex_fixed(text):
    for special, replacement in LATEX_REPLACEMENTS:
        text = text.replace(special, replacement)
    return text


def escape_latex(text):
    """
    Escape LaTeX special characters (regex-based).

    Replacement order matters: backslashes become \\textbackslash{} first,
    then each of # $ % & _ { } gets a leading backslash, then ~ and ^ become
    \\textasciitilde{} and \\textasciicircum{}. Braces introduced by the
    backslash step are themselves escaped by the second step, so a lone
    backslash comes out as \\textbackslash\\{\\}. In the rendered PDF that
    shows as a backslash followed by literal braces.

    Escaping is not idempotent: running it on already escaped text escapes
    the backslashes again.

    Args:
        text: A string, a list/tuple of strings, or a pandas Series.

    Returns:
        Same shape as the input with LaTeX specials escaped.
    """
    return _apply_elementwise(_escape_latex_regex, text)


def escape_latex_inline(text):
    """
    Escape LaTeX special characters with a fixed, literal mapping.

    Applies LATEX_REPLACEMENTS one after another using plain string
    replacement. Produces the same output as escape_latex().
    """
    return _apply_elementwise(_escape_latex_fixed, text)


# =============================================================================
# DATA LOADING AND CLEANING
# =============================================================================

def load_survey_data(path, delimiter='\t'):
    """
    Read a raw survey export.

    Every column is read as text, quoting is disabled (free-text answers
    contain stray quote characters), and malformed lines are reported
    instead of aborting the read.

    Args:
        path: Path to the delimited export file.
        delimiter: Field delimiter, tab by default.

    Returns:
        DataFrame with all columns as strings.

    Raises:
        FileNotFoundError: If the file doesn't exist.
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"File not found: {path}")

    if not str(path).lower().endswith(INPUT_EXTENSIONS):
        logger.warning(f"Unexpected file extension for survey export: {path}")

    logger.info(f"Loading survey export: {path}")
    df = pd.read_csv(
        path,
        sep=delimiter,
        encoding='utf-8-sig',
        dtype=str,
        quoting=csv.QUOTE_NONE,
        on_bad_lines='warn',
    )
    logger.info(f"Loaded {len(df)} rows, {len(df.columns)} columns")
    return df


def _strip_prefix(column):
    name = str(column)
    if name.startswith(COLUMN_PREFIX):
        return name[len(COLUMN_PREFIX):]
    return name


def _clean_response(value):
    # Multi-select exports sometimes start with a dangling ", and"
    if not isinstance(value, str):
        return value
    return re.sub(r'^, and', '', value).strip()


def _replace_text(value, old, new):
    if not isinstance(value, str):
        return value
    return value.replace(old, new)


def _strip_tags_keep_missing(value):
    if not isinstance(value, str):
        return value
    return strip_html_tags(value)


def clean_survey_data(raw_df, drop_incomplete=False):
    """
    Clean a raw survey export into the working dataset.

    Steps, in order:
        1. Drop the export bookkeeping columns (DROP_COLUMNS).
        2. Remove COLUMN_PREFIX from column names and apply RENAME_COLUMNS.
        3. Fill missing sub-item numbers with 1.
        4. Remove a leading ", and" from responses and trim them.
        5. Renumber sub-items 1..N within each question id.
        6. Replace '&' with 'and' in customer names.
        7. Replace right single quotation marks in sub-item text, and strip
           HTML tags from stem and sub-item text.
        8. Optionally drop rows missing respondent metadata.

    Step 5 discards the original numbering. Questions are emitted grouped by
    question id in sorted order; rows keep their original order within a
    question.

    Args:
        raw_df: DataFrame straight from load_survey_data().
        drop_incomplete: If True, drop rows with no last_name, first_name,
            country, customer, or title.

    Returns:
        Cleaned DataFrame with the REQUIRED_COLUMNS.

    Raises:
        SchemaError: If the export does not have EXPECTED_COLUMN_COUNT
            columns or a required column is missing.
    """
    cols = len(raw_df.columns)
    if cols != EXPECTED_COLUMN_COUNT:
        raise SchemaError(
            f"raw_df has {cols} columns, expected {EXPECTED_COLUMN_COUNT}"
        )

    missing = [c for c in DROP_COLUMNS if c not in raw_df.columns]
    if missing:
        raise SchemaError(f"Export is missing column(s): {', '.join(missing)}")

    # --- Column cleanup ---
    df = raw_df.drop(columns=list(DROP_COLUMNS))
    df = df.rename(columns=_strip_prefix).rename(columns=RENAME_COLUMNS)

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise SchemaError(
            f"Export is missing required field(s) after renaming: {', '.join(missing)}"
        )

    # --- Field cleanup ---
    df['sub_item_index'] = df['sub_item_index'].fillna(1)
    df['response_value'] = df['response_value'].map(_clean_response)

    # Dense 1..N numbering per question (stable sort keeps row order)
    df = df.sort_values('question_id', kind='stable', na_position='last')
    df = df.reset_index(drop=True)
    df['sub_item_index'] = df.groupby('question_id', sort=False, dropna=False).cumcount() + 1

    df['customer'] = df['customer'].map(lambda v: _replace_text(v, '&', 'and'))
    df['sub_item_text'] = df['sub_item_text'].map(
        lambda v: _replace_text(v, '\u2019', "'")
    )
    for col in ('question_stem_text', 'sub_item_text'):
        df[col] = df[col].map(_strip_tags_keep_missing)

    if drop_incomplete:
        before = len(df)
        df = df.dropna(subset=list(RESPONDENT_COLUMNS)).reset_index(drop=True)
        logger.info(f"Dropped {before - len(df)} rows with incomplete respondent info")

    logger.info(
        f"Cleaned data: {len(df)} rows, {df['question_id'].nunique()} questions"
    )
    return df


# =============================================================================
# WINDOW FILTERING
# =============================================================================

def filter_window(data, start, end, timestamp_field=DEFAULT_TIMESTAMP_FIELD):
    """
    Keep rows whose timestamp lies inside [start, end] (both inclusive).

    Rows with an unparseable timestamp never match. An empty result is
    returned as-is; deciding whether that is fatal is up to the caller.

    Args:
        data: Cleaned survey DataFrame.
        start: Window start (datetime or parseable string).
        end: Window end (datetime or parseable string).
        timestamp_field: Name of the timestamp column.

    Returns:
        Subset DataFrame with a fresh index.
    """
    if timestamp_field not in data.columns:
        raise SchemaError(f"Timestamp column '{timestamp_field}' not found")

    start = parse_datetime(start)
    end = parse_datetime(end)

    # Stamp layout can differ from row to row
    stamps = pd.to_datetime(data[timestamp_field], format='mixed', errors='coerce')
    mask = (stamps >= start) & (stamps <= end)

    subset = data.loc[mask].reset_index(drop=True)
    logger.info(f"{len(subset)} of {len(data)} rows between {start} and {end}")
    return subset


# =============================================================================
# QUESTION ACCESS
# =============================================================================

def _question_rows(data, qid):
    return data.loc[data['question_id'] == qid]


def get_question_stem(data, qid):
    """
    Get the stem text shared by all rows of a question.

    Returns '' when the question has no rows. A question carrying more than
    one distinct stem is a data anomaly: the first one wins and a warning is
    logged (see find_duplicate_stems()).
    """
    stems = _question_rows(data, qid)['question_stem_text'].dropna().drop_duplicates()
    if stems.empty:
        return ''
    if len(stems) > 1:
        logger.warning(
            f"Question {qid} has {len(stems)} distinct stems; using the first"
        )
    return as_text(stems.iloc[0])


def get_responses(data, qid):
    """Get all responses for a question, in dataset row order."""
    return _question_rows(data, qid)['response_value'].tolist()


def get_sub_item_labels(data, qid):
    """Get all sub-item labels for a question, aligned with get_responses()."""
    return _question_rows(data, qid)['sub_item_text'].tolist()


def find_duplicate_stems(data):
    """
    Find questions whose rows disagree on the stem text.

    Args:
        data: Cleaned survey DataFrame.

    Returns:
        Dictionary mapping question id to the list of distinct stems, for
        every question with more than one.
    """
    stems = (
        data.dropna(subset=['question_stem_text'])
        .groupby('question_id', sort=False)['question_stem_text']
        .unique()
    )
    return {qid: list(values) for qid, values in stems.items() if len(values) > 1}


# =============================================================================
# TABLE RENDERING
# =============================================================================

def create_table(responses, labels):
    """
    Build a two-column LaTeX table of sub-items and scores.

    Items go in the left column, scores in the right. A light gray rule
    separates consecutive rows; the last row has none. Inputs are inserted
    verbatim, so callers must escape them first.

    Args:
        responses: Sequence of response values (length N >= 1).
        labels: Sequence of sub-item labels, parallel to responses.

    Returns:
        A single LaTeX string.

    Raises:
        AlignmentError: If the sequences differ in length or are empty.
    """
    responses = list(responses)
    labels = list(labels)

    if len(responses) != len(labels):
        raise AlignmentError(
            f"Got {len(responses)} responses for {len(labels)} labels"
        )
    if not responses:
        raise AlignmentError("Cannot build a table with no rows")

    last = len(responses) - 1
    rows = []
    for i, (label, score) in enumerate(zip(labels, responses)):
        row = TABLE_ROW.format(label=as_text(label), score=as_text(score))
        if i < last:
            row = f"{row}\n{ROW_SEPARATOR}"
        rows.append(row)

    return '\n'.join([TABLE_HEADER] + rows + [TABLE_FOOTER])


# =============================================================================
# CONDITIONAL SECTIONS
# =============================================================================

def parse_branch_selections(response_text):
    """
    Split an (already escaped) branch answer into selection labels.

    The cleanup order matters: parentheticals may contain commas, so they
    go before the comma split.

    Args:
        response_text: The respondent's branch question answer.

    Returns:
        List of selection labels, in answer order.
    """
    text = safe_str(response_text)

    # Two passes handle one level of nested parentheses
    text = re.sub(r'\s*\([^()]*\)', '', text)
    text = re.sub(r'\s*\([^()]*\)', '', text)

    text = re.sub(r'\band\b', '', text)
    text = re.sub(r'\s{2,}', ' ', text)
    text = text.replace(', ', ';')

    return [part.strip() for part in text.split(';') if part.strip()]


def dependent_question_ids(code):
    """Question ids that belong to a selection code, e.g. 'a' -> q5a..q10a."""
    return [f"q{number}{code}" for number in DEPENDENT_QUESTION_NUMBERS]


def resolve_selection_codes(selections, lookup=None):
    """
    Map selection labels to codes, in lookup order.

    Labels missing from the lookup are dropped.

    Args:
        selections: Labels from parse_branch_selections().
        lookup: Sequence of (label, code) pairs; SELECTION_LOOKUP by default.

    Returns:
        List of (label, code) pairs the respondent selected.
    """
    lookup = SELECTION_LOOKUP if lookup is None else lookup
    chosen = set(selections)

    matched = [(label, code) for label, code in lookup if escape_latex(label) in chosen]

    known = {escape_latex(label) for label, _ in lookup}
    for selection in selections:
        if selection not in known:
            logger.debug(f"Ignoring unrecognized selection: {selection}")

    return matched


def build_conditional_sections(data, lookup=None):
    """
    Generate report sections for the follow-up questions of each selection.

    Reads the respondent's branch question answer, maps it to selection
    codes, and for each code that has at least one dependent question in
    the data emits:

        1) A section header naming the selection, and
        2) For each dependent question with any content, its id and stem,
           a table of sub-items and scores, and the rating scale footnote.

    Args:
        data: One respondent's cleaned rows.
        lookup: Sequence of (label, code) pairs; SELECTION_LOOKUP by default.

    Returns:
        Markup string; '' when no selection applies.
    """
    branch_answers = escape_latex(get_responses(data, BRANCH_QUESTION_ID))
    selections = []
    for answer in branch_answers:
        selections.extend(parse_branch_selections(answer))

    selected = resolve_selection_codes(selections, lookup)

    # Skip codes whose question block is missing from the data
    available = set(data['question_id'].dropna().unique())
    selected = [
        (label, code) for label, code in selected
        if any(qid in available for qid in dependent_question_ids(code))
    ]

    blocks = []
    for label, code in selected:
        blocks.append(f"# Evaluation of {escape_latex(label)}\n{SECTION_RULE}")

        for qid in dependent_question_ids(code):
            stem = escape_latex(get_question_stem(data, qid))
            responses = escape_latex(get_responses(data, qid))
            labels = escape_latex(get_sub_item_labels(data, qid))

            if is_empty(stem) and is_empty(responses) and is_empty(labels):
                continue

            blocks.append('\n'.join([
                f"## **{qid}.** {stem}",
                create_table(responses, labels),
                SCALE_FOOTNOTE,
            ]))

    return '\n\n'.join(blocks)


# =============================================================================
# RESPONDENT HANDLING
# =============================================================================

def list_respondents(data):
    """Unique respondent ids in order of first appearance."""
    return data['respondent_id'].dropna().drop_duplicates().tolist()


def get_respondent_data(data, respondent_id):
    """Return a copy of one respondent's rows."""
    rows = data.loc[data['respondent_id'] == respondent_id]
    return rows.reset_index(drop=True).copy()


def get_respondent_info(data, respondent_id):
    """
    Extract the identification fields used to name a respondent's report.

    Slashes in the customer name are replaced with '-' so the name can be
    used in a file name.

    Args:
        data: Cleaned survey DataFrame.
        respondent_id: Respondent to describe.

    Returns:
        Dictionary with 'respondent_id', 'first_name', 'last_name' and
        'customer' keys.
    """
    rows = get_respondent_data(data, respondent_id)

    def first_value(col):
        values = rows[col].dropna().unique()
        if len(values) > 1:
            logger.warning(
                f"Respondent {respondent_id} has {len(values)} values for {col}; "
                "using the first"
            )
        return safe_str(values[0]) if len(values) else ''

    return {
        'respondent_id': respondent_id,
        'first_name': first_value('first_name'),
        'last_name': first_value('last_name'),
        'customer': first_value('customer').replace('/', '-'),
    }


def output_file_name(info):
    """Report title / PDF base name for a respondent."""
    return OUTPUT_FILE_TEMPLATE.format(
        customer=info['customer'],
        first_name=info['first_name'],
        last_name=info['last_name'],
    )


# =============================================================================
# DOCUMENT ASSEMBLY
# =============================================================================

def build_report_body(respondent_data, lookup=None):
    """Markup for the body of one respondent's report."""
    body = build_conditional_sections(respondent_data, lookup)
    if not body:
        logger.info("No conditional sections apply to this respondent")
    return body


def build_document(info, body, template_text=None):
    """
    Assemble a Quarto document for one respondent.

    The YAML front matter names the output PDF and passes the respondent id
    as a document parameter. A static template (preamble, fixed narrative)
    may sit between the front matter and the generated body.

    Args:
        info: Dictionary from get_respondent_info().
        body: Markup from build_report_body().
        template_text: Optional static template content.

    Returns:
        Complete document text.
    """
    output_file = f"{output_file_name(info)}.pdf".replace('"', '\\"')
    header = '\n'.join([
        '---',
        f'output-file: "{output_file}"',
        'params:',
        f"  respid: {info['respondent_id']}",
        '---',
    ])

    parts = [header]
    if template_text:
        parts.append(template_text.rstrip('\n'))
    if body:
        parts.append(body)

    return '\n'.join(parts) + '\n'


def write_run_log(directory, start, end, respondent_count):
    """
    Write the run log next to the generated documents.

    Returns:
        Path of the written log file.
    """
    path = os.path.join(directory, RUN_LOG_NAME)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(f"Start Date: {start}\n")
        f.write(f"End Date: {end}\n")
        f.write(f"Number of Respondents: {respondent_count}\n")
    return path


# =============================================================================
# MAIN PROCESSING
# =============================================================================

def process_survey(input_path, start, end, output_dir=DEFAULT_OUTPUT_DIR,
                   template_path=None, drop_incomplete=False,
                   timestamp_field=DEFAULT_TIMESTAMP_FIELD, lookup=None,
                   progress_callback=None, run_date=None):
    """
    Generate one report document per respondent in the reporting window.

    Main entry point for report generation. Documents are written to a
    per-day folder under output_dir, together with a run log. Compiling the
    documents to PDF is left to the publishing toolchain.

    Args:
        input_path: Path to the raw survey export.
        start: Window start (inclusive).
        end: Window end (inclusive).
        output_dir: Root output folder.
        template_path: Optional static template inserted into each document.
        drop_incomplete: Drop rows missing respondent metadata.
        timestamp_field: Column used for the window.
        lookup: Selection lookup override.
        progress_callback: Optional function for progress updates (GUI).
        run_date: Date used to name the run folder; today by default.

    Returns:
        Tuple of (respondent_count, documents_written).

    Raises:
        EmptyWindowError: If no responses fall inside the window.
    """
    logger.info(f"Processing: {input_path}")

    start = parse_datetime(start)
    end = parse_datetime(end)
    if start > end:
        raise ValueError(f"Window start {start} is after window end {end}")

    # --- Read template ---
    template_text = None
    if template_path:
        if not os.path.exists(template_path):
            raise FileNotFoundError(f"Template not found: {template_path}")
        with open(template_path, 'r', encoding='utf-8') as f:
            template_text = f.read()

    # --- Load, clean and filter ---
    if progress_callback:
        progress_callback("Reading survey export...")
    raw_df = load_survey_data(input_path)

    if progress_callback:
        progress_callback("Cleaning data...")
    data = clean_survey_data(raw_df, drop_incomplete=drop_incomplete)

    filtered = filter_window(data, start, end, timestamp_field=timestamp_field)
    if filtered.empty:
        raise EmptyWindowError(f"No data in selected window ({start} to {end})")

    respondents = list_respondents(filtered)
    logger.info(f"{len(respondents)} unique respondents in the selected window")

    duplicates = find_duplicate_stems(filtered)
    if duplicates:
        logger.warning(
            f"{len(duplicates)} question(s) have more than one stem: "
            f"{', '.join(sorted(duplicates))}"
        )

    # --- Write documents ---
    run_dir = os.path.join(output_dir, (run_date or date.today()).isoformat())
    os.makedirs(run_dir, exist_ok=True)

    written = 0
    for idx, respondent_id in enumerate(respondents, start=1):
        if progress_callback:
            progress_callback(f"Building report {idx} of {len(respondents)}...")

        info = get_respondent_info(filtered, respondent_id)
        body = build_report_body(get_respondent_data(filtered, respondent_id), lookup)
        document = build_document(info, body, template_text)

        path = os.path.join(run_dir, REPORT_FILE_TEMPLATE.format(respondent_id))
        with open(path, 'w', encoding='utf-8') as f:
            f.write(document)
        logger.debug(f"Wrote {path} ({output_file_name(info)})")
        written += 1

    write_run_log(run_dir, start, end, len(respondents))
    logger.info(f"Complete: {written} documents in {run_dir}")

    return len(respondents), written


# =============================================================================
# GUI (OPTIONAL)
# =============================================================================

if TKINTER_AVAILABLE:

    class SurveyReportGeneratorGUI:
        """
        Simple GUI for the Survey Report Generator.

        Provides file selection dialogs, window entry fields and progress
        indication.
        """

        def __init__(self, root):
            """Initialize the GUI."""
            self.root = root
            self.root.title("Survey Report Generator")
            self.root.geometry("550x560")
            self.root.resizable(False, False)

            self.input_file = tk.StringVar()
            self.template_file = tk.StringVar()
            self.output_dir = tk.StringVar(value=DEFAULT_OUTPUT_DIR)
            self.start = tk.StringVar()
            self.end = tk.StringVar()
            self.drop_incomplete = tk.BooleanVar(value=False)

            self._build_ui()

        def _build_ui(self):
            """Build the GUI layout."""
            frame = ttk.Frame(self.root, padding="20")
            frame.grid(row=0, column=0, sticky="nsew")

            ttk.Label(
                frame,
                text="Survey Report Generator",
                font=('Helvetica', 16, 'bold')
            ).grid(row=0, column=0, columnspan=3, pady=(0, 20))

            # Input export
            ttk.Label(frame, text="Survey export:").grid(row=1, column=0, sticky="w")
            ttk.Entry(
                frame, textvariable=self.input_file, width=45
            ).grid(row=2, column=0, columnspan=2, sticky="ew")
            ttk.Button(
                frame, text="Browse", command=self._browse_input
            ).grid(row=2, column=2, padx=(5, 0))

            # Template (optional)
            ttk.Label(
                frame, text="Report template (optional):"
            ).grid(row=3, column=0, sticky="w", pady=(10, 0))
            ttk.Entry(
                frame, textvariable=self.template_file, width=45
            ).grid(row=4, column=0, columnspan=2, sticky="ew")
            ttk.Button(
                frame, text="Browse", command=self._browse_template
            ).grid(row=4, column=2, padx=(5, 0))

            # Output folder
            ttk.Label(
                frame, text="Output folder:"
            ).grid(row=5, column=0, sticky="w", pady=(10, 0))
            ttk.Entry(
                frame, textvariable=self.output_dir, width=45
            ).grid(row=6, column=0, columnspan=2, sticky="ew")
            ttk.Button(
                frame, text="Browse", command=self._browse_output
            ).grid(row=6, column=2, padx=(5, 0))

            # Reporting window
            ttk.Label(
                frame, text="Start (YYYY-MM-DD [HH:MM:SS]):"
            ).grid(row=7, column=0, sticky="w", pady=(10, 0))
            ttk.Entry(frame, textvariable=self.start, width=25).grid(
                row=8, column=0, sticky="w"
            )
            ttk.Label(
                frame, text="End (YYYY-MM-DD [HH:MM:SS]):"
            ).grid(row=9, column=0, sticky="w", pady=(10, 0))
            ttk.Entry(frame, textvariable=self.end, width=25).grid(
                row=10, column=0, sticky="w"
            )

            ttk.Checkbutton(
                frame, text="Drop rows with incomplete respondent info",
                variable=self.drop_incomplete
            ).grid(row=11, column=0, columnspan=3, sticky="w", pady=(15, 0))

            self.progress = ttk.Progressbar(
                frame, mode='indeterminate', length=350
            )
            self.progress.grid(
                row=12, column=0, columnspan=3, pady=(20, 5), sticky="ew"
            )

            self.status = ttk.Label(frame, text="Ready", foreground='gray')
            self.status.grid(row=13, column=0, columnspan=3)

            self.btn = ttk.Button(
                frame, text="Generate Reports", command=self._generate
            )
            self.btn.grid(row=14, column=0, columnspan=3, pady=(15, 0))

        def _browse_input(self):
            """Handle input file selection."""
            path = filedialog.askopenfilename(
                filetypes=[("Survey export", "*.tsv *.txt *.csv")]
            )
            if path:
                self.input_file.set(path)

        def _browse_template(self):
            """Handle template file selection."""
            path = filedialog.askopenfilename(filetypes=[("Quarto", "*.qmd")])
            if path:
                self.template_file.set(path)

        def _browse_output(self):
            """Handle output folder selection."""
            path = filedialog.askdirectory()
            if path:
                self.output_dir.set(path)

        def _update_status(self, msg):
            """Update status label."""
            self.status.config(text=msg)
            self.root.update_idletasks()

        def _generate(self):
            """Handle generate button click."""
            if not self.input_file.get():
                messagebox.showerror("Error", "Please select a survey export")
                return

            if not self.start.get() or not self.end.get():
                messagebox.showerror("Error", "Please enter a start and end date")
                return

            self.btn.config(state='disabled')
            self.progress.start(10)

            try:
                output_dir = self.output_dir.get() or DEFAULT_OUTPUT_DIR
                n_resp, n_docs = process_survey(
                    self.input_file.get(),
                    self.start.get(),
                    self.end.get(),
                    output_dir=output_dir,
                    template_path=self.template_file.get() or None,
                    drop_incomplete=self.drop_incomplete.get(),
                    progress_callback=self._update_status,
                )

                self.progress.stop()
                self._update_status("Complete!")

                msg = (
                    f"Reports generated!\n\n"
                    f"Respondents: {n_resp}\n"
                    f"Documents: {n_docs}"
                )
                if messagebox.askyesno("Success", msg + "\n\nOpen output folder?"):
                    import webbrowser
                    webbrowser.open('file://' + os.path.abspath(output_dir))

            except Exception as e:
                self.progress.stop()
                self._update_status("Error")
                logger.exception("Processing failed")
                messagebox.showerror("Error", str(e))

            finally:
                self.btn.config(state='normal')


# =============================================================================
# COMMAND LINE INTERFACE
# =============================================================================

def print_help():
    print("Survey Report Generator")
    print("")
    print("Usage: python survey_report_generator.py [options] -s START -e END input.tsv")
    print("")
    print("Options:")
    print("  -s, --start DATE      Window start, inclusive (YYYY-MM-DD [HH:MM:SS])")
    print("  -e, --end DATE        Window end, inclusive (YYYY-MM-DD [HH:MM:SS])")
    print(f"  -o, --output DIR      Output folder (default: {DEFAULT_OUTPUT_DIR})")
    print("  -t, --template FILE   Static template inserted into each report")
    print("      --drop-incomplete Drop rows with incomplete respondent info")
    print("  -d, --debug           Verbose logging")
    print("  -l, --log FILE        Write debug log to file")
    print("  -h, --help            Show this help message")
    print("")
    print("Examples:")
    print("  python survey_report_generator.py -s 2025-05-01 -e 2025-08-05 data.tsv")
    print("  python survey_report_generator.py -s '2025-05-01 00:00:01' "
          "-e '2025-08-05 12:59:00' -t report_template.qmd data.tsv")


def main():
    """
    Main entry point for command line and GUI usage.

    If called with arguments, runs in CLI mode.
    If called without arguments, launches GUI (if available).
    """
    if len(sys.argv) > 1:
        # --- CLI mode ---
        args = sys.argv[1:]
        input_path = None
        start = None
        end = None
        output = DEFAULT_OUTPUT_DIR
        template = None
        drop_incomplete = False
        debug = False
        log_file = None

        i = 0
        while i < len(args):
            arg = args[i]

            if arg in ('-d', '--debug'):
                debug = True
            elif arg == '--drop-incomplete':
                drop_incomplete = True
            elif arg in ('-s', '--start'):
                if i + 1 < len(args):
                    start = args[i + 1]
                    i += 1
            elif arg in ('-e', '--end'):
                if i + 1 < len(args):
                    end = args[i + 1]
                    i += 1
            elif arg in ('-o', '--output'):
                if i + 1 < len(args):
                    output = args[i + 1]
                    i += 1
            elif arg in ('-t', '--template'):
                if i + 1 < len(args):
                    template = args[i + 1]
                    i += 1
            elif arg in ('-l', '--log'):
                log_file = args[i + 1] if i + 1 < len(args) else 'debug.log'
                i += 1
            elif arg in ('-h', '--help'):
                print_help()
                sys.exit(0)
            elif not arg.startswith('-'):
                if input_path is None:
                    input_path = arg

            i += 1

        if not input_path:
            print("Error: No input file specified")
            print("Run with --help for usage information")
            sys.exit(1)

        if not start or not end:
            print("Error: Both --start and --end are required")
            print("Run with --help for usage information")
            sys.exit(1)

        setup_logging(debug, log_file)

        try:
            n_resp, n_docs = process_survey(
                input_path, start, end,
                output_dir=output,
                template_path=template,
                drop_incomplete=drop_incomplete,
            )
            print(f"\nGenerated {n_docs} report documents in: {output}")
            print(f"   Respondents: {n_resp}")
        except Exception as e:
            logger.exception("Failed")
            print(f"Error: {e}")
            sys.exit(1)

    else:
        # --- GUI mode ---
        if TKINTER_AVAILABLE:
            root = tk.Tk()
            SurveyReportGeneratorGUI(root)
            root.mainloop()
        else:
            print("Survey Report Generator")
            print("")
            print("GUI requires tkinter. Use CLI instead:")
            print("  python survey_report_generator.py [options] -s START -e END input.tsv")
            print("")
            print("Run with --help for all options.")
            sys.exit(1)


if __name__ == "__main__":
    main()
