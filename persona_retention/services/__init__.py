"""
Persona Retention Services

Business logic of the persona retention dashboard. Every stage below is a
pure function of its inputs; only the session module holds state.

Services:
- csv_parser: quote-aware CSV parsing with delimiter detection
- normalization: raw rows -> user-month records (column heuristics, merging)
- personas: persona catalog and default keyword dictionary
- classification: keyword matching and dominant persona resolution
- retention: explicit flag parsing and presence inference
- aggregation: month x persona statistics, MoM deltas, dense series
- pipeline: the full parse -> aggregate pass with ingestion notices
- insights: spotlight, alerts, table filtering, month feedback
- export: CSV downloads
- session: in-memory dashboard state with last-write-wins recomputation
"""

# =============================================================================
# CSV Parsing & Normalization
# =============================================================================

from persona_retention.services.csv_parser import (
    CsvParseError,
    detect_delimiter,
    parse_csv,
    strip_bom,
)
from persona_retention.services.normalization import (
    extract_month,
    extract_text,
    extract_user_id,
    month_from_date_string,
    normalize_rows,
)

# =============================================================================
# Personas & Classification
# =============================================================================

from persona_retention.services.personas import (
    DEFAULT_KEYWORDS,
    PERSONAS,
    PERSONAS_BY_PRIORITY,
    PERSONA_KEYS,
    KeywordDictionary,
    default_keywords,
    get_persona,
    persona_label,
    persona_priority,
)
from persona_retention.services.classification import (
    classify_text,
    match_flags,
    parse_keyword_input,
    resolve_dominant_persona,
)

# =============================================================================
# Retention & Aggregation
# =============================================================================

from persona_retention.services.retention import (
    build_presence_index,
    next_month,
    parse_active_flag,
    resolve_active_next_month,
)
from persona_retention.services.aggregation import (
    AggregationResult,
    aggregate,
    to_percent,
)

# =============================================================================
# Pipeline, Insights & Export
# =============================================================================

from persona_retention.services.pipeline import (
    PipelineResult,
    decode_csv_bytes,
    run_pipeline,
)
from persona_retention.services.insights import (
    build_alerts,
    build_spotlight,
    filter_table_rows,
    month_feedback,
)
from persona_retention.services.export import (
    export_rows,
    to_csv_text,
)

# =============================================================================
# Session
# =============================================================================

from persona_retention.services.session import (
    DashboardSession,
    UnknownPersonaError,
    get_session,
)


__all__ = [
    # CSV parsing & normalization
    'CsvParseError',
    'detect_delimiter',
    'parse_csv',
    'strip_bom',
    'extract_month',
    'extract_text',
    'extract_user_id',
    'month_from_date_string',
    'normalize_rows',
    # Personas & classification
    'DEFAULT_KEYWORDS',
    'PERSONAS',
    'PERSONAS_BY_PRIORITY',
    'PERSONA_KEYS',
    'KeywordDictionary',
    'default_keywords',
    'get_persona',
    'persona_label',
    'persona_priority',
    'classify_text',
    'match_flags',
    'parse_keyword_input',
    'resolve_dominant_persona',
    # Retention & aggregation
    'build_presence_index',
    'next_month',
    'parse_active_flag',
    'resolve_active_next_month',
    'AggregationResult',
    'aggregate',
    'to_percent',
    # Pipeline, insights & export
    'PipelineResult',
    'decode_csv_bytes',
    'run_pipeline',
    'build_alerts',
    'build_spotlight',
    'filter_table_rows',
    'month_feedback',
    'export_rows',
    'to_csv_text',
    # Session
    'DashboardSession',
    'UnknownPersonaError',
    'get_session',
]
