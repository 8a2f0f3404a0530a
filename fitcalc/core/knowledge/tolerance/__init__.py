"""
Tolerance and Fits Module.

Reconciles the raw ISO 286 limit-deviation dataset into an immutable
reference index and computes limits and fits for hole/shaft pairs on top
of it with exact micrometre arithmetic.

Reference Standards:
- ISO 286-1:2010 - Geometrical product specifications (GPS) - ISO code system
- ISO 286-2:2010 - Tables of standard tolerance classes and limit deviations
- GB/T 1800.1-2020 - Chinese national standard (equivalent to ISO 286)
"""

from .grades import (
    ITGrade,
    GRADE_LABELS,
    normalize_grade,
    sort_grades,
)
from .size_ranges import (
    SizeRange,
    SIZE_RANGES,
    resolve_bucket,
    resolve_bucket_um,
    validate_ranges,
)
from .zones import (
    Kind,
    ZoneTable,
    DEFAULT_ZONE_TABLE,
    ZONE_CODES,
    Sign,
    SignPattern,
    SIGN_PATTERNS,
    ISO_SIGN_PATTERNS,
    SIGN_PATTERN_TABLES,
)
from .fixed_point import (
    mm_to_um,
    um_to_mm_str,
    mean_half_away_from_zero,
)
from .designation import (
    Designation,
    parse_designation,
    expect_kind,
)
from .reference_index import (
    DeviationPair,
    ReferenceRow,
    ReferenceIndex,
)
from .reconcile import (
    CorrectionRule,
    DEFAULT_CORRECTIONS,
    TieBreak,
    ReconcileReport,
    ReconcileResult,
    TableReconciler,
    score_row,
    reconcile_dataset,
    load_raw_dataset,
)
from .fits import (
    FitType,
    BasisSystem,
    ZoneSortMode,
    FORMULAS,
    FitRequest,
    FitResult,
    FitCalculator,
    classify_fit,
    classify_system,
    compute_limits,
)
from .batch import (
    BATCH_COLUMNS,
    BatchReport,
    parse_batch_line,
    result_to_row,
    run_batch,
)

__all__ = [
    # Grades & sizes
    "ITGrade",
    "GRADE_LABELS",
    "normalize_grade",
    "sort_grades",
    "SizeRange",
    "SIZE_RANGES",
    "resolve_bucket",
    "resolve_bucket_um",
    "validate_ranges",
    # Zones
    "Kind",
    "ZoneTable",
    "DEFAULT_ZONE_TABLE",
    "ZONE_CODES",
    "Sign",
    "SignPattern",
    "SIGN_PATTERNS",
    "ISO_SIGN_PATTERNS",
    "SIGN_PATTERN_TABLES",
    # Arithmetic
    "mm_to_um",
    "um_to_mm_str",
    "mean_half_away_from_zero",
    # Designations
    "Designation",
    "parse_designation",
    "expect_kind",
    # Reference data
    "DeviationPair",
    "ReferenceRow",
    "ReferenceIndex",
    "CorrectionRule",
    "DEFAULT_CORRECTIONS",
    "TieBreak",
    "ReconcileReport",
    "ReconcileResult",
    "TableReconciler",
    "score_row",
    "reconcile_dataset",
    "load_raw_dataset",
    # Fits
    "FitType",
    "BasisSystem",
    "ZoneSortMode",
    "FORMULAS",
    "FitRequest",
    "FitResult",
    "FitCalculator",
    "classify_fit",
    "classify_system",
    "compute_limits",
    # Batch
    "BATCH_COLUMNS",
    "BatchReport",
    "parse_batch_line",
    "result_to_row",
    "run_batch",
]
