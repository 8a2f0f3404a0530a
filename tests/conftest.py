import os
from pathlib import Path

import pytest

from fitcalc.core.knowledge.tolerance import ReferenceIndex, ReferenceRow, reconcile_dataset, load_raw_dataset
from fitcalc.core.knowledge.tolerance.zones import Kind

REPO_ROOT = Path(__file__).resolve().parents[1]
RAW_DATASET_PATH = REPO_ROOT / "data" / "knowledge" / "iso286_reference_raw.json"


# List of environment variables that may be modified by tests
_ENV_VARS_TO_ISOLATE = [
    "REFERENCE_INDEX_PATH",
    "REFERENCE_RAW_PATH",
    "RECONCILE_DROP_EMPTY",
    "RECONCILE_TIE_BREAK",
    "RECONCILE_SIGN_PATTERNS",
    "ZONE_SORT_MODE",
    "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def env_isolation():
    """Isolate environment variables between tests."""
    backup = {k: os.environ.get(k) for k in _ENV_VARS_TO_ISOLATE}
    try:
        yield
    finally:
        for k, v in backup.items():
            if v is None:
                os.environ.pop(k, None)
            else:
                os.environ[k] = v


@pytest.fixture(autouse=True)
def settings_isolation():
    """Drop cached settings and reference index so env changes take effect."""
    from fitcalc.api.dependencies import reset_reference_index
    from fitcalc.core.config import reset_settings

    reset_settings()
    reset_reference_index()
    try:
        yield
    finally:
        reset_settings()
        reset_reference_index()


@pytest.fixture(scope="session")
def raw_dataset():
    return load_raw_dataset(RAW_DATASET_PATH)


@pytest.fixture(scope="session")
def shipped_index(raw_dataset) -> ReferenceIndex:
    """Index reconciled from the shipped raw dataset."""
    return reconcile_dataset(raw_dataset).index


@pytest.fixture
def small_index() -> ReferenceIndex:
    """Synthetic table at bucket 6 (18-30 mm) for isolated engine tests."""
    rows = [
        ReferenceRow(Kind.HOLE, 6, "7", 11, 21, 0),  # H7
        ReferenceRow(Kind.HOLE, 6, "6", 11, 13, 0),  # H6
        ReferenceRow(Kind.HOLE, 6, "8", 8, 53, 20),  # F8
        ReferenceRow(Kind.HOLE, 6, "01", 11, 1, 0),  # H01
        ReferenceRow(Kind.SHAFT, 6, "6", 40, -7, -20),  # g6
        ReferenceRow(Kind.SHAFT, 6, "6", 41, 0, -13),  # h6
        ReferenceRow(Kind.SHAFT, 6, "7", 41, 0, -21),  # h7
        ReferenceRow(Kind.SHAFT, 6, "6", 44, 15, 2),  # k6
        ReferenceRow(Kind.SHAFT, 6, "6", 47, 35, 22),  # p6
        ReferenceRow(Kind.SHAFT, 6, "5", 47, 31, 22),  # p5
        ReferenceRow(Kind.SHAFT, 6, "6", 43, 6, -6),  # js6
    ]
    return ReferenceIndex(rows)
