"""API dependency providers.

The reference index is loaded (or reconciled from the raw dataset) once per
process and shared read-only by every request.
"""

import logging
import threading
from typing import Optional

from fastapi import Depends

from fitcalc.core.config import Settings, get_settings
from fitcalc.core.knowledge.tolerance import (
    FitCalculator,
    ReferenceIndex,
    load_raw_dataset,
    reconcile_dataset,
)

logger = logging.getLogger(__name__)

_INDEX: Optional[ReferenceIndex] = None
_INDEX_LOCK = threading.Lock()


def build_reference_index(settings: Settings) -> ReferenceIndex:
    """
    Load the configured index artifact, or reconcile the raw dataset.

    Raises:
        MalformedReferenceDataset: when the artifact or dataset is unusable
    """
    index_path = settings.resolve_path(settings.REFERENCE_INDEX_PATH)
    if index_path is not None:
        return ReferenceIndex.load(index_path)

    raw_path = settings.resolve_path(settings.REFERENCE_RAW_PATH)
    logger.info("No prebuilt index configured; reconciling %s", raw_path, extra={"source": str(raw_path)})
    result = reconcile_dataset(
        load_raw_dataset(raw_path),
        drop_empty=settings.RECONCILE_DROP_EMPTY,
        tie_break=settings.RECONCILE_TIE_BREAK,
        patterns=settings.RECONCILE_SIGN_PATTERNS,
    )
    return result.index


def get_reference_index() -> ReferenceIndex:
    global _INDEX
    if _INDEX is None:
        with _INDEX_LOCK:
            if _INDEX is None:
                _INDEX = build_reference_index(get_settings())
    return _INDEX


def reset_reference_index() -> None:
    """Forget the cached index (tests swap datasets between runs)."""
    global _INDEX
    with _INDEX_LOCK:
        _INDEX = None


def get_fit_calculator(index: ReferenceIndex = Depends(get_reference_index)) -> FitCalculator:
    return FitCalculator(index, zone_sort=get_settings().ZONE_SORT_MODE)
