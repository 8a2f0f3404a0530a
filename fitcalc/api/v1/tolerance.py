"""Limits and fits API endpoints (ISO 286 / GB/T 1800)."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from fitcalc.api.dependencies import get_fit_calculator
from fitcalc.core.errors import FitCalcError, get_error_status
from fitcalc.core.knowledge.tolerance import FitCalculator, Kind, ZoneSortMode, run_batch

logger = logging.getLogger(__name__)
router = APIRouter()


def _http_error(exc: FitCalcError) -> HTTPException:
    status = get_error_status(exc.code)
    if status >= 500:
        logger.error("Fit calculation failed: %s", exc.message, extra={"error_code": exc.code.value})
    return HTTPException(status_code=status, detail=exc.to_dict())


class FitInputModel(BaseModel):
    D: str = Field(..., description="Nominal diameter in mm, 3 decimals")
    hole: str = Field(..., description="Hole designation, e.g. H7")
    shaft: str = Field(..., description="Shaft designation, e.g. g6")


class ClassificationModel(BaseModel):
    fit_type: str = Field(..., description="clearance / clearance_zero / transition / interference / interference_zero")
    fit_type_description: str
    system: str = Field(..., description="hole_basis / shaft_basis / non_standard")
    system_description: str


class FitResponse(BaseModel):
    input: FitInputModel
    bucket: int = Field(..., description="Nominal size range code (1-17)")
    deviations_um: Dict[str, int]
    deviations_mm: Dict[str, str]
    limits_um: Dict[str, int]
    limits_mm: Dict[str, str]
    means_um: Dict[str, int]
    means_mm: Dict[str, str]
    tolerances_um: Dict[str, int]
    tolerances_mm: Dict[str, str]
    fit_tolerances_um: Dict[str, int]
    fit_tolerances_mm: Dict[str, str]
    clearances_um: Dict[str, int]
    clearances_mm: Dict[str, str]
    interferences_um: Dict[str, int]
    interferences_mm: Dict[str, str]
    classification: ClassificationModel


@router.get("/fit", response_model=FitResponse)
def compute_fit(
    diameter_mm: str = Query(..., min_length=1, description="Nominal diameter in mm, e.g. 25 or 12.5"),
    hole: str = Query(..., min_length=1, description="Hole designation, e.g. H7"),
    shaft: str = Query(..., min_length=1, description="Shaft designation, e.g. g6"),
    calculator: FitCalculator = Depends(get_fit_calculator),
) -> FitResponse:
    try:
        result = calculator.compute(diameter_mm, hole, shaft)
    except FitCalcError as exc:
        raise _http_error(exc) from exc
    return FitResponse(**result.to_dict())


class ZoneOptionsResponse(BaseModel):
    bucket: int
    size_range: str = Field(..., description="Bucket bounds in mm, e.g. (18, 30]")
    hole_zones: List[str]
    shaft_zones: List[str]
    zones: List[str]


@router.get("/options", response_model=ZoneOptionsResponse)
def zone_options(
    diameter_mm: str = Query(..., min_length=1, description="Nominal diameter in mm"),
    mode: Optional[ZoneSortMode] = Query(default=None, description="Zone ordering"),
    calculator: FitCalculator = Depends(get_fit_calculator),
) -> ZoneOptionsResponse:
    try:
        options = calculator.options(diameter_mm, mode)
    except FitCalcError as exc:
        raise _http_error(exc) from exc
    return ZoneOptionsResponse(**options.to_dict())


class GradeOptionsResponse(BaseModel):
    bucket: int
    kind: Kind
    zone: str
    grades: List[str] = Field(..., description='Ascending, "01" before "0"')


@router.get("/options/grades", response_model=GradeOptionsResponse)
def grade_options(
    diameter_mm: str = Query(..., min_length=1, description="Nominal diameter in mm"),
    kind: Kind = Query(..., description="hole or shaft"),
    zone: str = Query(..., min_length=1, max_length=2, description="Zone letter(s), e.g. H or js"),
    calculator: FitCalculator = Depends(get_fit_calculator),
) -> GradeOptionsResponse:
    try:
        options = calculator.grades(diameter_mm, kind, zone)
    except FitCalcError as exc:
        raise _http_error(exc) from exc
    return GradeOptionsResponse(**options.to_dict())


class BatchRecordModel(BaseModel):
    D: Optional[Union[str, int, float]] = None
    hole: Optional[str] = None
    shaft: Optional[str] = None


class BatchRequest(BaseModel):
    text: Optional[str] = Field(default=None, description="Delimited lines D;hole;shaft")
    records: List[BatchRecordModel] = Field(default_factory=list)


class BatchFailureModel(BaseModel):
    line: int
    code: str
    message: str
    input: Dict[str, str]


class BatchResponse(BaseModel):
    succeeded: int
    failed: int
    results: List[FitResponse]
    failures: List[BatchFailureModel]


@router.post("/batch", response_model=BatchResponse)
def batch_fits(
    payload: BatchRequest,
    calculator: FitCalculator = Depends(get_fit_calculator),
) -> BatchResponse:
    if payload.text is None and not payload.records:
        raise HTTPException(status_code=400, detail="Provide 'text' or 'records'.")
    source: Any = (
        payload.text
        if payload.text is not None
        else [record.model_dump() for record in payload.records]
    )
    report = run_batch(calculator, source)
    return BatchResponse(**report.to_dict())


__all__ = ["router"]
