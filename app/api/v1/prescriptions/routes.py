"""
Prescription API Routes

Endpoints used at the pharmacy counter: validating a scanned prescription,
recording dispensing decisions, and the pharmacist's own history.
"""

from fastapi import APIRouter, Body, Depends, Query, status
from fastapi.responses import JSONResponse
from typing import Any, Optional
from loguru import logger

from app.api.deps import get_current_pharmacist, get_prescription_service
from app.core.exceptions import ErrorResponse
from app.domain.auth.models import ActingPharmacist
from app.domain.prescriptions.models import PrescriptionStatus
from app.domain.prescriptions.service import PrescriptionService, ValidationRejection
from app.api.v1.prescriptions.schemas import (
    AttributionResponse,
    DispensedByResponse,
    DispenseRequest,
    DispenseResponse,
    HistoryResponse,
    MedicineResponse,
    MedicineStatusResponse,
    Pagination,
    PrescriptionDetail,
    PrescriptionSummary,
    StatsResponse,
    ValidationRejectedResponse,
    ValidationResponse,
)

router = APIRouter(tags=["Prescriptions"])

REJECTION_STATUS_CODES = {
    ValidationRejection.INVALID_ID: status.HTTP_400_BAD_REQUEST,
    ValidationRejection.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ValidationRejection.CANCELLED: status.HTTP_400_BAD_REQUEST,
    ValidationRejection.ALREADY_DISPENSED: status.HTTP_400_BAD_REQUEST,
}


@router.get(
    "/validate/{prescription_id}",
    response_model=ValidationResponse,
    responses={400: {"model": ValidationRejectedResponse}, 404: {"model": ValidationRejectedResponse}},
)
async def validate_prescription(
    prescription_id: str,
    service: PrescriptionService = Depends(get_prescription_service),
    pharmacist: ActingPharmacist = Depends(get_current_pharmacist),
):
    """Validate a prescription (from QR scan or manual entry) and return its medicine checklist"""
    try:
        result = await service.validate(prescription_id, pharmacist)

        if not result.valid:
            rejected = ValidationRejectedResponse(
                message=result.message,
                prescription=PrescriptionSummary.model_validate(result.prescription) if result.prescription else None,
                dispensed_by=DispensedByResponse.model_validate(result.dispensed_by) if result.dispensed_by else None,
            )
            return JSONResponse(
                status_code=REJECTION_STATUS_CODES[result.rejection],
                content=rejected.model_dump(mode="json", by_alias=True, exclude_none=True),
            )

        return ValidationResponse(
            valid=True,
            message=result.message,
            prescription=PrescriptionSummary.model_validate(result.prescription),
            medicines=[MedicineResponse.model_validate(m) for m in result.medicines],
            medicine_statuses=[MedicineStatusResponse.model_validate(s) for s in result.medicine_statuses],
            previous_dispensing=(
                AttributionResponse.model_validate(result.previous_dispensing)
                if result.previous_dispensing else None
            ),
        )
    except Exception:
        logger.exception(f"Prescription validation error for {prescription_id}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"valid": False, "message": "Server error during validation"},
        )


@router.post(
    "/dispense/{prescription_id}",
    response_model=DispenseResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    openapi_extra={
        "requestBody": {
            "content": {"application/json": {"schema": DispenseRequest.model_json_schema(by_alias=True)}},
        },
    },
)
async def dispense_prescription(
    prescription_id: str,
    body: Any = Body(None),
    service: PrescriptionService = Depends(get_prescription_service),
    pharmacist: ActingPharmacist = Depends(get_current_pharmacist),
):
    """Record per-medicine dispensing decisions"""
    # Any JSON body is accepted here; the service rejects bad input with a 400
    dispense_in = DispenseRequest.model_validate(body if isinstance(body, dict) else {})
    result = await service.dispense(
        prescription_id,
        dispense_in.medicine_statuses,
        dispense_in.dispensing_notes,
        pharmacist,
    )
    return DispenseResponse(
        message=result.message,
        prescription=PrescriptionDetail.model_validate(result.prescription),
        dispensed_by=AttributionResponse.model_validate(result.dispensed_by),
    )


@router.get("/history", response_model=HistoryResponse)
async def dispensing_history(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status_filter: Optional[PrescriptionStatus] = Query(None, alias="status"),
    service: PrescriptionService = Depends(get_prescription_service),
    pharmacist: ActingPharmacist = Depends(get_current_pharmacist),
):
    """Prescriptions dispensed by the current pharmacist"""
    history = await service.get_history(
        pharmacist,
        page=page,
        limit=limit,
        status_filter=status_filter.value if status_filter else None,
    )
    return HistoryResponse(
        prescriptions=[PrescriptionDetail.model_validate(p) for p in history.prescriptions],
        pagination=Pagination(page=history.page, limit=history.limit, total=history.total, pages=history.pages),
    )


@router.get("/stats", response_model=StatsResponse)
async def dispensing_stats(
    service: PrescriptionService = Depends(get_prescription_service),
    pharmacist: ActingPharmacist = Depends(get_current_pharmacist),
):
    """Dispensing counts for the current pharmacist"""
    return StatsResponse.model_validate(await service.get_stats(pharmacist))
