"""Audit ledger endpoints."""

from fastapi import APIRouter, Query

from linestart.api.deps import AuditLedgerDep
from linestart.api.schemas import AuditRecordResponse

router = APIRouter(prefix="/audit", tags=["audit"])


@router.get("", response_model=list[AuditRecordResponse])
def recent(
    ledger: AuditLedgerDep, limit: int = Query(50, ge=1, le=500)
) -> list[AuditRecordResponse]:
    return [AuditRecordResponse.model_validate(r) for r in ledger.recent(limit)]


@router.get("/jobs/{job_id}", response_model=list[AuditRecordResponse])
def for_job(job_id: str, ledger: AuditLedgerDep) -> list[AuditRecordResponse]:
    return [AuditRecordResponse.model_validate(r) for r in ledger.for_job(job_id)]


@router.get("/work-orders/{work_order_id}", response_model=list[AuditRecordResponse])
def for_work_order(
    work_order_id: str, ledger: AuditLedgerDep
) -> list[AuditRecordResponse]:
    return [
        AuditRecordResponse.model_validate(r)
        for r in ledger.for_work_order(work_order_id)
    ]


@router.get(
    "/correlations/{correlation_id}", response_model=list[AuditRecordResponse]
)
def correlated(
    correlation_id: str, ledger: AuditLedgerDep
) -> list[AuditRecordResponse]:
    return [
        AuditRecordResponse.model_validate(r)
        for r in ledger.correlated(correlation_id)
    ]
