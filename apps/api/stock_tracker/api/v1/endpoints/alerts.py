from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from stock_tracker.api.v1.deps import get_alert_store, get_scheduler
from stock_tracker.core.errors import StoreError
from stock_tracker.schemas.alert import AlertResponse, CreateAlertRequest
from stock_tracker.services.alert_store import AlertStore
from stock_tracker.services.scheduler import AlertScheduler, SchedulerState

router = APIRouter(prefix="/alerts", tags=["alerts"])


@router.post("")
async def create_alert(payload: CreateAlertRequest, store: AlertStore = Depends(get_alert_store)):
    try:
        alert_id = await store.create(payload)
    except StoreError as exc:
        raise HTTPException(status_code=500, detail={"error": str(exc)}) from exc
    return {"id": alert_id}


@router.get("")
async def list_alerts(
    user_id: str = Query(alias="userId", min_length=1, max_length=128),
    store: AlertStore = Depends(get_alert_store),
):
    try:
        alerts = await store.list_for_user(user_id)
    except StoreError as exc:
        raise HTTPException(status_code=500, detail={"error": str(exc)}) from exc
    return {"items": [AlertResponse.from_record(alert).model_dump(mode="json") for alert in alerts]}


@router.delete("/{alert_id}")
async def delete_alert(alert_id: str, store: AlertStore = Depends(get_alert_store)):
    try:
        deleted = await store.delete(alert_id)
    except StoreError as exc:
        raise HTTPException(status_code=500, detail={"error": str(exc)}) from exc
    if not deleted:
        raise HTTPException(status_code=404, detail="Alert not found")
    return {"ok": True}


@router.post("/check")
async def check_alerts(scheduler: AlertScheduler = Depends(get_scheduler)):
    if scheduler.state is SchedulerState.RUNNING:
        raise HTTPException(status_code=409, detail="Alert cycle already in progress")
    report = await scheduler.run_once()
    if report is None:
        return {"completed": False, "report": None}
    return {"completed": True, "report": report.as_dict()}
