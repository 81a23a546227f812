from fastapi import APIRouter, Depends

from services.inventory.app.application.alerts import LowStockAlertService
from services.inventory.app.application.schemas import LowStockAlertRead
from services.inventory.app.domain.models import AlertStatus
from shared.core.logging_config import current_user_id
from shared.core.responses import list_response, success_response

from .dependencies import get_alert_service

router = APIRouter(prefix="/api/low-stock-alerts", tags=["low-stock-alerts"])


@router.get("")
def list_alerts(
    status: AlertStatus = AlertStatus.ACTIVE,
    service: LowStockAlertService = Depends(get_alert_service),
):
    return list_response(service.list_alerts(status))


@router.post("/check")
def check_low_stock(service: LowStockAlertService = Depends(get_alert_service)):
    created = service.check_low_stock()
    return success_response(
        [LowStockAlertRead.model_validate(a).model_dump() for a in created],
        message=f"Low stock check completed. {len(created)} new alerts created.",
        alerts_created=len(created),
    )


@router.get("/stats")
def alert_stats(service: LowStockAlertService = Depends(get_alert_service)):
    return success_response(service.stats())


@router.get("/reorder-suggestions")
def reorder_suggestions(service: LowStockAlertService = Depends(get_alert_service)):
    return list_response(service.reorder_suggestions())


@router.patch("/{alert_id}/resolve")
def resolve_alert(alert_id: int, service: LowStockAlertService = Depends(get_alert_service)):
    alert = service.resolve(alert_id, current_user_id())
    return success_response(LowStockAlertRead.model_validate(alert).model_dump(), message="Alert resolved")


@router.patch("/{alert_id}/ignore")
def ignore_alert(alert_id: int, service: LowStockAlertService = Depends(get_alert_service)):
    alert = service.ignore(alert_id, current_user_id())
    return success_response(LowStockAlertRead.model_validate(alert).model_dump(), message="Alert ignored")
