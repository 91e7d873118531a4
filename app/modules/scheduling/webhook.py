import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse

from app.container import Container, get_container
from app.models.lead import LeadSource
from app.models.webhook import GateDecision, WebhookSource
from app.modules.leads.phone import normalize_phone

router = APIRouter()
api_router = APIRouter()
logger = logging.getLogger(__name__)


def _calendar_event_id(body: dict) -> str | None:
    payload = body.get("payload")
    invitee_uri = payload.get("uri") if isinstance(payload, dict) else None
    if body.get("event") and invitee_uri:
        return f"{body['event']}:{invitee_uri}"
    return None


async def _reconcile(container: Container, body: dict) -> None:
    try:
        await container.scheduling.reconcile_calendar_webhook(body)
    except Exception as e:
        logger.exception("Error reconciling calendar webhook: %s", e)


@router.post("/webhook")
async def receive_calendar_event(
    request: Request,
    background_tasks: BackgroundTasks,
    container: Container = Depends(get_container),
):
    """Calendly invitee events. Always acknowledged with 200."""
    try:
        body = await request.json()
    except ValueError:
        logger.warning("Calendar webhook with invalid JSON body")
        return {"success": True}

    try:
        if not isinstance(body, dict):
            logger.warning("Calendar webhook with unexpected body type: %s", type(body).__name__)
            return {"success": True}

        logger.info("Calendar webhook received: %s", body.get("event"))
        decision = await container.gate.check(WebhookSource.CALENDLY, _calendar_event_id(body), body)
        if decision == GateDecision.ACCEPT:
            background_tasks.add_task(_reconcile, container, body)
    except Exception as e:
        logger.exception("Error handling calendar webhook: %s", e)

    return {"success": True}


@api_router.post("/schedule-visit")
async def schedule_visit(request: Request, container: Container = Depends(get_container)):
    """Operator-triggered booking link for a customer and property."""
    try:
        body = await request.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}

    customer_phone = body.get("customerPhone")
    customer_name = body.get("customerName")
    property_id = body.get("propertyId")
    if not customer_phone or not customer_name or not property_id:
        return JSONResponse(
            status_code=400,
            content={"error": "Customer phone, name, and property ID are required"},
        )

    phone = normalize_phone(str(customer_phone), container.settings.home_country_code)
    try:
        prop = await container.resolver.resolve(int(property_id))
    except (TypeError, ValueError):
        prop = None
    if not phone:
        return JSONResponse(status_code=400, content={"error": "Invalid customer phone"})
    if prop is None:
        return JSONResponse(status_code=404, content={"error": "Property not found"})

    result = await container.scheduling.request_visit(
        phone, customer_name, body.get("customerEmail") or None, prop, source=LeadSource.MANUAL,
    )
    if not result.success:
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": result.error or "Failed to schedule visit"},
        )

    return {
        "success": True,
        "schedulingLink": result.scheduling_link,
        "propertyTitle": result.property_title,
        "customerName": result.customer_name,
    }


@api_router.get("/reminders")
async def list_reminders(container: Container = Depends(get_container)):
    reminders = await container.reminders.list_all()
    return {
        "count": len(reminders),
        "reminders": [r.model_dump(mode="json") for r in reminders],
    }
