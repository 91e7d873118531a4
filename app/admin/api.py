"""
Admin API: internal endpoints for conversation and lead visibility, manual
actions, and cron-triggered background jobs.
"""

import logging
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.container import Container, get_container
from app.models.lead import LeadQuality, LeadSource, LeadUpdate, TypebotData
from app.modules.leads.phone import normalize_phone
from app.modules.scheduling.reminders import send_due_reminders

logger = logging.getLogger(__name__)

router = APIRouter()


async def _json_body(request: Request) -> dict:
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


# --- Conversations ---

@router.get("/conversations")
async def list_conversations(container: Container = Depends(get_container)):
    sessions = await container.sessions.list_active()
    sessions.sort(key=lambda s: s.last_activity, reverse=True)
    return {
        "count": len(sessions),
        "conversations": [
            {
                "phoneNumber": s.phone_number,
                "messages": len(s.history),
                "lastActivity": s.last_activity.isoformat(),
                "schedulingState": s.scheduling_state.value,
                "activePropertyId": s.active_property_id,
                "customerName": s.customer_info.name,
            }
            for s in sessions
        ],
    }


@router.get("/conversations/{phone}")
async def get_conversation(phone: str, container: Container = Depends(get_container)):
    normalized = normalize_phone(phone, container.settings.home_country_code)
    session = await container.sessions.get(normalized) if normalized else None
    if session is None:
        return JSONResponse(status_code=404, content={"error": "Conversation not found"})
    return session.model_dump(mode="json")


# --- Leads ---

@router.get("/leads")
async def list_leads(quality: LeadQuality | None = None, container: Container = Depends(get_container)):
    leads = await container.leads.list_all(quality)
    leads.sort(key=lambda lead: (-lead.score, lead.phone_number))
    return {"count": len(leads), "leads": [lead.model_dump(mode="json") for lead in leads]}


@router.get("/leads/{phone}")
async def get_lead(phone: str, container: Container = Depends(get_container)):
    normalized = normalize_phone(phone, container.settings.home_country_code)
    lead = await container.leads.get(normalized) if normalized else None
    if lead is None:
        return JSONResponse(status_code=404, content={"error": "Lead not found"})
    return lead.model_dump(mode="json")


@router.post("/leads")
async def create_lead(request: Request, container: Container = Depends(get_container)):
    """Register a lead by hand (walk-in, phone call). Merged like any other source."""
    body = await _json_body(request)
    phone = normalize_phone(str(body.get("phoneNumber") or ""), container.settings.home_country_code)
    if not phone:
        return JSONResponse(status_code=400, content={"success": False, "error": "Phone number is required"})

    typebot_fields = {k: v for k, v in (body.get("preferences") or {}).items() if k in TypebotData.model_fields}
    update = LeadUpdate(
        name=body.get("name") or None,
        email=body.get("email") or None,
        property_id=body.get("propertyId"),
        observations=body.get("observations") or None,
        typebot_data=TypebotData(**typebot_fields) if typebot_fields else None,
    )
    async with container.locks.hold(phone):
        session = await container.sessions.get(phone)
        lead = await container.leads.apply(phone, update, source=LeadSource.MANUAL, session=session)
    return {"success": True, "lead": lead.model_dump(mode="json")}


# --- Metrics ---

@router.get("/metrics")
async def get_metrics(container: Container = Depends(get_container)):
    leads = await container.leads.list_all()
    sessions = await container.sessions.list_active()
    by_quality = {quality.value: 0 for quality in LeadQuality}
    for lead in leads:
        by_quality[lead.quality.value] += 1
    by_state: dict[str, int] = {}
    for session in sessions:
        by_state[session.scheduling_state.value] = by_state.get(session.scheduling_state.value, 0) + 1
    return {
        "total_leads": len(leads),
        "leads_by_quality": by_quality,
        "active_conversations": len(sessions),
        "scheduling_states": by_state,
        "scheduled_reminders": len(await container.reminders.list_all()),
    }


# --- Manual actions ---

@router.post("/send-message")
async def send_message(request: Request, container: Container = Depends(get_container)):
    body = await _json_body(request)
    phone = normalize_phone(str(body.get("phoneNumber") or ""), container.settings.home_country_code)
    message = body.get("message")
    if not phone or not message:
        return JSONResponse(status_code=400, content={"error": "phoneNumber and message are required"})

    sent = await container.sender.send_message(phone, message)
    if not sent:
        return JSONResponse(status_code=502, content={"success": False, "error": "Failed to send message"})
    return {"success": True}


@router.post("/test-ai")
async def test_ai(request: Request, container: Container = Depends(get_container)):
    """Run the dialogue for a message without sending anything over WhatsApp."""
    body = await _json_body(request)
    message = body.get("message")
    phone = normalize_phone(str(body.get("phoneNumber") or "5511900000000"), container.settings.home_country_code)
    if not message or not phone:
        return JSONResponse(status_code=400, content={"error": "message is required"})

    outcome = await container.dialogue.handle_inbound_message(phone, message)
    return {
        "reply": outcome.reply_text,
        "branch": outcome.branch.value,
        "signals": outcome.signals.model_dump(mode="json"),
        "schedulingLink": outcome.scheduling_link,
        "sideEffects": [effect.kind.value for effect in outcome.side_effects],
    }


@router.post("/catalog/invalidate")
async def invalidate_catalog(container: Container = Depends(get_container)):
    container.catalog.invalidate()
    properties = await container.resolver.active_properties()
    return {"status": "ok", "active_properties": len(properties)}


# --- Background jobs (cron) ---

@router.post("/jobs/reminders")
async def run_reminders(container: Container = Depends(get_container)):
    settings = container.settings
    sent = await send_due_reminders(
        container.reminders, container.sender, settings.realtor_phone, settings.timezone,
    )
    logger.info("Reminder job: %d visits reminded", sent)
    return {"reminders_sent": sent}


@router.post("/jobs/purge-receipts")
async def purge_receipts(container: Container = Depends(get_container)):
    now = datetime.now(timezone.utc)
    retention = timedelta(hours=container.settings.receipt_retention_hours)
    purged = await container.gate.purge(retention, now)
    expired = await container.sessions.purge_expired(now)
    logger.info("Purge job: %d receipts, %d expired sessions", purged, expired)
    return {"receipts_purged": purged, "sessions_purged": expired}
