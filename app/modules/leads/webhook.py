"""
Typebot webhook: synchronous lead intake. Unlike the WhatsApp and Calendly
webhooks, a submission without a phone number is rejected with 400 so the
form tool can retry right away.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.container import Container, get_container
from app.models.lead import LeadSource
from app.models.webhook import GateDecision, WebhookSource
from app.modules.leads.intake import MissingPhoneError, extract_lead_signal

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/webhook")
async def receive_lead(request: Request, container: Container = Depends(get_container)):
    settings = container.settings
    try:
        payload = await request.json()
    except ValueError:
        payload = None

    try:
        signal = extract_lead_signal(payload, settings.typebot_fields, settings.home_country_code)
    except MissingPhoneError as e:
        logger.warning("Typebot submission rejected: %s", e)
        return JSONResponse(status_code=400, content={"success": False, "error": str(e)})

    phone = signal.phone_number
    decision = await container.gate.check(WebhookSource.TYPEBOT, signal.result_id, payload)
    if decision == GateDecision.DUPLICATE:
        return {"success": True, "phoneNumber": phone}

    try:
        now = datetime.now(timezone.utc)
        async with container.locks.hold(phone):
            session = await container.sessions.get(phone, now)
            if session is not None and (signal.name or signal.email):
                session.customer_info.name = signal.name or session.customer_info.name
                session.customer_info.email = signal.email or session.customer_info.email
                await container.sessions.save(session)
            lead = await container.leads.apply(
                phone, signal.to_update(), source=LeadSource.TYPEBOT, session=session, now=now,
            )
        logger.info("Typebot lead %s saved (quality=%s, score=%s)", phone, lead.quality.value, lead.score)
    except Exception as e:
        logger.exception("Error saving Typebot lead %s: %s", phone, e)
        return JSONResponse(status_code=500, content={"success": False, "error": "Failed to save lead"})

    return {"success": True, "phoneNumber": phone}
