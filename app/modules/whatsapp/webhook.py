import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Request

from app.container import Container, get_container
from app.models.webhook import GateDecision, WebhookSource
from app.modules.leads.phone import normalize_phone

router = APIRouter()
logger = logging.getLogger(__name__)


async def _process_message(container: Container, phone: str, text: str, push_name: str | None) -> None:
    try:
        await container.dialogue.process_inbound_message(phone, text, push_name)
    except Exception as e:
        logger.exception("Error processing message from %s: %s", phone, e)


@router.post("/webhook")
async def receive_message(
    request: Request,
    background_tasks: BackgroundTasks,
    container: Container = Depends(get_container),
):
    """Evolution API events. Always acknowledged with 200 so the provider never retries."""
    try:
        body = await request.json()
    except ValueError:
        logger.warning("WhatsApp webhook with invalid JSON body")
        return {"success": True}

    try:
        if not isinstance(body, dict):
            logger.warning("WhatsApp webhook with unexpected body type: %s", type(body).__name__)
            return {"success": True}

        key = (body.get("data") or {}).get("key") or {}
        decision = await container.gate.check(WebhookSource.WHATSAPP, key.get("id"), body)
        if decision == GateDecision.DUPLICATE:
            return {"success": True}

        for msg in container.sender.provider.parse_webhook(body):
            logger.info(
                "Incoming [evolution] from %s: type=%s text=%s",
                msg.sender_phone,
                msg.message_type,
                msg.text[:80] if msg.text else "(media)",
            )
            if not msg.text:
                continue
            phone = normalize_phone(msg.sender_phone, container.settings.home_country_code)
            if not phone:
                continue
            background_tasks.add_task(_process_message, container, phone, msg.text, msg.push_name)
    except Exception as e:
        logger.exception("Error handling WhatsApp webhook: %s", e)

    return {"success": True}
