"""
Lead Qualification: scoring, non-destructive merging and profile helpers.
"""

from datetime import datetime, timedelta

from app.config import LeadScoringSettings
from app.models.conversation import ConversationSession, SchedulingState
from app.models.lead import Lead, LeadQuality, LeadScore, LeadUpdate, TypebotData

SCHEDULING_TAG = "visita-solicitada"
BOOKED_TAG = "visita-agendada"

PREFERENCE_LABELS = {
    "transaction_type": "Tipo de transação informado",
    "property_type": "Tipo de imóvel informado",
    "location": "Localização preferida informada",
}


def score_lead(
    lead: Lead,
    session: ConversationSession | None,
    weights: LeadScoringSettings,
    now: datetime,
) -> LeadScore:
    """Deterministic score for a lead snapshot. Same inputs, same score, tier and indicators."""
    points = 0
    indicators: set[str] = set()
    typebot = lead.typebot_data or TypebotData()

    if typebot.purchase_budget or typebot.rental_budget:
        points += weights.budget
        indicators.add("Orçamento informado")
    if typebot.timeframe:
        points += weights.timeframe
        indicators.add("Prazo informado")
    if typebot.financing:
        points += weights.financing
        indicators.add("Situação financeira informada")
    for field, label in PREFERENCE_LABELS.items():
        if getattr(typebot, field):
            points += weights.preference
            indicators.add(label)

    if lead.name:
        points += weights.contact
        indicators.add("Nome conhecido")
    if lead.email:
        points += weights.contact
        indicators.add("Email conhecido")

    if lead.property_id is not None:
        points += weights.property_engaged
        indicators.add("Interesse em imóvel específico")

    if lead.total_messages >= weights.very_engaged_messages_threshold:
        points += weights.very_engaged_messages
        indicators.add(f"Conversa muito engajada ({weights.very_engaged_messages_threshold}+ mensagens)")
    elif lead.total_messages >= weights.engaged_messages_threshold:
        points += weights.engaged_messages
        indicators.add(f"Conversa engajada ({weights.engaged_messages_threshold}+ mensagens)")

    state = session.scheduling_state if session else SchedulingState.NONE
    if BOOKED_TAG in lead.tags or state == SchedulingState.BOOKED:
        points += weights.visit_booked
        indicators.add("Visita agendada")
    elif SCHEDULING_TAG in lead.tags or state in (SchedulingState.REQUESTED, SchedulingState.LINK_SENT):
        points += weights.scheduling_intent
        indicators.add("Interesse em agendar visita")

    last_contact = lead.last_contact_at
    if session and (last_contact is None or session.last_activity > last_contact):
        last_contact = session.last_activity
    if last_contact and now - last_contact > timedelta(days=weights.stale_after_days):
        points -= weights.stale_penalty
        indicators.add(f"Sem interação há mais de {weights.stale_after_days} dias")

    points = max(0, min(100, points))

    if points >= weights.hot_threshold:
        quality = LeadQuality.HOT
    elif points >= weights.warm_threshold:
        quality = LeadQuality.WARM
    else:
        quality = LeadQuality.COLD

    return LeadScore(score=points, quality=quality, indicators=sorted(indicators))


def merge_typebot_data(existing: TypebotData | None, incoming: TypebotData | None) -> TypebotData | None:
    """Field-by-field merge; empty incoming values never overwrite stored ones."""
    if incoming is None:
        return existing
    if existing is None:
        return incoming.model_copy(deep=True)
    merged = existing.model_copy(deep=True)
    for field in TypebotData.model_fields:
        if field == "extra_answers":
            continue
        value = getattr(incoming, field)
        if value:
            setattr(merged, field, value)
    merged.extra_answers = {**existing.extra_answers, **{k: v for k, v in incoming.extra_answers.items() if v}}
    return merged


def merge_lead(lead: Lead, update: LeadUpdate, now: datetime) -> Lead:
    """Merge an update into a lead without ever clearing populated fields."""
    merged = lead.model_copy(deep=True)
    if update.name:
        merged.name = update.name
    if update.email:
        merged.email = update.email
    if update.property_id is not None:
        merged.property_id = update.property_id
    if update.observations:
        merged.observations = update.observations
    merged.typebot_data = merge_typebot_data(merged.typebot_data, update.typebot_data)
    for tag in update.add_tags:
        if tag not in merged.tags:
            merged.tags.append(tag)
    merged.tags = [tag for tag in merged.tags if tag not in update.remove_tags]
    merged.total_messages += update.new_messages
    if update.touched:
        merged.last_contact_at = now
    return merged


def format_lead_profile(lead: Lead | None) -> str:
    """Known lead data as a readable block for the system prompt."""
    if lead is None:
        return "Nenhuma informação ainda, é um contato novo."

    lines = []
    if lead.name:
        lines.append(f"- Nome: {lead.name}")
    if lead.email:
        lines.append(f"- Email: {lead.email}")

    typebot = lead.typebot_data
    if typebot:
        if typebot.transaction_type:
            lines.append(f"- Procura imóvel para: {typebot.transaction_type}")
        if typebot.property_type:
            lines.append(f"- Tipo de imóvel: {typebot.property_type}")
        if typebot.purchase_budget:
            lines.append(f"- Faixa de valor para compra: {typebot.purchase_budget}")
        if typebot.rental_budget:
            lines.append(f"- Faixa de valor para locação/aluguel: {typebot.rental_budget}")
        if typebot.location:
            lines.append(f"- Localização/bairro preferido: {typebot.location}")
        if typebot.timeframe:
            lines.append(f"- Prazo para mudança/fechamento: {typebot.timeframe}")
        if typebot.financing:
            lines.append(f"- Situação financeira: {typebot.financing}")
        if typebot.message:
            lines.append(f"- Mensagem adicional: {typebot.message}")
        if typebot.extra_answers:
            lines.append("- Outras respostas do formulário:")
            for key, value in typebot.extra_answers.items():
                lines.append(f"  - {key}: {value}")

    if lead.property_id is not None:
        lines.append(f"- Último imóvel de interesse: ID {lead.property_id}")
    lines.append(f"- Qualificação atual: {lead.quality.value} ({lead.score} pontos)")

    return "\n".join(lines)
