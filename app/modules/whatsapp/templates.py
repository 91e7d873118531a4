"""Structured message templates for common WhatsApp responses."""

from datetime import datetime
from zoneinfo import ZoneInfo

from app.models.property import Property

WEEKDAYS = ["segunda-feira", "terça-feira", "quarta-feira", "quinta-feira", "sexta-feira", "sábado", "domingo"]
MONTHS = [
    "janeiro", "fevereiro", "março", "abril", "maio", "junho",
    "julho", "agosto", "setembro", "outubro", "novembro", "dezembro",
]


def _local(event_time: datetime, tz: str) -> datetime:
    return event_time.astimezone(ZoneInfo(tz))


def format_date(event_time: datetime, tz: str) -> str:
    local = _local(event_time, tz)
    return f"{WEEKDAYS[local.weekday()]}, {local.day} de {MONTHS[local.month - 1]} de {local.year}"


def format_time(event_time: datetime, tz: str) -> str:
    return _local(event_time, tz).strftime("%H:%M")


def property_details(prop: Property) -> str:
    location = prop.address or prop.location or "A consultar"
    return (
        f"📍 *{prop.title}*\n\n"
        f"💰 *Valor:* {prop.price or 'Sob consulta'}\n"
        f"📐 *Área:* {prop.area or '-'}\n"
        f"🛏️ *Quartos:* {prop.bedrooms if prop.bedrooms is not None else '-'}\n"
        f"🚿 *Banheiros:* {prop.bathrooms if prop.bathrooms is not None else '-'}\n"
        f"🚗 *Vagas:* {prop.parking_spaces if prop.parking_spaces is not None else 1}\n\n"
        f"📍 *Localização:*\n{location}\n\n"
        f"{prop.description or ''}\n\n"
        "✅ *Programa Minha Casa Minha Vida aceito*\n"
        "✅ *Financiamento disponível*"
    )


def scheduling_link(customer_name: str | None, property_title: str, link: str) -> str:
    greeting = f"Ótimo, {customer_name}!" if customer_name else "Ótimo!"
    return (
        f"{greeting} 🎉\n\n"
        f"Para agendar sua visita ao *{property_title}*, acesse o link abaixo e escolha o melhor horário:\n\n"
        f"🗓️ {link}\n\n"
        "Você vai receber uma confirmação por e-mail com todos os detalhes da visita."
    )


def scheduling_pick_property() -> str:
    return (
        "Para agendar uma visita, preciso que você escolha um imóvel específico primeiro. "
        "Posso te mostrar algumas opções?"
    )


def scheduling_failed(fallback_phone: str) -> str:
    return (
        "Desculpe, tive um problema ao criar o link de agendamento. "
        f"Por favor, entre em contato pelo telefone {fallback_phone}."
    )


def technical_difficulties(fallback_phone: str) -> str:
    return (
        "Desculpe, estou com dificuldades técnicas no momento. "
        f"Por favor, tente novamente em instantes ou ligue para {fallback_phone}."
    )


def customer_confirmation(customer_name: str, property_title: str, property_address: str, event_time: datetime, tz: str) -> str:
    return (
        "✅ *VISITA CONFIRMADA!*\n\n"
        f"Olá {customer_name}! Sua visita foi agendada com sucesso! 🎉\n\n"
        f"📍 *Imóvel:* {property_title}\n"
        f"📌 *Endereço:* {property_address}\n"
        f"📅 *Data:* {format_date(event_time, tz)}\n"
        f"⏰ *Horário:* {format_time(event_time, tz)}\n\n"
        "*O que levar:*\n"
        "• Documento com foto (RG ou CNH)\n"
        "• Comprovante de renda (se for solicitar financiamento)\n\n"
        "Você vai receber um lembrete 1 hora antes da visita."
    )


def realtor_notification(
    customer_name: str,
    customer_phone: str,
    property_title: str,
    property_address: str,
    property_link: str | None,
    event_time: datetime,
    tz: str,
) -> str:
    link_line = f"🔗 *Link:* {property_link}\n" if property_link else ""
    return (
        "🔔 *NOVA VISITA AGENDADA*\n\n"
        f"*Cliente:* {customer_name}\n"
        f"*Telefone:* {customer_phone}\n\n"
        f"📍 *Imóvel:* {property_title}\n"
        f"📌 *Endereço:* {property_address}\n"
        f"{link_line}\n"
        f"📅 *Data:* {format_date(event_time, tz)}\n"
        f"⏰ *Horário:* {format_time(event_time, tz)}"
    )


def visit_reminder(customer_name: str, property_title: str, property_address: str, event_time: datetime, tz: str) -> str:
    return (
        "⏰ *LEMBRETE DE VISITA*\n\n"
        f"Olá {customer_name}! Sua visita está chegando!\n\n"
        f"📍 *Imóvel:* {property_title}\n"
        f"📌 *Endereço:* {property_address}\n"
        f"⏰ *Horário:* {format_time(event_time, tz)}\n\n"
        "Não esqueça de levar documento com foto. Nos vemos em breve! 🏡"
    )


def realtor_reminder(customer_name: str, customer_phone: str, property_title: str, property_address: str, event_time: datetime, tz: str) -> str:
    return (
        "⏰ *LEMBRETE - VISITA EM BREVE*\n\n"
        f"*Cliente:* {customer_name}\n"
        f"*Telefone:* {customer_phone}\n\n"
        f"📍 *Imóvel:* {property_title}\n"
        f"📌 *Endereço:* {property_address}\n"
        f"⏰ *Horário:* {format_time(event_time, tz)}"
    )


def customer_cancellation(property_title: str) -> str:
    return (
        f"Sua visita ao *{property_title}* foi cancelada.\n\n"
        "Se mudou de ideia ou quer remarcar, é só me avisar! 😊"
    )


def realtor_cancellation(customer_name: str, customer_phone: str, property_title: str) -> str:
    return (
        "❌ *VISITA CANCELADA*\n\n"
        f"*Cliente:* {customer_name}\n"
        f"*Telefone:* {customer_phone}\n"
        f"*Imóvel:* {property_title}"
    )
