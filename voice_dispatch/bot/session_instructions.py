"""
Build the one-time ``session.update`` message that configures the AI leg.

The message must be the first event sent on the AI connection. It carries the
persona instructions derived from the business configuration, the audio
formats both legs agree on, voice-activity detection settings and the tools
the model may call.
"""

from decimal import Decimal
from typing import List

from voice_dispatch.config.constants import (
    AUDIO_FORMAT_G711_ULAW,
    FUNCTION_LOOKUP_CLIENT,
    FUNCTION_SCHEDULE_APPOINTMENT,
    TRANSCRIPTION_MODEL,
    VAD_PREFIX_PADDING_MS,
    VAD_SILENCE_DURATION_MS,
    VAD_THRESHOLD,
    VAD_TYPE,
)
from voice_dispatch.models.business_config import BusinessConfig
from voice_dispatch.models.realtime_events import (
    FunctionTool,
    InputAudioTranscription,
    SessionConfig,
    SessionUpdateEvent,
    TurnDetection,
)

DAY_ORDER = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

LOOKUP_CLIENT_TOOL = FunctionTool(
    name=FUNCTION_LOOKUP_CLIENT,
    description="Look up an existing client and their recent jobs by phone number.",
    parameters={
        "type": "object",
        "properties": {
            "phone": {"type": "string", "description": "Client phone number"},
        },
        "required": ["phone"],
    },
)

SCHEDULE_APPOINTMENT_TOOL = FunctionTool(
    name=FUNCTION_SCHEDULE_APPOINTMENT,
    description="Schedule a service appointment for the caller once you have their details.",
    parameters={
        "type": "object",
        "properties": {
            "customer_name": {"type": "string", "description": "Caller's full name"},
            "customer_phone": {"type": "string", "description": "Callback phone number"},
            "service_type": {"type": "string", "description": "Service the caller needs"},
            "preferred_date": {"type": "string", "description": "Preferred date, YYYY-MM-DD"},
            "preferred_time": {"type": "string", "description": "Preferred time of day"},
            "description": {"type": "string", "description": "Short description of the problem"},
            "is_emergency": {"type": "boolean", "description": "True for urgent after-hours work"},
        },
        "required": ["customer_name", "customer_phone", "service_type"],
    },
)


def format_price(amount: Decimal) -> str:
    """Render a price without trailing zeros for whole amounts, e.g. $75 or $49.50."""
    if amount == amount.to_integral_value():
        return f"${amount.quantize(Decimal(1))}"
    return f"${amount.quantize(Decimal('0.01'))}"


def format_business_hours(config: BusinessConfig) -> str:
    lines: List[str] = []
    for day in DAY_ORDER:
        hours = config.hours_for(day)
        if hours is None:
            continue
        if hours.enabled and hours.open and hours.close:
            lines.append(f"- {day.capitalize()}: {hours.open} to {hours.close}")
        else:
            lines.append(f"- {day.capitalize()}: closed")
    return "\n".join(lines) if lines else "- Hours not provided"


def build_instructions(config: BusinessConfig) -> str:
    """Turn the configuration snapshot into the system instruction text."""
    service_areas = ", ".join(config.service_areas) or "All areas"
    service_types = ", ".join(config.service_types)

    sections = [
        f"You are {config.agent_name}, the phone dispatcher for {config.company_name}, "
        f"a {config.business_type} business. When you introduce yourself, always name "
        f'the company, for example: "Thanks for calling {config.company_name}, '
        f'this is {config.agent_name}."',
        "",
        "IMPORTANT INSTRUCTIONS:",
        "1. Greet the caller warmly and ask how you can help.",
        f"2. Ask for the caller's phone number and use the {FUNCTION_LOOKUP_CLIENT} function "
        "to check whether they are an existing client.",
        "3. Collect the caller's name, callback number and the service they need.",
        f"4. Use the {FUNCTION_SCHEDULE_APPOINTMENT} function to book the visit, then "
        "confirm the details back to the caller.",
        "5. Keep responses short and conversational; this is a live phone call.",
        "",
        f"Our diagnostic visit costs {format_price(config.diagnostic_price)}, with a "
        f"{format_price(config.emergency_surcharge)} emergency surcharge for after-hours calls.",
        f"Services offered: {service_types}",
        f"Service areas: {service_areas}",
    ]
    if config.service_area_zips:
        sections.append(f"Service area zip codes: {', '.join(config.service_area_zips)}")
    if config.company_phone:
        sections.append(f"Office phone: {config.company_phone}")
    if config.full_address:
        sections.append(f"Office address: {config.full_address}")
    sections.extend(["", "Business hours:", format_business_hours(config)])
    if config.custom_prompt_additions:
        sections.extend(["", config.custom_prompt_additions])

    return "\n".join(sections)


def build_session_update(config: BusinessConfig) -> SessionUpdateEvent:
    """Build the session.update event for a new AI leg."""
    return SessionUpdateEvent(
        session=SessionConfig(
            modalities=["audio", "text"],
            instructions=build_instructions(config),
            voice=config.voice,
            input_audio_format=AUDIO_FORMAT_G711_ULAW,
            output_audio_format=AUDIO_FORMAT_G711_ULAW,
            input_audio_transcription=InputAudioTranscription(model=TRANSCRIPTION_MODEL),
            turn_detection=TurnDetection(
                type=VAD_TYPE,
                threshold=VAD_THRESHOLD,
                prefix_padding_ms=VAD_PREFIX_PADDING_MS,
                silence_duration_ms=VAD_SILENCE_DURATION_MS,
            ),
            tools=[LOOKUP_CLIENT_TOOL, SCHEDULE_APPOINTMENT_TOOL],
        )
    )
