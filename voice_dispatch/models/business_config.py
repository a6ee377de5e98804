"""
Immutable business configuration snapshot used to parameterize a call session.

Two loosely-typed records feed the snapshot: the company settings row and the
active AI agent configuration row. ``merge_business_config`` is the single
place where their fields are read, so the rest of the bridge only ever sees a
fully-populated ``BusinessConfig``.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from voice_dispatch.config.constants import DEFAULT_VOICE, LOGGER_NAME

logger = logging.getLogger(LOGGER_NAME)

DEFAULT_COMPANY_NAME = "our company"
DEFAULT_BUSINESS_TYPE = "home service"
DEFAULT_AGENT_NAME = "the virtual assistant"
DEFAULT_DIAGNOSTIC_PRICE = Decimal("75")
DEFAULT_EMERGENCY_SURCHARGE = Decimal("50")
DEFAULT_SERVICE_TYPES: Tuple[str, ...] = ("HVAC", "Plumbing", "Electrical", "General Repair")


class DayHours(BaseModel):
    """Opening hours for one day of the week."""

    model_config = ConfigDict(frozen=True)

    day: str
    open: str = ""
    close: str = ""
    enabled: bool = True


DEFAULT_BUSINESS_HOURS: Tuple[DayHours, ...] = (
    DayHours(day="monday", open="08:00", close="17:00"),
    DayHours(day="tuesday", open="08:00", close="17:00"),
    DayHours(day="wednesday", open="08:00", close="17:00"),
    DayHours(day="thursday", open="08:00", close="17:00"),
    DayHours(day="friday", open="08:00", close="17:00"),
    DayHours(day="saturday", open="09:00", close="13:00", enabled=False),
    DayHours(day="sunday", open="09:00", close="13:00", enabled=False),
)


class BusinessConfig(BaseModel):
    """Everything the AI persona needs to know about the business."""

    model_config = ConfigDict(frozen=True)

    company_name: str = DEFAULT_COMPANY_NAME
    business_type: str = DEFAULT_BUSINESS_TYPE
    company_phone: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    service_area_zips: Tuple[str, ...] = ()
    agent_name: str = DEFAULT_AGENT_NAME
    voice: str = DEFAULT_VOICE
    diagnostic_price: Decimal = DEFAULT_DIAGNOSTIC_PRICE
    emergency_surcharge: Decimal = DEFAULT_EMERGENCY_SURCHARGE
    service_areas: Tuple[str, ...] = ()
    service_types: Tuple[str, ...] = DEFAULT_SERVICE_TYPES
    business_hours: Tuple[DayHours, ...] = DEFAULT_BUSINESS_HOURS
    custom_prompt_additions: str = ""

    @property
    def full_address(self) -> str:
        """Street, city, state and zip joined, skipping empty parts."""
        locality = " ".join(part for part in (self.state, self.zip_code) if part)
        return ", ".join(part for part in (self.address, self.city, locality) if part)

    def hours_for(self, day: str) -> Optional[DayHours]:
        """Hours for a weekday name such as "monday", or None if not listed."""
        day = day.lower()
        for hours in self.business_hours:
            if hours.day == day:
                return hours
        return None


def merge_business_config(
    company: Optional[Mapping[str, Any]],
    agent: Optional[Mapping[str, Any]],
) -> BusinessConfig:
    """
    Merge the company settings row and the agent configuration row.

    Company-level fields win over their agent-level equivalents. Agent-only
    fields are taken as-is. Anything missing or unusable falls back to the
    ``BusinessConfig`` default, so this never raises on bad data.

    Args:
        company: The company settings row, or None
        agent: The active AI agent configuration row, or None

    Returns:
        A new immutable snapshot
    """
    company = company or {}
    agent = agent or {}
    defaults = BusinessConfig()

    return BusinessConfig(
        company_name=_first_text(
            company.get("company_name"), agent.get("company_name"), default=defaults.company_name
        ),
        business_type=_first_text(
            company.get("business_type"), agent.get("business_niche"), default=defaults.business_type
        ),
        company_phone=_first_text(
            company.get("company_phone"), agent.get("company_phone"), default=defaults.company_phone
        ),
        address=_first_text(company.get("company_address"), agent.get("address"), default=""),
        city=_first_text(company.get("company_city"), agent.get("city"), default=""),
        state=_first_text(company.get("company_state"), agent.get("state"), default=""),
        zip_code=_first_text(company.get("company_zip"), agent.get("zip_code"), default=""),
        service_area_zips=_string_list(company.get("service_zip_codes"))
        or _string_list(agent.get("service_zip_codes")),
        agent_name=_first_text(agent.get("agent_name"), default=defaults.agent_name),
        voice=_first_text(agent.get("voice_id"), default=defaults.voice),
        diagnostic_price=_decimal(agent.get("diagnostic_price"), defaults.diagnostic_price),
        emergency_surcharge=_decimal(agent.get("emergency_surcharge"), defaults.emergency_surcharge),
        service_areas=_string_list(agent.get("service_areas")),
        service_types=_string_list(agent.get("service_types")) or defaults.service_types,
        business_hours=_hours(agent.get("business_hours")) or defaults.business_hours,
        custom_prompt_additions=_first_text(agent.get("custom_prompt_additions"), default=""),
    )


def _first_text(*values: Any, default: str) -> str:
    for value in values:
        if isinstance(value, str) and value.strip():
            return value.strip()
    return default


def _decimal(value: Any, default: Decimal) -> Decimal:
    if value is None or isinstance(value, bool):
        return default
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        logger.warning(f"Ignoring non-numeric price value: {value!r}")
        return default
    return result if result.is_finite() and result >= 0 else default


def _string_list(value: Any) -> Tuple[str, ...]:
    """Accept a JSON list or a comma separated string."""
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = value
    else:
        return ()
    return tuple(str(item).strip() for item in items if str(item).strip())


def _hours(value: Any) -> Tuple[DayHours, ...]:
    """Accept a JSON object of day -> {open, close, enabled}."""
    if not isinstance(value, Mapping):
        return ()
    return tuple(
        DayHours(
            day=str(day).strip().lower(),
            open=_first_text(hours.get("open"), default=""),
            close=_first_text(hours.get("close"), default=""),
            enabled=hours.get("enabled", True) is not False,
        )
        for day, hours in value.items()
        if isinstance(hours, Mapping)
    )
