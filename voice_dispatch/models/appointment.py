"""
Arguments of the function calls the model can issue mid-call.

``schedule_appointment`` becomes an ``AppointmentRequest`` and ``lookup_client``
a ``ClientLookupRequest``. Both are parsed from the JSON argument string of a
``response.function_call_arguments.done`` event.
"""

import json
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, StrictStr, ValidationError, field_validator

from voice_dispatch.errors import FunctionCallError


class FunctionArguments(BaseModel):
    """Base for function call argument models."""

    model_config = ConfigDict(extra="ignore")

    @classmethod
    def from_arguments(cls, arguments: str):
        """
        Parse the JSON argument string sent by the model.

        Raises:
            FunctionCallError: The string is not a JSON object or a required
                field is missing or not a string
        """
        try:
            data = json.loads(arguments) if arguments else {}
        except json.JSONDecodeError as e:
            raise FunctionCallError(f"Arguments are not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise FunctionCallError("Arguments must be a JSON object")
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            missing = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
            raise FunctionCallError(f"Invalid fields: {', '.join(missing)}") from e


class AppointmentRequest(FunctionArguments):
    """Arguments of a schedule_appointment call."""

    customer_name: StrictStr
    customer_phone: StrictStr
    service_type: StrictStr
    preferred_date: Optional[str] = None
    preferred_time: Optional[str] = None
    description: Optional[str] = None
    is_emergency: bool = False

    @field_validator("customer_name", "customer_phone", "service_type")
    def validate_not_blank(cls, v):
        """Validate that required fields carry text."""
        if not v.strip():
            raise ValueError("Field cannot be empty")
        return v.strip()

    def to_record(
        self,
        company_name: str,
        scheduled_via: str,
        scheduled_at: str,
        client_id: Optional[Any] = None,
    ) -> Dict[str, Any]:
        """Build the ``appointment_data`` JSON stored on the call row."""
        record = self.model_dump(exclude_none=True)
        record.update(
            company_name=company_name,
            scheduled_via=scheduled_via,
            scheduled_at=scheduled_at,
        )
        if client_id is not None:
            record["client_id"] = client_id
        return record


class ClientLookupRequest(FunctionArguments):
    """Arguments of a lookup_client call."""

    phone: StrictStr

    @field_validator("phone")
    def validate_phone(cls, v):
        if not v.strip():
            raise ValueError("Phone number cannot be empty")
        return v.strip()
