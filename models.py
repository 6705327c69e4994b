"""Pydantic models for the health-card extraction API."""

from pydantic import BaseModel

RECORD_FIELDS: tuple[str, ...] = (
    "holder_first_name", "holder_surname", "holder_name", "holder_address",
    "postal_code", "city", "holder_postal_city", "national_id",
    "doctor_name", "doctor_address", "doctor_phone",
    "municipality", "region", "valid_from",
    "date_of_birth", "age", "gender",
)


class HealthCardRecord(BaseModel):
    """Structured fields mapped from one health card. Unfound fields are ""."""

    holder_first_name: str = ""
    holder_surname: str = ""
    holder_name: str = ""
    holder_address: str = ""
    postal_code: str = ""
    city: str = ""
    holder_postal_city: str = ""
    national_id: str = ""
    doctor_name: str = ""
    doctor_address: str = ""
    doctor_phone: str = ""
    municipality: str = ""
    region: str = ""
    valid_from: str = ""
    date_of_birth: str = ""
    age: str = ""
    gender: str = ""

    model_config = {"frozen": True}


class MapRequest(BaseModel):
    lines: list[str]


class ExtractionResponse(BaseModel):
    raw_text: str
    structured_data: HealthCardRecord
    message: str
    file_type: str
    source: str
    warnings: list[str] = []
    processing_time_ms: int
