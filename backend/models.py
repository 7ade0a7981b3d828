from datetime import datetime
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

PHONE_PATTERN = r"^[+]?[(]?[0-9]{1,4}[)]?[-\s.]?[(]?[0-9]{1,4}[)]?[-\s.]?[0-9]{1,9}$"
NON_NULLABLE_FIELDS = (
    "firstName",
    "lastName",
    "age",
    "phoneNumber",
    "image",
    "city",
    "companyName",
    "position",
)


def _check_image_urls(value: list[str] | None) -> list[str] | None:
    for url in value or []:
        parsed = urlparse(url.strip())
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("Each image must be a valid URL")
    return value


class AttendanceCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    firstName: str
    lastName: str
    age: int = Field(ge=1, le=150)
    phoneNumber: str = Field(pattern=PHONE_PATTERN)
    image: list[str] = Field(min_length=1)
    city: str
    province: str | None = None
    companyName: str
    position: str
    date: datetime | None = None
    remark: str | None = None

    @field_validator("image")
    @classmethod
    def _image_urls(cls, value: list[str]) -> list[str]:
        return _check_image_urls(value)


class AttendanceUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    firstName: str | None = None
    lastName: str | None = None
    age: int | None = Field(default=None, ge=1, le=150)
    phoneNumber: str | None = Field(default=None, pattern=PHONE_PATTERN)
    image: list[str] | None = Field(default=None, min_length=1)
    city: str | None = None
    province: str | None = None
    companyName: str | None = None
    position: str | None = None
    date: datetime | None = None
    remark: str | None = None

    @field_validator("image")
    @classmethod
    def _image_urls(cls, value: list[str] | None) -> list[str] | None:
        return _check_image_urls(value)

    @model_validator(mode="after")
    def _no_null_required_fields(self):
        for name in NON_NULLABLE_FIELDS:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class ScanRequest(BaseModel):
    qrData: str | None = None


class TicketImport(BaseModel):
    qrCode: str | None = None
    ticketId: str | None = None
    transactionId: str | None = None
    eventName: str | None = None
    attendeeName: str | None = None
    email: str | None = None
    eventDate: str | None = None
    branchName: str | None = None
    customerId: str | None = None
    customerName: str | None = None
    ticketCount: float | None = None
    totalAmount: float | None = None
    revenueAmount: float | None = None
    isValid: bool | None = None


class TicketScan(BaseModel):
    qrCode: str
