# vpn_bot/models/api_models.py - Typed payloads of the payment and provisioning APIs
from datetime import date, datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict


class PaymentStatus(str, Enum):
    PENDING = "pending"
    SETTLED = "settled"
    FAILED = "failed"
    UNKNOWN = "unknown"

    @classmethod
    def from_raw(cls, raw: Optional[str]) -> "PaymentStatus":
        """Maps a provider status string onto the four states the bot cares about."""
        value = (raw or "").strip().lower()
        if value in ("paid", "completed", "settled", "success", "settlement"):
            return cls.SETTLED
        if value == "pending":
            return cls.PENDING
        if value in ("failed", "expired", "canceled", "cancelled", "deny"):
            return cls.FAILED
        return cls.UNKNOWN


# Payment gateway wire models

class PaymentPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    qris_image: Optional[str] = None
    payment_number: Optional[str] = None
    expired_at: Optional[str] = None


class ChargeResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    payment: Optional[PaymentPayload] = None
    error: Optional[str] = None
    message: Optional[str] = None


class TransactionPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    status: str


class StatusResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    transaction: Optional[TransactionPayload] = None
    status: Optional[str] = None
    error: Optional[str] = None
    message: Optional[str] = None


# Provisioning API wire models

class ProvisioningResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    success: bool
    message: str = ""
    data: Any = None


class CreatedAccountData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    expired: str


class AccountRecord(BaseModel):
    """One account as listed by the provisioning API and stored in backups."""
    model_config = ConfigDict(extra="ignore")

    password: str
    expired: str

    def expiry_date(self) -> Optional[date]:
        """Parses ``expired`` (``YYYY-MM-DD`` or an ISO timestamp); None if unparsable."""
        try:
            return datetime.fromisoformat(self.expired.strip()).date()
        except ValueError:
            pass
        try:
            return date.fromisoformat(self.expired.strip()[:10])
        except ValueError:
            return None


class AccountSnapshot(BaseModel):
    """Backup file contents."""
    created_at: str
    accounts: List[AccountRecord]


# Results handed to the conversation core

class ChargeResult(BaseModel):
    order_id: str
    amount: int
    payment_code: str
    is_image: bool = True
    expires_at: Optional[str] = None


class StatusResult(BaseModel):
    order_id: str
    status: PaymentStatus
    raw_status: str = ""


class AccountResult(BaseModel):
    password: str
    expired_at: str
