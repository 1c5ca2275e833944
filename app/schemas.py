from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from .shared.validators import validate_ph_mobile

# Columns never sent to clients
HIDDEN_COLUMNS = {"password"}


def to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _json_value(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def model_to_dict(obj, exclude: set[str] | None = None) -> Dict[str, Any]:
    """Serialize a SQLAlchemy row into a camelCase JSON-ready dict"""
    hidden = HIDDEN_COLUMNS | (exclude or set())
    return {
        to_camel(column.key): _json_value(getattr(obj, column.key))
        for column in obj.__table__.columns
        if column.key not in hidden
    }


# Auth
class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    fullName: str = Field(..., min_length=1)
    branchLocation: str = Field(..., min_length=1)
    contactNumber: Optional[str] = None
    address: Optional[str] = None
    defaultAddress: Optional[str] = None
    role: Optional[str] = None
    subscriptionPackage: Optional[str] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower()

    @field_validator("contactNumber")
    @classmethod
    def validate_contact_number(cls, v):
        if v:
            return validate_ph_mobile(v)
        return v


class RevokeSessionRequest(BaseModel):
    sessionToken: Optional[str] = None
    sessionId: Optional[str] = None
    userId: Optional[str] = None


# Subscriptions
class SubscriptionUpgradeRequest(BaseModel):
    userId: str
    packageId: str
    paymentMethod: Optional[str] = None


# Notifications
class MarkReadRequest(BaseModel):
    userId: str


class RegisterTokenRequest(BaseModel):
    token: str = Field(..., min_length=1)
    userId: Optional[str] = None
    deviceType: str = "web"
    browserInfo: Optional[str] = None
    deviceName: Optional[str] = None
    notificationTypes: Optional[List[str]] = None


class UnregisterTokenRequest(BaseModel):
    token: str = Field(..., min_length=1)


class SendPushRequest(BaseModel):
    title: str = Field(..., min_length=1)
    body: str = Field(..., min_length=1)
    targetType: str = Field("all", pattern="^(user|users|role|all)$")
    targetValues: Optional[List[str]] = None
    notificationType: str = "system"
    imageUrl: Optional[str] = None
    data: Optional[Dict[str, Any]] = None


# Settings
class SettingUpdateRequest(BaseModel):
    key: Optional[str] = None
    value: Any = None
    description: Optional[str] = None
    category: Optional[str] = None


# Ads
class AdCreateRequest(BaseModel):
    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    duration: str = Field(..., pattern="^(weekly|monthly|yearly)$")
    targetPages: List[str] = Field(default_factory=list)
    adminEmail: str
    imageUrl: Optional[str] = None
    isActive: bool = True


class AdDismissRequest(BaseModel):
    userEmail: str = Field(..., min_length=1)


# Branches
class BranchCreateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    code: str = Field(..., min_length=1, max_length=20)
    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    type: str = "full_service"
    phone: Optional[str] = None
    email: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    managerName: Optional[str] = None
    capacity: int = Field(10, ge=1)
    services: List[str] = Field(default_factory=list)
    operatingHours: Optional[Dict[str, Any]] = None
    isMainBranch: bool = False

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v):
        return v.strip().upper()


# POS
class PosItem(BaseModel):
    productId: Optional[str] = None
    name: str
    sku: Optional[str] = None
    category: Optional[str] = None
    unitPrice: float
    quantity: int = Field(1, ge=1)
    subtotal: Optional[float] = None
    finalPrice: Optional[float] = None


class PosCustomerInfo(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class PosCashierInfo(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None


class PosTransactionCreate(BaseModel):
    transactionNumber: Optional[str] = None
    items: List[PosItem] = Field(default_factory=list)
    subtotal: float = 0.0
    taxAmount: float = 0.0
    discountAmount: float = 0.0
    totalAmount: Optional[float] = None
    paymentMethod: Optional[str] = None
    paymentReference: Optional[str] = None
    amountPaid: Optional[float] = None
    changeAmount: Optional[float] = None
    customerInfo: Optional[PosCustomerInfo] = None
    cashierInfo: Optional[PosCashierInfo] = None
    branchId: Optional[str] = None
    notes: Optional[str] = None


class PosSessionOpenRequest(BaseModel):
    cashierId: str = Field(..., min_length=1)
    cashierName: str = Field(..., min_length=1)
    branchId: str = "default"
    openingBalance: float = Field(..., ge=0)


class PosExpenseCreate(BaseModel):
    posSessionId: str
    category: str
    description: str
    amount: float = Field(..., gt=0)
    paymentMethod: str = "cash"
    notes: Optional[str] = None
    recordedBy: str
    recordedByName: str


class PosSessionCloseRequest(BaseModel):
    actualCash: float = Field(..., ge=0)
    actualDigital: float = Field(0.0, ge=0)
    remittanceNotes: Optional[str] = None


# Vouchers
class VoucherValidateRequest(BaseModel):
    code: Optional[str] = None
    bookingAmount: Optional[float] = None
    userEmail: Optional[str] = None
    bookingType: Optional[str] = None


class VoucherRedeemRequest(BaseModel):
    code: Optional[str] = None
    bookingId: Optional[str] = None
    discountAmount: Optional[float] = None
    userEmail: Optional[str] = None
