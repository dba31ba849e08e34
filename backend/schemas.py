from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from typing import Literal, Optional

TabStatus = Literal["setup", "open", "locked", "completed"]
SplitMethod = Literal["equal", "proportional"]
PaymentStatus = Literal["pending", "claimed", "confirmed"]
PaymentMethod = Literal["venmo", "cashapp", "paypal", "cash", "other"]


class UserBase(BaseModel):
    email: EmailStr
    full_name: Optional[str] = None

class UserCreate(UserBase):
    password: str

class User(UserBase):
    id: int
    is_active: bool

    class Config:
        from_attributes = True

class Token(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str

class TokenData(BaseModel):
    email: Optional[str] = None

class RefreshTokenRequest(BaseModel):
    refresh_token: str


class PaymentAccounts(BaseModel):
    venmo: Optional[str] = None
    cashapp: Optional[str] = None
    paypal: Optional[str] = None


class PointsEntry(BaseModel):
    tab_id: str
    tab_name: str
    subtotal: float
    points_earned: int
    earned_at: str

    class Config:
        from_attributes = True

class RewardsSummary(BaseModel):
    balance: int
    lifetime: int
    history: list[PointsEntry] = []


# Shared tab document
class Item(BaseModel):
    id: str
    description: str
    quantity: int = Field(default=1, ge=1)
    unit_price: float = 0
    total_price: float = Field(default=0, ge=0)
    assigned_to: list[str] = []
    # person id -> units claimed (quantity > 1) or fraction of the unit (quantity == 1)
    assignments: dict[str, float] = {}
    # person id -> d, when the claim was made as "1/d"
    share_denominators: dict[str, int] = {}

    @model_validator(mode='after')
    def check_claimants(self):
        unlisted = set(self.assignments) - set(self.assigned_to)
        if unlisted:
            raise ValueError(f"Claims for people not in assigned_to: {sorted(unlisted)}")
        return self

class Person(BaseModel):
    id: str
    name: str
    color: str = "#ef4444"
    phone: Optional[str] = None
    is_admin: bool = False
    payment_status: PaymentStatus = "pending"
    paid_at: Optional[str] = None
    paid_via: Optional[PaymentMethod] = None

class Tab(BaseModel):
    id: str
    restaurant_name: Optional[str] = None
    status: TabStatus = "setup"
    items: list[Item] = []
    people: list[Person] = []
    subtotal: float = 0
    tax: float = Field(default=0, ge=0)
    tip: float = Field(default=0, ge=0)
    tip_percentage: float = 20
    split_tax_tip_method: SplitMethod = "equal"
    created_by: Optional[int] = None
    receipt_image_path: Optional[str] = None
    points_awarded: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class TabCreate(BaseModel):
    restaurant_name: Optional[str] = None
    organizer_name: Optional[str] = None
    tax: float = Field(default=0, ge=0)
    tip: float = Field(default=0, ge=0)
    split_tax_tip_method: SplitMethod = "equal"

class TabUpdate(BaseModel):
    """Partial tab update. Each field present replaces the stored value wholesale."""
    restaurant_name: Optional[str] = None
    status: Optional[TabStatus] = None
    items: Optional[list[Item]] = None
    people: Optional[list[Person]] = None
    tax: Optional[float] = Field(default=None, ge=0)
    tip: Optional[float] = Field(default=None, ge=0)
    tip_percentage: Optional[float] = Field(default=None, ge=0)
    split_tax_tip_method: Optional[SplitMethod] = None
    receipt_image_path: Optional[str] = None

class ItemsReplace(BaseModel):
    items: list[Item]

class TipPercentageUpdate(BaseModel):
    percentage: float = Field(ge=0, le=100)

class ShareLink(BaseModel):
    tab_id: str
    share_link: str

class TipSuggestion(BaseModel):
    percentage: int
    amount: float


class ItemCreate(BaseModel):
    description: str
    price: float = Field(ge=0)

class ReceiptLine(BaseModel):
    """One line item as returned by receipt extraction."""
    description: Optional[str] = None
    quantity: int = Field(default=1, ge=1)
    unit_price: float = 0
    total_price: float = Field(default=0, ge=0)

class ReceiptImport(BaseModel):
    items: list[ReceiptLine]
    restaurant_name: Optional[str] = None
    tax: Optional[float] = Field(default=None, ge=0)
    tip: Optional[float] = Field(default=None, ge=0)
    receipt_image_path: Optional[str] = None

class ReceiptScan(BaseModel):
    restaurant_name: Optional[str] = None
    items: list[ReceiptLine]
    subtotal: float
    tax: float
    tip: float
    total: float
    raw_text: str
    receipt_image_path: str


class PersonCreate(BaseModel):
    name: str
    phone: Optional[str] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('Name must not be empty')
        return v


# Claim requests
class ClaimToggle(BaseModel):
    person_id: str

class QuantityClaim(BaseModel):
    person_id: str
    quantity: int

class ShareClaim(BaseModel):
    person_id: str
    share: Optional[float] = None
    denominator: Optional[int] = Field(default=None, ge=1)

    @field_validator('share')
    @classmethod
    def validate_share(cls, v):
        if v is not None and v > 1:
            raise ValueError('Share must be at most 1')
        return v


class PersonTotal(BaseModel):
    person_id: str
    name: str
    subtotal: float
    tax_tip_share: float
    total: float
    payment_status: PaymentStatus

class TabTotals(BaseModel):
    tab_id: str
    subtotal: float
    tax: float
    tip: float
    total: float
    split_tax_tip_method: SplitMethod
    people: list[PersonTotal]

class BreakdownLine(BaseModel):
    item_id: str
    description: str
    claimed: float
    label: str
    amount: float

class PersonBreakdown(BaseModel):
    person_id: str
    lines: list[BreakdownLine]
    subtotal: float
    tax_tip_share: float
    total: float


class PaymentClaimRequest(BaseModel):
    paid_via: PaymentMethod

class PaymentLinks(BaseModel):
    person_id: str
    amount: float
    venmo: Optional[str] = None
    cashapp: Optional[str] = None
    paypal: Optional[str] = None


class InviteSmsRequest(BaseModel):
    tab_id: str
    phone_number: str

class PersonSmsRequest(BaseModel):
    tab_id: str
    person_id: str
    phone_number: Optional[str] = None

class SmsResult(BaseModel):
    success: bool
    message_id: Optional[str] = None
