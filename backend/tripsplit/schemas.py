"""Pydantic schemas for group documents and request/response."""
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


def _now() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


# ----- Group document -----
BILL_CATEGORIES = [
    "Food & Dining",
    "Transportation",
    "Accommodation",
    "Entertainment",
    "Shopping",
    "Groceries",
    "Utilities",
    "Other",
]
DEFAULT_CATEGORY = "Other"


class Member(CamelModel):
    id: str
    name: str


class Bill(CamelModel):
    id: str
    description: str
    amount: float
    category: str = DEFAULT_CATEGORY
    paid_by: str
    split_ratio: dict[str, float]
    created_at: datetime = Field(default_factory=_now)


class Settlement(BaseModel):
    """One suggested payment: `from_member` owes `to_member` `amount`.

    Frozen so that a settlement doubles as its own identity key when paid
    state is stored.
    """

    from_member: str = Field(alias="from")
    to_member: str = Field(alias="to")
    amount: float

    class Config:
        frozen = True
        populate_by_name = True


class Group(CamelModel):
    id: str
    name: str
    members: list[Member] = []
    bills: list[Bill] = []
    paid_settlements: list[Settlement] = []
    created_at: datetime = Field(default_factory=_now)

    def member_ids(self) -> set[str]:
        return {m.id for m in self.members}

    def member_name(self, member_id: str) -> str:
        return next((m.name for m in self.members if m.id == member_id), "Unknown")


Balances = dict[str, float]


class Stats(CamelModel):
    total: float = 0.0
    by_category: dict[str, float] = {}
    by_member: dict[str, float] = {}
    average_per_person: float = 0.0
    bill_count: int = 0
    top_category: Optional[str] = None
    top_spender: Optional[str] = None


class RecentBill(CamelModel):
    group_id: str
    group_name: str
    bill: Bill


class Overview(CamelModel):
    total_groups: int = 0
    total_members: int = 0
    total_bills: int = 0
    total_expenses: float = 0.0
    top_categories: list[tuple[str, float]] = []
    recent_bills: list[RecentBill] = []


# ----- Requests -----
class GroupCreate(BaseModel):
    name: str


class GroupUpdate(BaseModel):
    name: Optional[str] = None


class MemberCreate(BaseModel):
    name: str


class BillCreate(CamelModel):
    description: str
    amount: float
    category: str = DEFAULT_CATEGORY
    paid_by: str
    split_ratio: Optional[dict[str, float]] = None
    # Equal split over these members when split_ratio is not given.
    participant_ids: Optional[list[str]] = None


class BillUpdate(CamelModel):
    description: Optional[str] = None
    amount: Optional[float] = None
    category: Optional[str] = None
    paid_by: Optional[str] = None
    split_ratio: Optional[dict[str, float]] = None
    participant_ids: Optional[list[str]] = None


# ----- Responses -----
class GroupSummary(CamelModel):
    id: str
    name: str
    member_count: int
    bill_count: int
    total_expenses: float
    created_at: Optional[datetime] = None


class SettlementEntry(CamelModel):
    index: int
    from_member: str = Field(serialization_alias="from")
    from_name: str
    to_member: str = Field(serialization_alias="to")
    to_name: str
    amount: float
    paid: bool


class SettlementSummary(CamelModel):
    group_id: str
    members: list[Member] = []
    balances: Balances
    effective_balances: Balances
    settlements: list[SettlementEntry]
    pending_count: int
    paid_count: int
