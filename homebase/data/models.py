"""
Homebase Assistant — Data Models.

Plain records for the household data the assistant reasons over, plus the
immutable snapshot handed to the rule executor and the AI system prompt.
Rows come out of the store as dicts; `from_row` keeps only the fields the
core needs and tolerates missing keys.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


def _num(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


@dataclass(frozen=True)
class Bill:
    """A household bill (utility, subscription, loan payment, ...)."""

    id: str
    bill_name: str
    due_date: str                     # ISO date YYYY-MM-DD
    amount: float
    status: str = "pending"           # pending | paid | overdue | cancelled
    provider_name: str | None = None
    payment_url: str | None = None

    @classmethod
    def from_row(cls, row: dict) -> Bill:
        return cls(
            id=str(row.get("id", "")),
            bill_name=row.get("bill_name") or "",
            due_date=row.get("due_date") or "",
            amount=_num(row.get("amount")),
            status=row.get("status") or "pending",
            provider_name=row.get("provider_name"),
            payment_url=row.get("payment_url"),
        )

    @property
    def display_name(self) -> str:
        return self.bill_name or self.provider_name or "Bill"


@dataclass(frozen=True)
class Vehicle:
    year: int | None = None
    make: str | None = None
    model: str | None = None
    registration_expiry: str | None = None
    insurance_expiry: str | None = None

    @classmethod
    def from_row(cls, row: dict) -> Vehicle:
        return cls(
            year=row.get("year"),
            make=row.get("make"),
            model=row.get("model"),
            registration_expiry=row.get("registration_expiry"),
            insurance_expiry=row.get("insurance_expiry"),
        )

    @property
    def label(self) -> str:
        parts = [str(p) for p in (self.year, self.make, self.model) if p]
        return " ".join(parts) or "Vehicle"


@dataclass(frozen=True)
class Pet:
    name: str
    type: str | None = None
    breed: str | None = None
    vet_name: str | None = None
    vet_phone: str | None = None
    notes: str | None = None

    @classmethod
    def from_row(cls, row: dict) -> Pet:
        return cls(
            name=row.get("name") or "",
            type=row.get("type"),
            breed=row.get("breed"),
            vet_name=row.get("vet_name"),
            vet_phone=row.get("vet_phone"),
            notes=row.get("notes"),
        )


@dataclass(frozen=True)
class Appointment:
    id: str
    title: str
    appointment_date: str
    appointment_time: str | None = None
    location: str | None = None

    @classmethod
    def from_row(cls, row: dict) -> Appointment:
        return cls(
            id=str(row.get("id", "")),
            title=row.get("title") or "",
            appointment_date=row.get("appointment_date") or "",
            appointment_time=row.get("appointment_time"),
            location=row.get("location"),
        )


@dataclass(frozen=True)
class InsurancePolicy:
    provider: str
    policy_number: str | None = None
    renewal_date: str | None = None

    @classmethod
    def from_row(cls, row: dict) -> InsurancePolicy:
        return cls(
            provider=row.get("provider") or "",
            policy_number=row.get("policy_number"),
            renewal_date=row.get("renewal_date"),
        )


@dataclass(frozen=True)
class MedicalRecord:
    provider: str | None = None
    record_date: str | None = None
    record_type: str | None = None
    notes: str | None = None

    @classmethod
    def from_row(cls, row: dict) -> MedicalRecord:
        return cls(
            provider=row.get("provider"),
            record_date=row.get("record_date"),
            record_type=row.get("record_type"),
            notes=row.get("notes"),
        )


@dataclass(frozen=True)
class ServiceContact:
    """A home service contact (plumber, dentist, electrician, ...)."""

    name: str
    service_type: str
    phone: str | None = None

    @classmethod
    def from_row(cls, row: dict) -> ServiceContact:
        return cls(
            name=row.get("name") or "",
            service_type=row.get("service_type") or "",
            phone=row.get("phone"),
        )


@dataclass(frozen=True)
class GrowthRecord:
    """A child's measurements on a given date (shoe size, height, ...)."""

    name: str
    record_date: str
    shoe_size: str | None = None

    @classmethod
    def from_row(cls, row: dict) -> GrowthRecord:
        return cls(
            name=row.get("name") or "",
            record_date=row.get("record_date") or "",
            shoe_size=row.get("shoe_size"),
        )


@dataclass(frozen=True)
class MonthlySpending:
    total: float = 0.0
    by_category: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class HouseholdContext:
    """Read-only view of one user's household data for a single request.

    Built fresh on every conversational turn and discarded afterwards:
    a tool call earlier in the session may have changed the data.
    """

    bills: tuple[Bill, ...] = ()
    vehicles: tuple[Vehicle, ...] = ()
    pets: tuple[Pet, ...] = ()
    appointments: tuple[Appointment, ...] = ()
    insurance: tuple[InsurancePolicy, ...] = ()
    medical: tuple[MedicalRecord, ...] = ()
    home_services: tuple[ServiceContact, ...] = ()
    monthly_spending: MonthlySpending = field(default_factory=MonthlySpending)
    shopping_list: tuple[str, ...] = ()
