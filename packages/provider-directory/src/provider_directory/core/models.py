from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import StrEnum
from pathlib import Path
from typing import Any


class HealthcareCategory(StrEnum):
    GENERAL_PRACTITIONER = "Praktický lékař"
    PEDIATRICIAN = "Praktický lékař pro děti a dorost"
    DENTIST = "Zubař"
    GYNECOLOGY = "Gynekologie"
    DERMATOLOGY = "Dermatologie"
    OPHTHALMOLOGY = "Oční lékařství"
    UROLOGY = "Urologie"
    GASTROENTEROLOGY = "Gastroenterologie"
    MAMMOGRAPHY = "Mamografický screening"


@dataclass(frozen=True, order=True)
class ProviderId:
    location_id: int
    institution_id: int


@dataclass(frozen=True)
class SimpleProvider:
    location_id: int
    institution_id: int
    title: str
    street: str | None
    house_number: str | None
    city: str | None
    postal_code: str | None
    category: tuple[str, ...]
    specialization: str | None
    lat: float | None
    lng: float | None

    def to_payload(self) -> dict[str, Any]:
        return {
            "locationId": self.location_id,
            "institutionId": self.institution_id,
            "title": self.title,
            "street": self.street,
            "houseNumber": self.house_number,
            "city": self.city,
            "postalCode": self.postal_code,
            "category": list(self.category),
            "specialization": self.specialization,
            "lat": self.lat,
            "lng": self.lng,
        }


@dataclass(frozen=True)
class ProviderRecord:
    location_id: int
    institution_id: int
    title: str
    institution_type: str | None = None
    street: str | None = None
    house_number: str | None = None
    city: str | None = None
    postal_code: str | None = None
    phone_number: str | None = None
    fax: str | None = None
    email: str | None = None
    website: str | None = None
    ico: str | None = None
    category: tuple[str, ...] = ()
    specialization: str | None = None
    care_form: str | None = None
    care_type: str | None = None
    substitute: str | None = None
    lat: float | None = None
    lng: float | None = None

    @property
    def provider_id(self) -> ProviderId:
        return ProviderId(location_id=self.location_id, institution_id=self.institution_id)

    def simplify(self) -> SimpleProvider:
        return SimpleProvider(
            location_id=self.location_id,
            institution_id=self.institution_id,
            title=self.title,
            street=self.street,
            house_number=self.house_number,
            city=self.city,
            postal_code=self.postal_code,
            category=self.category,
            specialization=self.specialization,
            lat=self.lat,
            lng=self.lng,
        )

    def to_detail_payload(self) -> dict[str, Any]:
        payload = self.simplify().to_payload()
        payload.update(
            {
                "institutionType": self.institution_type,
                "phoneNumber": self.phone_number,
                "fax": self.fax,
                "email": self.email,
                "website": self.website,
                "ico": self.ico,
                "careForm": self.care_form,
                "careType": self.care_type,
                "substitute": self.substitute,
            }
        )
        return payload


def format_update_label(value: date) -> str:
    # Unpadded, e.g. 2026-3-2.
    return f"{value.year}-{value.month}-{value.day}"


@dataclass(frozen=True)
class UpdateStatus:
    message: str
    last_update: str
    provider_count: int
    batch_count: int
    snapshot_path: Path


@dataclass(frozen=True)
class DirectoryStatus:
    last_update: str | None
    updating: bool

    def to_payload(self) -> dict[str, Any]:
        return {"lastUpdate": self.last_update, "updating": self.updating}
