from __future__ import annotations

import csv
import io
import logging
import math
from dataclasses import dataclass
from typing import Any

from provider_directory.core.exceptions import ParseError
from provider_directory.core.metrics import InMemoryRefreshMetricsCollector
from provider_directory.core.models import ProviderId, ProviderRecord
from provider_directory.core.refresh import RecordParser
from provider_directory.feed.categories import derive_categories

logger = logging.getLogger(__name__)

_FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "location_id": ("ZdravotnickeZarizeniId", "locationId"),
    "institution_id": ("PoskytovatelId", "PCZ", "institutionId"),
    "title": ("NazevCely", "NazevZarizeni", "title"),
    "institution_type": ("DruhZarizeni", "institutionType"),
    "street": ("Ulice", "street"),
    "house_number": ("CisloDomovniOrientacni", "houseNumber"),
    "city": ("Obec", "city"),
    "postal_code": ("Psc", "postalCode"),
    "phone_number": ("PoskytovatelTelefon", "phoneNumber"),
    "fax": ("PoskytovatelFax", "fax"),
    "email": ("PoskytovatelEmail", "email"),
    "website": ("PoskytovatelWeb", "website"),
    "ico": ("Ico", "ico"),
    "specialization": ("OborPece", "specialization"),
    "care_form": ("FormaPece", "careForm"),
    "care_type": ("DruhPece", "careType"),
    "substitute": ("OdbornyZastupce", "substitute"),
    "gps": ("GPS", "gps"),
}


@dataclass(frozen=True)
class ParseResult:
    records: list[ProviderRecord]
    skipped_rows: int


def _pick(row: dict[str, Any], field: str) -> str | None:
    for key in _FIELD_ALIASES[field]:
        value = row.get(key)
        if value is None:
            continue
        text = str(value).strip()
        if text:
            return text
    return None


def _to_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _parse_gps(value: str | None) -> tuple[float | None, float | None]:
    if not value:
        return None, None
    parts = value.replace(",", " ").split()
    if len(parts) != 2:
        return None, None
    try:
        lat, lng = float(parts[0]), float(parts[1])
    except ValueError:
        return None, None
    if not (math.isfinite(lat) and math.isfinite(lng)):
        return None, None
    return lat, lng


class NrpzsCsvParser(RecordParser):
    """Parser for the national register of healthcare providers (NRPZS) CSV export."""

    def __init__(self, metrics: InMemoryRefreshMetricsCollector | None = None) -> None:
        self._metrics = metrics

    def parse(self, raw: bytes) -> list[ProviderRecord]:
        return self.parse_with_stats(raw).records

    def parse_with_stats(self, raw: bytes) -> ParseResult:
        try:
            text = raw.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise ParseError("feed is not valid utf-8") from exc
        if not text.strip():
            return ParseResult(records=[], skipped_rows=0)

        reader = csv.DictReader(io.StringIO(text, newline=""))
        by_id: dict[ProviderId, ProviderRecord] = {}
        skipped = 0
        try:
            self._check_header(reader.fieldnames or [])
            for row in reader:
                record = self._to_record(row)
                if record is None:
                    skipped += 1
                    continue
                by_id[record.provider_id] = record
        except csv.Error as exc:
            raise ParseError(f"malformed csv at line {reader.line_num}") from exc

        records = list(by_id.values())
        if self._metrics:
            self._metrics.set_parsed(len(records), skipped)
        logger.info(
            "feed_parsed",
            extra={"component": "feed_parser", "record_count": len(records), "skipped_rows": skipped},
        )
        return ParseResult(records=records, skipped_rows=skipped)

    def _check_header(self, fieldnames: list[str]) -> None:
        present = set(fieldnames)
        for field in ("location_id", "institution_id"):
            if not present.intersection(_FIELD_ALIASES[field]):
                expected = " or ".join(_FIELD_ALIASES[field])
                raise ParseError(f"feed header missing identifier column: {expected}")

    def _to_record(self, row: dict[str, Any]) -> ProviderRecord | None:
        location_id = _to_int(_pick(row, "location_id"))
        institution_id = _to_int(_pick(row, "institution_id"))
        if location_id is None or institution_id is None:
            return None
        specialization = _pick(row, "specialization")
        institution_type = _pick(row, "institution_type")
        lat, lng = _parse_gps(_pick(row, "gps"))
        return ProviderRecord(
            location_id=location_id,
            institution_id=institution_id,
            title=_pick(row, "title") or "",
            institution_type=institution_type,
            street=_pick(row, "street"),
            house_number=_pick(row, "house_number"),
            city=_pick(row, "city"),
            postal_code=_pick(row, "postal_code"),
            phone_number=_pick(row, "phone_number"),
            fax=_pick(row, "fax"),
            email=_pick(row, "email"),
            website=_pick(row, "website"),
            ico=_pick(row, "ico"),
            category=derive_categories(specialization, institution_type),
            specialization=specialization,
            care_form=_pick(row, "care_form"),
            care_type=_pick(row, "care_type"),
            substitute=_pick(row, "substitute"),
            lat=lat,
            lng=lng,
        )
