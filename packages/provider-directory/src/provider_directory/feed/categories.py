from __future__ import annotations

from provider_directory.core.models import HealthcareCategory

# Substrings of the NRPZS care fields (lower-cased) mapped onto the taxonomy.
_CARE_KEYWORDS: tuple[tuple[str, HealthcareCategory], ...] = (
    ("praktické lékařství pro dospělé", HealthcareCategory.GENERAL_PRACTITIONER),
    ("všeobecné praktické lékařství", HealthcareCategory.GENERAL_PRACTITIONER),
    ("praktické lékařství pro děti a dorost", HealthcareCategory.PEDIATRICIAN),
    ("zubní lékařství", HealthcareCategory.DENTIST),
    ("stomatologie", HealthcareCategory.DENTIST),
    ("gynekologie", HealthcareCategory.GYNECOLOGY),
    ("dermatovenerologie", HealthcareCategory.DERMATOLOGY),
    ("oftalmologie", HealthcareCategory.OPHTHALMOLOGY),
    ("urologie", HealthcareCategory.UROLOGY),
    ("gastroenterologie", HealthcareCategory.GASTROENTEROLOGY),
    ("mamograf", HealthcareCategory.MAMMOGRAPHY),
)


def derive_categories(*fields: str | None) -> tuple[str, ...]:
    haystack = " ".join(field.lower() for field in fields if field)
    if not haystack:
        return ()
    matched = {category for keyword, category in _CARE_KEYWORDS if keyword in haystack}
    return tuple(category.value for category in HealthcareCategory if category in matched)
