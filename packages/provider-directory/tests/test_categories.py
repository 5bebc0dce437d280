from provider_directory.core.models import HealthcareCategory
from provider_directory.feed.categories import derive_categories


def test_derive_categories_matches_care_fields() -> None:
    assert derive_categories("Praktické lékařství pro děti a dorost") == (HealthcareCategory.PEDIATRICIAN.value,)
    assert derive_categories("Mamografický screening") == (HealthcareCategory.MAMMOGRAPHY.value,)


def test_derive_categories_follows_taxonomy_order() -> None:
    assert derive_categories("urologie", "Zubní lékařství") == ("Zubař", "Urologie")


def test_derive_categories_without_match() -> None:
    assert derive_categories(None, "") == ()
    assert derive_categories("kardiologie") == ()
