"""
Tests for the funding destination registry.
"""

from sentinel.registry import PARTNER_REGISTRY, get_partner, list_partners


def test_ten_partners():
    partners = list_partners()

    assert len(partners) == 10
    assert len({p.name for p in partners}) == 10
    assert all(p.website.startswith("https://") for p in partners)


def test_list_is_a_copy():
    partners = list_partners()
    partners.clear()

    assert len(PARTNER_REGISTRY) == 10


def test_get_partner_case_insensitive():
    assert get_partner("vitadao").focus_area == "Longevity"
    assert get_partner("Long COVID Labs").focus_area == "Post-Viral Syndromes"
    assert get_partner("Unassigned") is None


def test_to_dict_uses_api_keys():
    data = get_partner("CryoDAO").to_dict()

    assert data == {
        "name": "CryoDAO",
        "website": "https://www.cryodao.org",
        "description": "Advancing cryopreservation with Oxford Cryotechnology.",
        "focusArea": "Cryobiology",
    }
