"""
Curated registry of funding destinations (BioDAOs).

The scorer recommends one of these by name; the API serves the registry so
clients can render a destination's description and focus area.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class Partner(BaseModel):
    """A funding destination."""

    name: str
    website: str
    description: str
    focus_area: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "website": self.website,
            "description": self.description,
            "focusArea": self.focus_area,
        }


PARTNER_REGISTRY: List[Partner] = [
    Partner(
        name="VitaDAO",
        website="https://vitadao.com",
        description="Funding early-stage longevity research, backed by Pfizer Ventures.",
        focus_area="Longevity",
    ),
    Partner(
        name="HairDAO",
        website="https://www.hairdao.xyz",
        description="The network state solving hair loss via DAO-owned patents.",
        focus_area="Dermatology",
    ),
    Partner(
        name="ValleyDAO",
        website="https://www.valleydao.bio",
        description="Funding synthetic biology research, partnered with Imperial College London.",
        focus_area="Synthetic Biology",
    ),
    Partner(
        name="AthenaDAO",
        website="https://www.athenadao.co",
        description="Advancing women's health R&D with 14 IP deals pending.",
        focus_area="Women's Health",
    ),
    Partner(
        name="CryoDAO",
        website="https://www.cryodao.org",
        description="Advancing cryopreservation with Oxford Cryotechnology.",
        focus_area="Cryobiology",
    ),
    Partner(
        name="PsyDAO",
        website="https://psydao.io",
        description="Tokenized psychedelic science and clinical trials.",
        focus_area="Psychedelic Medicine",
    ),
    Partner(
        name="CerebrumDAO",
        website="https://www.cerebrumdao.com",
        description="Tackling neurodegenerative disease with Fission Pharma.",
        focus_area="Neuroscience",
    ),
    Partner(
        name="Curetopia",
        website="https://www.curetopia.xyz",
        description="Tackling the $1T rare disease space by uniting patient communities.",
        focus_area="Rare Diseases",
    ),
    Partner(
        name="Long COVID Labs",
        website="https://longcovidlabs.org",
        description="Accelerating a cure for 100M+ Long COVID patients.",
        focus_area="Post-Viral Syndromes",
    ),
    Partner(
        name="Quantum Biology DAO",
        website="https://quantumbiology.xyz",
        description="Building quantum microscopes to advance bio research.",
        focus_area="Quantum Biology",
    ),
]


def list_partners() -> List[Partner]:
    return list(PARTNER_REGISTRY)


def get_partner(name: str) -> Optional[Partner]:
    """Look up a partner by name (case-insensitive)."""
    wanted = name.lower()
    for partner in PARTNER_REGISTRY:
        if partner.name.lower() == wanted:
            return partner
    return None
