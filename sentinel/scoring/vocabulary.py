"""
Keyword vocabularies for deterministic scoring.

Destination and category groups are ordered: the first matching group wins,
and groups overlap.
"""

from typing import List, Tuple

REPRODUCIBILITY_TERMS = [
    "dataset",
    "ipfs",
    "open data",
    "repository",
    "protocol",
    "supplementary",
    "replicate",
]

METHODOLOGY_TERMS = [
    "control",
    "randomized",
    "double-blind",
    "placebo",
    "cohort",
    "statistical",
    "p-value",
    "in vitro",
    "in vivo",
    "sample",
]

NOVELTY_TERMS = [
    "novel",
    "first",
    "breakthrough",
    "new approach",
    "unprecedented",
    "prototype",
]

IMPACT_TERMS = [
    "clinical",
    "therapeutic",
    "treatment",
    "patient",
    "disease",
    "longevity",
    "biotech",
    "genomics",
    "drug",
]

UNASSIGNED_DESTINATION = "Unassigned"
DEFAULT_CATEGORY = "General DeSci"

DESTINATION_GROUPS: List[Tuple[str, List[str]]] = [
    ("HairDAO", ["hair", "follicle", "alopecia", "scalp", "dermatology"]),
    ("VitaDAO", ["longevity", "aging", "senescence", "lifespan", "geroscience", "senolytic"]),
    ("ValleyDAO", ["fermentation", "bioeconomy", "agriculture", "plant", "enzyme", "synthetic biology"]),
    ("AthenaDAO", ["women", "pregnancy", "menopause", "endometriosis", "fertility", "ivf", "maternal"]),
    ("CryoDAO", ["cryopreservation", "cryogenics", "freezing", "tissue storage", "vitrification"]),
    ("PsyDAO", ["psychedelic", "psilocybin", "mdma", "ketamine", "lsd", "psychotherapy"]),
    ("CerebrumDAO", ["neurodegeneration", "alzheimer", "parkinson", "brain health", "dementia", "cerebral", "neuron"]),
    ("Curetopia", ["rare disease", "orphan drug", "genetic disorder", "inherited", "monogenic"]),
    ("Long COVID Labs", ["long covid", "post-viral", "chronic fatigue", "post-acute", "sars-cov-2 sequelae"]),
    ("Quantum Biology DAO", ["quantum biology", "quantum microscope", "photosynthesis", "quantum coherence", "tunneling"]),
]

CATEGORY_GROUPS: List[Tuple[str, List[str]]] = [
    ("Genomics", ["genomic", "genomics", "dna", "rna"]),
    ("Drug Discovery", ["drug", "compound", "therapeutic"]),
    ("Longevity", ["longevity", "aging"]),
    ("Clinical Trials", ["clinical", "trial", "patient"]),
    ("Biotech", ["synthetic biology", "biotech", "enzyme"]),
    ("Psychedelic Medicine", ["psychedelic", "psilocybin", "mdma"]),
    ("Neuroscience", ["neurodegeneration", "alzheimer", "parkinson", "brain"]),
    ("Rare Diseases", ["rare disease", "orphan", "genetic disorder"]),
    ("Cryobiology", ["cryopreservation", "cryogenics", "freezing"]),
    ("Post-Viral Syndromes", ["long covid", "post-viral"]),
    ("Quantum Biology", ["quantum", "microscope"]),
]
