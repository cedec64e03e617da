"""
MedSure Interaction Engine - Drug Name Normalizer
Canonical tokens and alternative spellings for brand/generic names
"""
import re
import logging
from typing import List, Dict, Optional

from src.core.models import NormalizedName

logger = logging.getLogger(__name__)


# Standard key -> known brand/generic variants (Indian and international market)
DRUG_SYNONYMS: Dict[str, List[str]] = {
    # Cardiovascular
    "diltiazem": ["diltiazem", "cardizem", "tiazac", "cartia"],
    "carvedilol": ["carvedilol", "coreg", "kredex"],
    "metoprolol": ["metoprolol", "lopressor", "toprol"],
    "propranolol": ["propranolol", "inderal", "hemangeol"],
    "verapamil": ["verapamil", "calan", "isoptin", "verelan"],

    # Anticoagulants / antiplatelets
    "warfarin": ["warfarin", "coumadin", "jantoven"],
    "aspirin": ["aspirin", "acetylsalicylic acid", "asa", "ecosprin", "disprin"],
    "ibuprofen": ["ibuprofen", "advil", "motrin", "brufen"],

    # CNS
    "tramadol": ["tramadol", "ultram", "conzip"],
    "fluoxetine": ["fluoxetine", "prozac", "sarafem", "fludac"],
    "sertraline": ["sertraline", "zoloft", "lustral"],

    # Statins / macrolides
    "simvastatin": ["simvastatin", "zocor"],
    "clarithromycin": ["clarithromycin", "biaxin", "klacid"],

    # Opioids / benzodiazepines
    "morphine": ["morphine", "ms contin", "kadian"],
    "midazolam": ["midazolam", "versed", "dormicum"],

    # OTC
    "paracetamol": ["paracetamol", "acetaminophen", "tylenol", "crocin", "dolo"],
    "chlorpheniramine": ["chlorpheniramine", "chlorphenamine", "clp"],
}

SALT_WORDS = (
    "sodium", "hydrochloride", "hcl", "sulphate", "sulfate",
    "tartrate", "citrate", "maleate",
)
FORM_WORDS = (
    "tablets", "tablet", "capsules", "capsule", "injection",
    "syrup", "cream", "ointment", "oral",
)

# Shorter tokens are not matched inside a longer synonym variant
MIN_CONTAINED_TOKEN_LENGTH = 3

_PARENTHETICAL = re.compile(r"\s*\([^)]*\)")
_DOSAGE = re.compile(r"\s*\d+(?:\.\d+)?\s*(?:mcg|mg|ml)\b", re.IGNORECASE)
_FORM = re.compile(r"\s*\b(?:%s)\b" % "|".join(FORM_WORDS), re.IGNORECASE)
_SALT = re.compile(r"\s*\b(?:%s)\b" % "|".join(SALT_WORDS), re.IGNORECASE)
_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")
_FROM_FIRST_DIGIT = re.compile(r"\s*\d+.*$")
_TRAILING_SALT_OR_FORM = re.compile(
    r"\s+(?:%s).*$" % "|".join(SALT_WORDS + FORM_WORDS), re.IGNORECASE
)


def _basic_token(raw: str) -> str:
    token = _NON_ALNUM.sub("", raw.lower())
    return _WHITESPACE.sub(" ", token).strip()


class NameNormalizer:
    """
    Turns raw brand/generic strings into comparable tokens.

    Pure: depends only on its input and the synonym table given at
    construction time.
    """

    def __init__(self, synonyms: Optional[Dict[str, List[str]]] = None):
        self.synonyms = synonyms if synonyms is not None else DRUG_SYNONYMS

    def clean(self, raw: Optional[str]) -> str:
        """Strip dosage, formulation and salt noise from a drug name"""
        if not raw:
            return ""
        name = raw.lower()
        name = _PARENTHETICAL.sub("", name)
        name = _DOSAGE.sub("", name)
        name = _FORM.sub("", name)
        name = _SALT.sub("", name)
        name = _NON_ALNUM.sub("", name)
        return _WHITESPACE.sub(" ", name).strip()

    def standard_key(self, raw: Optional[str]) -> Optional[str]:
        """Synonym-table key for a name, matched by containment either way"""
        token = _basic_token(raw or "")
        if not token:
            return None
        for standard, variants in self.synonyms.items():
            for variant in variants:
                if variant in token:
                    return standard
                if len(token) >= MIN_CONTAINED_TOKEN_LENGTH and token in variant:
                    return standard
        return None

    def normalize(self, raw: Optional[str]) -> str:
        """Canonical token for a drug name"""
        standard = self.standard_key(raw)
        if standard:
            return standard
        return self.clean(raw)

    def alternatives(self, raw: Optional[str]) -> List[str]:
        """
        Alternative spellings in priority order: cleaned name, raw lowercase,
        first cleaned word, then the name truncated at its first digit.
        """
        if not raw:
            return []

        cleaned = self.clean(raw)
        candidates = [cleaned, raw.lower()]

        words = cleaned.split(" ")
        if words[0] and words[0] != cleaned:
            candidates.append(words[0])

        basic = _FROM_FIRST_DIGIT.sub("", raw.lower())
        basic = _TRAILING_SALT_OR_FORM.sub("", basic).strip()
        if basic and basic != cleaned:
            candidates.append(basic)

        seen = set()
        result = []
        for candidate in candidates:
            if candidate and candidate not in seen:
                seen.add(candidate)
                result.append(candidate)
        return result

    def normalize_name(self, raw: str) -> NormalizedName:
        return NormalizedName(
            canonical=self.normalize(raw),
            alternatives=self.alternatives(raw),
        )

    def pair_key(self, name_a: str, name_b: str) -> str:
        """Sorted, hyphen-joined key for an unordered pair of names"""
        first, second = sorted((self.normalize(name_a), self.normalize(name_b)))
        return f"{first}-{second}"


# Singleton instance
_normalizer: Optional[NameNormalizer] = None

def get_name_normalizer() -> NameNormalizer:
    """Get or create name normalizer singleton"""
    global _normalizer
    if _normalizer is None:
        _normalizer = NameNormalizer()
    return _normalizer
