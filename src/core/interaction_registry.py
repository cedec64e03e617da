"""
MedSure Interaction Engine - Known-Interaction Registry
Curated critical interactions and known-safe combinations
"""
import logging
from collections import defaultdict
from typing import List, Dict, Optional, Any

from config import settings
from src.core.errors import RegistryIntegrityError
from src.core.models import InteractionRecord, SafeCombinationRecord, Severity
from src.core.name_normalizer import NameNormalizer, get_name_normalizer

logging.basicConfig(level=settings.LOG_LEVEL, format=settings.LOG_FORMAT)
logger = logging.getLogger(__name__)


# Critical interactions that must never be missed
# Keys are "<drug>-<drug>"; they are re-keyed through the normalizer on load.
CRITICAL_INTERACTIONS: Dict[str, Dict[str, Any]] = {
    # ==================== Cardiovascular ====================
    "diltiazem-carvedilol": {
        "severity": "major",
        "mechanism": "Additive cardiovascular effects",
        "description": (
            "Both diltiazem and carvedilol can lower heart rate and blood pressure. "
            "Concurrent use may lead to severe bradycardia, hypotension, and cardiac "
            "conduction abnormalities."
        ),
        "clinical_effects": [
            "Severe bradycardia (slow heart rate)",
            "Hypotension (low blood pressure)",
            "AV block (heart conduction problems)",
            "Cardiac arrest in severe cases",
        ],
        "monitoring": "Close cardiac monitoring required. Monitor heart rate, blood pressure, and ECG.",
        "recommendation": (
            "Use with extreme caution. Consider alternative medications. If used together, "
            "start with lowest doses and monitor closely."
        ),
        "sources": ["FDA", "Clinical literature", "Drugs.com"],
    },
    "diltiazem-metoprolol": {
        "severity": "major",
        "mechanism": "Additive negative chronotropic and inotropic effects",
        "description": (
            "Combination of calcium channel blocker with beta-blocker can cause severe "
            "cardiovascular depression."
        ),
        "clinical_effects": ["Severe bradycardia", "Heart failure exacerbation", "Hypotension", "AV block"],
        "monitoring": "Cardiac monitoring essential",
        "recommendation": "Use together only under specialist supervision",
        "sources": ["FDA", "Clinical guidelines"],
    },
    "diltiazem-propranolol": {
        "severity": "major",
        "mechanism": "Additive cardiovascular effects",
        "description": "Combined negative chronotropic and inotropic effects can lead to severe cardiac depression.",
        "clinical_effects": ["Severe bradycardia", "Hypotension", "Cardiac conduction abnormalities"],
        "monitoring": "Continuous cardiac monitoring",
        "recommendation": "Avoid combination if possible",
        "sources": ["FDA", "Clinical literature"],
    },
    "verapamil-carvedilol": {
        "severity": "major",
        "mechanism": "Additive cardiovascular depression",
        "description": "Both drugs significantly depress cardiac function when used together.",
        "clinical_effects": ["Severe bradycardia", "Hypotension", "Heart failure"],
        "monitoring": "Close cardiac monitoring required",
        "recommendation": "Use with extreme caution",
        "sources": ["FDA", "Clinical guidelines"],
    },

    # ==================== Anticoagulants ====================
    "aspirin-warfarin": {
        "severity": "major",
        "mechanism": "Increased bleeding risk",
        "description": (
            "Warfarin and aspirin both affect blood clotting through different mechanisms, "
            "significantly increasing bleeding risk."
        ),
        "clinical_effects": [
            "Major bleeding",
            "Gastrointestinal bleeding",
            "Intracranial hemorrhage",
            "Excessive anticoagulation",
        ],
        "monitoring": "Frequent INR monitoring, watch for bleeding signs",
        "recommendation": (
            "Use together only when benefits clearly outweigh risks. Consider PPI for GI protection."
        ),
        "sources": ["FDA", "Clinical guidelines", "Hematology literature"],
    },
    "ibuprofen-warfarin": {
        "severity": "major",
        "mechanism": "Increased bleeding risk and INR elevation",
        "description": "NSAIDs can increase warfarin effect and independently increase bleeding risk.",
        "clinical_effects": ["Major bleeding", "Elevated INR", "GI bleeding"],
        "monitoring": "Frequent INR checks, bleeding assessment",
        "recommendation": "Avoid if possible. Use acetaminophen as alternative.",
        "sources": ["FDA", "Clinical literature"],
    },

    # ==================== CNS ====================
    "fluoxetine-tramadol": {
        "severity": "major",
        "mechanism": "Serotonin syndrome risk",
        "description": (
            "Both drugs increase serotonin activity, potentially causing life-threatening "
            "serotonin syndrome."
        ),
        "clinical_effects": [
            "Serotonin syndrome",
            "Hyperthermia",
            "Altered mental status",
            "Neuromuscular abnormalities",
            "Seizures",
        ],
        "monitoring": "Monitor for serotonin syndrome symptoms",
        "recommendation": "Avoid combination. Consider alternative pain management.",
        "sources": ["FDA", "Psychiatry literature"],
    },
    "sertraline-tramadol": {
        "severity": "major",
        "mechanism": "Serotonin syndrome risk",
        "description": "Increased risk of serotonin syndrome and seizures.",
        "clinical_effects": ["Serotonin syndrome", "Seizures", "CNS toxicity"],
        "monitoring": "Close neurological monitoring",
        "recommendation": "Use with extreme caution",
        "sources": ["FDA", "Clinical literature"],
    },

    # ==================== Metabolic ====================
    "clarithromycin-simvastatin": {
        "severity": "major",
        "mechanism": "CYP3A4 inhibition increases statin levels",
        "description": (
            "Clarithromycin significantly increases simvastatin levels, leading to "
            "rhabdomyolysis risk."
        ),
        "clinical_effects": ["Rhabdomyolysis", "Muscle damage", "Kidney failure", "Elevated CK levels"],
        "monitoring": "Monitor for muscle symptoms, CK levels",
        "recommendation": "Avoid combination. Suspend statin during clarithromycin course.",
        "sources": ["FDA", "Clinical literature"],
    },

    # ==================== Respiratory ====================
    "midazolam-morphine": {
        "severity": "major",
        "mechanism": "Additive respiratory depression",
        "description": "Combined use significantly increases risk of severe respiratory depression.",
        "clinical_effects": ["Severe respiratory depression", "Coma", "Death", "Hypoxia"],
        "monitoring": "Continuous respiratory monitoring",
        "recommendation": "Avoid combination unless in monitored setting",
        "sources": ["FDA", "Anesthesiology literature"],
    },
}

# Common OTC combinations with a well-established safety profile
SAFE_COMBINATIONS: Dict[str, Dict[str, Any]] = {
    "chlorpheniramine-paracetamol": {
        "note": "Extremely common combination in OTC cold medications worldwide",
        "safety": "Well-established safety profile",
        "examples": ["Sinarest", "D-Cold", "Crocin Cold & Flu", "Tylenol Cold"],
        "sources": ["WHO Essential Medicines", "FDA OTC monographs", "Clinical literature"],
    },
    "acetaminophen-chlorpheniramine": {
        "note": "Same as paracetamol-chlorpheniramine (different naming)",
        "safety": "Well-established safety profile",
        "examples": ["Tylenol Cold", "Sudafed PE", "Robitussin Cold"],
        "sources": ["WHO Essential Medicines", "FDA OTC monographs"],
    },
    "acetaminophen-ibuprofen": {
        "note": "Commonly used together for pain/fever management",
        "safety": "Safe when used at recommended doses",
        "examples": ["Often prescribed together by doctors"],
        "sources": ["Pediatric guidelines", "Clinical literature"],
    },
    "paracetamol-ibuprofen": {
        "note": "Same as acetaminophen-ibuprofen (different naming)",
        "safety": "Safe when used at recommended doses",
        "examples": ["WHO pain management guidelines"],
        "sources": ["WHO guidelines", "Pediatric literature"],
    },
}


def _build_interaction_record(key: str, data: Dict[str, Any]) -> InteractionRecord:
    severity_label = str(data.get("severity", "")).lower()
    if severity_label not in ("major", "moderate", "minor"):
        raise RegistryIntegrityError(f"{key}: invalid severity '{data.get('severity')}'")

    record = InteractionRecord(
        severity=Severity.parse(severity_label),
        mechanism=data.get("mechanism", ""),
        description=data.get("description", ""),
        clinical_effects=list(data.get("clinical_effects", [])),
        monitoring=data.get("monitoring", ""),
        recommendation=data.get("recommendation", ""),
        evidence_sources=list(data.get("sources", [])),
    )

    if record.severity == Severity.MAJOR:
        missing = [
            name for name in ("mechanism", "clinical_effects", "monitoring", "recommendation")
            if not getattr(record, name)
        ]
        if missing:
            raise RegistryIntegrityError(f"{key}: major interaction missing {', '.join(missing)}")
    return record


def _build_safe_record(key: str, data: Dict[str, Any]) -> SafeCombinationRecord:
    sources = list(data.get("sources", []))
    if not sources:
        raise RegistryIntegrityError(f"{key}: safe combination needs at least one source")
    return SafeCombinationRecord(
        note=data.get("note", ""),
        safety_statement=data.get("safety", ""),
        examples=list(data.get("examples", [])),
        evidence_sources=sources,
    )


class KnownInteractionRegistry:
    """
    Static lookup of critical and known-safe drug pairs.

    Lookups are exact dictionary reads on the normalized pair key; name
    fuzziness is resolved by the caller trying alternative spellings.
    """

    def __init__(
        self,
        critical: Optional[Dict[str, Dict[str, Any]]] = None,
        safe: Optional[Dict[str, Dict[str, Any]]] = None,
        normalizer: Optional[NameNormalizer] = None
    ):
        self.normalizer = normalizer or get_name_normalizer()
        self.critical: Dict[str, InteractionRecord] = {}
        self.safe: Dict[str, SafeCombinationRecord] = {}
        # key -> the two canonical drug tokens
        self._pairs: Dict[str, tuple] = {}

        self._load(critical if critical is not None else CRITICAL_INTERACTIONS, self.critical, _build_interaction_record)
        self._load(safe if safe is not None else SAFE_COMBINATIONS, self.safe, _build_safe_record)

        logger.info(
            f"Interaction registry initialized with {len(self.critical)} critical "
            f"and {len(self.safe)} safe combinations"
        )

    def _load(self, seed: Dict[str, Dict[str, Any]], index: Dict, builder) -> None:
        for raw_key, data in seed.items():
            try:
                drug1, drug2 = raw_key.split("-", 1)
            except ValueError:
                raise RegistryIntegrityError(f"{raw_key}: key must be '<drug>-<drug>'")

            record = builder(raw_key, data)
            key = self.normalizer.pair_key(drug1, drug2)
            if key in index:
                logger.debug(f"Registry key {raw_key} collapses onto {key}; keeping first entry")
                continue
            index[key] = record
            self._pairs[key] = tuple(key.split("-", 1))

    def lookup_interaction(self, name_a: str, name_b: str) -> Optional[InteractionRecord]:
        """Critical interaction for a pair, or None"""
        return self.critical.get(self.normalizer.pair_key(name_a, name_b))

    def lookup_safe_combination(self, name_a: str, name_b: str) -> Optional[SafeCombinationRecord]:
        """Known-safe record for a pair, or None"""
        return self.safe.get(self.normalizer.pair_key(name_a, name_b))

    def interactions_for_drug(self, drug_name: str) -> List[Dict[str, Any]]:
        """All critical interactions involving a drug"""
        token = self.normalizer.normalize(drug_name)
        results = []
        for key, record in self.critical.items():
            drug1, drug2 = self._pairs[key]
            if token not in (drug1, drug2):
                continue
            results.append({
                "interacting_drug": drug2 if drug1 == token else drug1,
                "record": record,
            })
        return results

    def search_by_mechanism(self, mechanism: str) -> List[Dict[str, Any]]:
        needle = mechanism.lower()
        return [
            {"key": key, "record": record}
            for key, record in self.critical.items()
            if needle in record.mechanism.lower()
        ]

    def get_stats(self) -> Dict[str, Any]:
        by_severity = defaultdict(int)
        for record in self.critical.values():
            by_severity[record.severity.value] += 1
        return {
            "total": len(self.critical),
            "safe_combinations": len(self.safe),
            "by_severity": dict(by_severity),
            "drugs_count": len(self.normalizer.synonyms),
        }


# Singleton instance
_registry: Optional[KnownInteractionRegistry] = None

def get_interaction_registry() -> KnownInteractionRegistry:
    """Get or create interaction registry singleton"""
    global _registry
    if _registry is None:
        _registry = KnownInteractionRegistry()
    return _registry
