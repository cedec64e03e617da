"""
MedSure Interaction Engine - Data Models
"""
from dataclasses import dataclass, field, asdict
from typing import List, Optional, Dict, Any
from enum import Enum
from datetime import datetime


class Severity(Enum):
    NONE = "none"
    MINOR = "minor"
    MODERATE = "moderate"
    MAJOR = "major"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    def outranks(self, other: "Severity") -> bool:
        return self.rank > other.rank

    @classmethod
    def highest(cls, severities) -> "Severity":
        """Reduce an iterable of severities with major > moderate > minor > none"""
        result = cls.NONE
        for severity in severities:
            if severity.outranks(result):
                result = severity
        return result

    @classmethod
    def parse(cls, value: Optional[str]) -> "Severity":
        """
        Convert an upstream severity label into the enum.

        Called once where registry or statistical data enters the engine;
        everything downstream compares enum members.
        """
        if not value:
            return cls.MINOR
        label = value.strip().lower()
        if label in ("none", ""):
            return cls.NONE
        if label in ("major", "severe", "high"):
            return cls.MAJOR
        if label in ("moderate", "medium"):
            return cls.MODERATE
        return cls.MINOR


_SEVERITY_RANK = {
    Severity.NONE: 0,
    Severity.MINOR: 1,
    Severity.MODERATE: 2,
    Severity.MAJOR: 3,
}


class Confidence(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    VERY_LOW = "very_low"


class EvidenceLevel(Enum):
    CLINICAL_LITERATURE = "clinical_literature"
    ADVERSE_EVENT_REPORTS = "adverse_event_reports"


class VerdictStatus(Enum):
    OK = "ok"
    INSUFFICIENT_DATA = "insufficient_data"
    FAILED = "failed"


@dataclass(frozen=True)
class MedicationRef:
    """A medication as selected by a user"""
    id: str
    display_name: str
    generic_name: Optional[str] = None
    is_local_market_item: bool = False
    rx_norm_code: Optional[str] = None
    added_at: Optional[datetime] = field(default_factory=datetime.now)

    @property
    def is_checkable(self) -> bool:
        has_generic = bool(self.generic_name)
        has_code = bool(self.rx_norm_code)
        return has_generic != has_code and bool(self.interaction_name)

    @property
    def interaction_name(self) -> Optional[str]:
        """Name used as the interaction matching key"""
        if self.is_local_market_item:
            return self.generic_name
        return self.display_name

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["added_at"] = self.added_at.isoformat() if self.added_at else None
        return data


@dataclass(frozen=True)
class NormalizedName:
    canonical: str
    alternatives: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class InteractionRecord:
    """Curated critical interaction keyed by an unordered drug pair"""
    severity: Severity
    mechanism: str
    description: str
    clinical_effects: List[str] = field(default_factory=list)
    monitoring: str = ""
    recommendation: str = ""
    evidence_sources: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class SafeCombinationRecord:
    """Known-safe pair; suppresses statistical analysis"""
    note: str
    safety_statement: str
    examples: List[str] = field(default_factory=list)
    evidence_sources: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ReactionStat:
    term: str
    count: int
    frequency: float


@dataclass
class AdverseEventProfile:
    total_report_count: int = 0
    reactions: List[ReactionStat] = field(default_factory=list)

    @classmethod
    def empty(cls) -> "AdverseEventProfile":
        return cls()

    @classmethod
    def from_counts(cls, counts: List[Dict[str, Any]]) -> "AdverseEventProfile":
        """Build a profile from raw ``{term, count}`` rows"""
        total = sum(int(row.get("count") or 0) for row in counts)
        if total <= 0:
            return cls.empty()

        reactions = [
            ReactionStat(
                term=str(row["term"]).lower(),
                count=int(row["count"]),
                frequency=int(row["count"]) / total,
            )
            for row in counts
            if row.get("term") and int(row.get("count") or 0) > 0
        ]
        reactions.sort(key=lambda r: r.count, reverse=True)
        return cls(total_report_count=total, reactions=reactions)

    def frequency_of(self, term: str) -> Optional[float]:
        for reaction in self.reactions:
            if reaction.term == term:
                return reaction.frequency
        return None


@dataclass
class InteractionFinding:
    """One reported interaction effect within a verdict"""
    severity: Severity
    description: str
    confidence: Confidence
    evidence_level: EvidenceLevel
    mechanism: Optional[str] = None
    clinical_effects: Optional[List[str]] = None
    monitoring: Optional[str] = None
    recommendation: Optional[str] = None
    reaction_name: Optional[str] = None
    report_count: Optional[int] = None
    elevation_factor: Optional[float] = None
    source: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["severity"] = self.severity.value
        data["confidence"] = self.confidence.value
        data["evidence_level"] = self.evidence_level.value
        return data


@dataclass
class InteractionVerdict:
    """Finalized interaction verdict for one drug pair"""
    drug1_name: str
    drug2_name: str
    has_interaction: bool = False
    highest_severity: Severity = Severity.NONE
    confidence: Confidence = Confidence.LOW
    interactions: List[InteractionFinding] = field(default_factory=list)
    sources: List[str] = field(default_factory=list)
    safe_combination_info: Optional[SafeCombinationRecord] = None
    status: VerdictStatus = VerdictStatus.OK
    message: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.status == VerdictStatus.FAILED

    def add_source(self, source: str) -> None:
        if source not in self.sources:
            self.sources.append(source)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "drug1_name": self.drug1_name,
            "drug2_name": self.drug2_name,
            "has_interaction": self.has_interaction,
            "highest_severity": self.highest_severity.value,
            "confidence": self.confidence.value,
            "interactions": [i.to_dict() for i in self.interactions],
            "sources": list(self.sources),
            "safe_combination_info": (
                asdict(self.safe_combination_info) if self.safe_combination_info else None
            ),
            "status": self.status.value,
            "message": self.message,
        }


@dataclass(frozen=True)
class CacheEntry:
    pair_key: str
    verdict: InteractionVerdict
    timestamp: float


@dataclass
class BatchReportEntry:
    """One interacting pair in a batch report"""
    medication1: MedicationRef
    medication2: MedicationRef
    pair_id: str
    drug1_name: str
    drug2_name: str
    severity: Severity
    confidence: Confidence
    interactions: List[InteractionFinding] = field(default_factory=list)
    sources: List[str] = field(default_factory=list)

    @classmethod
    def from_verdict(
        cls,
        med1: MedicationRef,
        med2: MedicationRef,
        verdict: InteractionVerdict
    ) -> "BatchReportEntry":
        return cls(
            medication1=med1,
            medication2=med2,
            pair_id=f"{med1.id}_{med2.id}",
            drug1_name=verdict.drug1_name,
            drug2_name=verdict.drug2_name,
            severity=verdict.highest_severity,
            confidence=verdict.confidence,
            interactions=list(verdict.interactions),
            sources=list(verdict.sources),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "medication1": self.medication1.to_dict(),
            "medication2": self.medication2.to_dict(),
            "pair_id": self.pair_id,
            "drug1_name": self.drug1_name,
            "drug2_name": self.drug2_name,
            "severity": self.severity.value,
            "confidence": self.confidence.value,
            "interactions": [i.to_dict() for i in self.interactions],
            "sources": list(self.sources),
        }


@dataclass
class BatchSummary:
    total: int = 0
    major: int = 0
    moderate: int = 0
    minor: int = 0

    def count(self, severity: Severity) -> None:
        self.total += 1
        if severity == Severity.MAJOR:
            self.major += 1
        elif severity == Severity.MODERATE:
            self.moderate += 1
        else:
            self.minor += 1


@dataclass
class BatchReport:
    interactions: List[BatchReportEntry] = field(default_factory=list)
    summary: BatchSummary = field(default_factory=BatchSummary)
    generated_at: datetime = field(default_factory=datetime.now)

    @property
    def has_major_interactions(self) -> bool:
        return self.summary.major > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "interactions": [entry.to_dict() for entry in self.interactions],
            "summary": asdict(self.summary),
            "generated_at": self.generated_at.isoformat(),
        }


@dataclass
class LocalMedicine:
    """Indian-market product from the local medicine dataset"""
    id: int
    name: str
    manufacturer: Optional[str] = None
    compositions: List[str] = field(default_factory=list)
    price: Optional[float] = None
    type: Optional[str] = None
    pack_size_label: Optional[str] = None
    generic_name: Optional[str] = None

    def to_medication_ref(self) -> MedicationRef:
        return MedicationRef(
            id=f"indian_{self.id}",
            display_name=self.name,
            generic_name=self.generic_name,
            is_local_market_item=True,
        )

    @property
    def formatted_price(self) -> Optional[str]:
        return f"₹{self.price:g}" if self.price is not None else None
