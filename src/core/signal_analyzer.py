"""
MedSure Interaction Engine - Adverse-Event Signal Analyzer
Co-occurrence vs. baseline reaction frequencies from openFDA reports
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from config import settings
from src.clients.openfda import OpenFDAClient, single_drug_query, drug_pair_query
from src.core.errors import UpstreamFetchError
from src.core.models import AdverseEventProfile, Confidence, Severity, VerdictStatus

logger = logging.getLogger(__name__)


REACTION_DESCRIPTIONS = {
    "death": "Reports of fatal outcomes when these medications are used together",
    "cardiac": "Heart-related complications reported with this drug combination",
    "bleeding": "Increased bleeding risk when these medications are combined",
    "hemorrhage": "Severe bleeding events reported with this combination",
    "liver": "Liver-related adverse effects noted with this drug pairing",
    "kidney": "Kidney function problems reported with this combination",
    "seizure": "Seizure activity reported when these drugs are used together",
}

INSUFFICIENT_DATA_MESSAGE = "Insufficient data for reliable interaction analysis"


@dataclass(frozen=True)
class SignalPolicy:
    """Thresholds for flagging adverse-event signal"""
    min_pair_reports: int = settings.SIGNAL_MIN_PAIR_REPORTS
    elevation_concern: float = settings.SIGNAL_ELEVATION_CONCERN
    elevation_moderate: float = settings.SIGNAL_ELEVATION_MODERATE
    high_count: int = settings.SIGNAL_HIGH_COUNT
    max_reactions: int = settings.SIGNAL_MAX_REACTIONS
    high_confidence_reports: int = settings.SIGNAL_HIGH_CONFIDENCE_REPORTS
    medium_confidence_reports: int = settings.SIGNAL_MEDIUM_CONFIDENCE_REPORTS
    severe_keywords: Tuple[str, ...] = settings.SEVERE_REACTION_KEYWORDS


@dataclass
class ConcerningReaction:
    term: str
    reaction: str
    count: int
    severity: Severity
    description: str
    elevation_factor: float


@dataclass
class SignalAnalysis:
    """Statistical verdict fragment for one drug pair"""
    drug1: str
    drug2: str
    has_interaction: bool = False
    severity: Severity = Severity.NONE
    confidence: Confidence = Confidence.LOW
    report_count: int = 0
    reactions: List[ConcerningReaction] = field(default_factory=list)
    status: VerdictStatus = VerdictStatus.OK
    message: Optional[str] = None
    upstream_failed: bool = False


def format_reaction_name(term: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in term.split(" "))


def describe_reaction(term: str, is_severe: bool) -> str:
    for keyword, description in REACTION_DESCRIPTIONS.items():
        if keyword in term:
            return description
    if is_severe:
        return f"Serious adverse events involving {term} reported with this drug combination"
    return f"Elevated reports of {term} when these medications are used together"


class AdverseEventSignalAnalyzer:
    """
    Mines the adverse-event corpus for pair-specific reaction signal.

    The pair profile counts reports naming both drugs; each drug's own
    profile is the baseline a reaction has to stand out against.
    """

    def __init__(
        self,
        fetcher=None,
        policy: Optional[SignalPolicy] = None
    ):
        self.fetcher = fetcher or OpenFDAClient()
        self.policy = policy or SignalPolicy()

    async def _load_profile(self, query: str, limit: int) -> AdverseEventProfile:
        counts = await self.fetcher.count_reactions_for_query(query, limit)
        return AdverseEventProfile.from_counts(counts)

    async def _fetch_profile(self, query: str, limit: int) -> AdverseEventProfile:
        try:
            return await self._load_profile(query, limit)
        except UpstreamFetchError as e:
            logger.warning(f"Adverse-event fetch failed for [{query}]: {e.reason}")
            return AdverseEventProfile.empty()

    async def profile(self, drug_name: str) -> AdverseEventProfile:
        """Baseline reaction profile for a single drug"""
        return await self._fetch_profile(
            single_drug_query(drug_name), settings.OPENFDA_SINGLE_LIMIT
        )

    async def pair_profile(self, drug_a: str, drug_b: str) -> AdverseEventProfile:
        """Reaction profile of reports naming both drugs"""
        return await self._fetch_profile(
            drug_pair_query(drug_a, drug_b), settings.OPENFDA_PAIR_LIMIT
        )

    def elevation_score(
        self,
        term: str,
        pair_frequency: float,
        baseline_a: AdverseEventProfile,
        baseline_b: AdverseEventProfile
    ) -> float:
        """Pair frequency over the larger-signal baseline; 1.0 when neither drug reports the term"""
        ratios = [
            pair_frequency / baseline
            for baseline in (baseline_a.frequency_of(term), baseline_b.frequency_of(term))
            if baseline
        ]
        return max(ratios) if ratios else 1.0

    def identify_concerning_reactions(
        self,
        pair: AdverseEventProfile,
        baseline_a: AdverseEventProfile,
        baseline_b: AdverseEventProfile
    ) -> List[ConcerningReaction]:
        policy = self.policy
        concerning = []

        for stat in pair.reactions:
            is_severe = any(keyword in stat.term for keyword in policy.severe_keywords)
            elevation = self.elevation_score(stat.term, stat.frequency, baseline_a, baseline_b)

            if not (is_severe or elevation > policy.elevation_concern or stat.count > policy.high_count):
                continue

            if is_severe:
                severity = Severity.MAJOR
            elif elevation > policy.elevation_moderate:
                severity = Severity.MODERATE
            else:
                severity = Severity.MINOR

            concerning.append(ConcerningReaction(
                term=stat.term,
                reaction=format_reaction_name(stat.term),
                count=stat.count,
                severity=severity,
                description=describe_reaction(stat.term, is_severe),
                elevation_factor=elevation,
            ))

        concerning.sort(key=lambda r: r.count, reverse=True)
        return concerning[:policy.max_reactions]

    def classify_confidence(self, report_count: int, reactions: List[ConcerningReaction]) -> Confidence:
        if report_count >= self.policy.high_confidence_reports and len(reactions) >= 2:
            return Confidence.HIGH
        if report_count >= self.policy.medium_confidence_reports and len(reactions) >= 1:
            return Confidence.MEDIUM
        return Confidence.LOW

    async def analyze_interaction(self, drug_a: str, drug_b: str) -> SignalAnalysis:
        """Statistical interaction analysis for one drug pair"""
        analysis = SignalAnalysis(drug1=drug_a, drug2=drug_b)
        try:
            pair = await self._load_profile(
                drug_pair_query(drug_a, drug_b), settings.OPENFDA_PAIR_LIMIT
            )
        except UpstreamFetchError as e:
            logger.warning(f"Pair adverse-event fetch failed for {drug_a} + {drug_b}: {e.reason}")
            analysis.status = VerdictStatus.INSUFFICIENT_DATA
            analysis.message = INSUFFICIENT_DATA_MESSAGE
            analysis.upstream_failed = True
            return analysis

        analysis.report_count = pair.total_report_count

        if pair.total_report_count < self.policy.min_pair_reports:
            analysis.status = VerdictStatus.INSUFFICIENT_DATA
            analysis.message = INSUFFICIENT_DATA_MESSAGE
            return analysis

        baseline_a, baseline_b = await asyncio.gather(
            self.profile(drug_a), self.profile(drug_b)
        )

        reactions = self.identify_concerning_reactions(pair, baseline_a, baseline_b)
        if reactions:
            analysis.has_interaction = True
            analysis.reactions = reactions
            analysis.severity = Severity.highest(r.severity for r in reactions)
            analysis.confidence = self.classify_confidence(pair.total_report_count, reactions)

        logger.debug(
            f"Signal {drug_a} + {drug_b}: {pair.total_report_count} reports, "
            f"{len(reactions)} concerning reactions"
        )
        return analysis
