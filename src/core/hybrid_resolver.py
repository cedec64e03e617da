"""
MedSure Interaction Engine - Hybrid Interaction Resolver
Registry first, adverse-event signal second, one verdict per drug pair
"""
import asyncio
import copy
import logging
from typing import List, Optional, Tuple

from config import settings
from src.core.interaction_cache import InteractionCache
from src.core.interaction_registry import KnownInteractionRegistry, get_interaction_registry
from src.core.models import (
    Confidence, EvidenceLevel, InteractionFinding, InteractionRecord,
    InteractionVerdict, SafeCombinationRecord, Severity, VerdictStatus
)
from src.core.name_normalizer import NameNormalizer, get_name_normalizer
from src.core.signal_analyzer import (
    AdverseEventSignalAnalyzer, SignalAnalysis, INSUFFICIENT_DATA_MESSAGE
)

logging.basicConfig(level=settings.LOG_LEVEL, format=settings.LOG_FORMAT)
logger = logging.getLogger(__name__)

OPENFDA_FINDING_SOURCE = "OpenFDA Adverse Events Analysis"


class HybridInteractionResolver:
    """
    Resolves one drug pair into a finalized InteractionVerdict.

    1. Critical registry hit wins outright (confidence high).
    2. Known-safe registry hit ends resolution without statistical analysis.
    3. Otherwise the adverse-event analyzer runs over every alternative-name
       combination and the best-evidenced result is merged.
    """

    def __init__(
        self,
        registry: Optional[KnownInteractionRegistry] = None,
        analyzer: Optional[AdverseEventSignalAnalyzer] = None,
        normalizer: Optional[NameNormalizer] = None,
        cache: Optional[InteractionCache] = None
    ):
        self.normalizer = normalizer or get_name_normalizer()
        self.registry = registry or get_interaction_registry()
        self.analyzer = analyzer or AdverseEventSignalAnalyzer()
        self.cache = cache if cache is not None else InteractionCache()

    async def resolve(self, name_a: str, name_b: str) -> InteractionVerdict:
        """Interaction verdict for a pair; never raises for a bad pair"""
        key = self.cache.pair_key(name_a, name_b)

        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"Cache hit for {key}")
            return self._for_caller(cached, name_a, name_b)

        pending = self.cache.inflight(key)
        if pending is not None:
            logger.debug(f"Joining in-flight resolution for {key}")
            verdict = await asyncio.shield(pending)
            return self._for_caller(verdict, name_a, name_b)

        future = asyncio.get_running_loop().create_future()
        self.cache.mark_inflight(key, future)
        try:
            verdict, complete = await self._resolve_uncached(name_a, name_b)
            if complete and not verdict.failed:
                self.cache.set(key, verdict)
            elif not verdict.failed:
                logger.info(f"Not caching {key}: adverse-event source unavailable")
            future.set_result(verdict)
        finally:
            self.cache.clear_inflight(key)
            if not future.done():
                future.cancel()

        return self._for_caller(verdict, name_a, name_b)

    @staticmethod
    def _for_caller(verdict: InteractionVerdict, name_a: str, name_b: str) -> InteractionVerdict:
        result = copy.deepcopy(verdict)
        result.drug1_name = name_a
        result.drug2_name = name_b
        return result

    def name_combinations(self, name_a: str, name_b: str) -> List[Tuple[str, str]]:
        """
        Alternative-name pairs in priority order.

        The pair is put in a fixed order first so that (a, b) and (b, a)
        walk the same combinations.
        """
        first, second = sorted((name_a, name_b), key=lambda n: (n.lower(), n))
        return [
            (alt1, alt2)
            for alt1 in self.normalizer.alternatives(first)
            for alt2 in self.normalizer.alternatives(second)
        ]

    async def _resolve_uncached(self, name_a: str, name_b: str) -> Tuple[InteractionVerdict, bool]:
        """Verdict plus whether it rests on complete upstream data"""
        verdict = InteractionVerdict(drug1_name=name_a, drug2_name=name_b)
        combinations = self.name_combinations(name_a, name_b)
        complete = True

        try:
            record = self._first_critical_hit(combinations)
            if record is not None:
                self._apply_critical(verdict, record)
            else:
                safe = self._first_safe_hit(combinations)
                if safe is not None:
                    self._apply_safe(verdict, safe)
                else:
                    complete = await self._apply_signal(verdict, combinations)
        except Exception as e:
            logger.warning(f"Interaction resolution failed for {name_a} + {name_b}: {e}")
            if not verdict.sources:
                verdict.has_interaction = False
                verdict.status = VerdictStatus.FAILED
                verdict.message = f"Interaction check could not be completed: {e}"

        self.finalize(verdict)
        return verdict, complete

    def _first_critical_hit(self, combinations) -> Optional[InteractionRecord]:
        for alt1, alt2 in combinations:
            record = self.registry.lookup_interaction(alt1, alt2)
            if record is not None:
                return record
        return None

    def _first_safe_hit(self, combinations) -> Optional[SafeCombinationRecord]:
        for alt1, alt2 in combinations:
            record = self.registry.lookup_safe_combination(alt1, alt2)
            if record is not None:
                return record
        return None

    def _apply_critical(self, verdict: InteractionVerdict, record: InteractionRecord) -> None:
        verdict.has_interaction = True
        verdict.highest_severity = record.severity
        verdict.confidence = Confidence.HIGH
        verdict.interactions.append(InteractionFinding(
            severity=record.severity,
            description=record.description,
            mechanism=record.mechanism,
            clinical_effects=list(record.clinical_effects),
            monitoring=record.monitoring,
            recommendation=record.recommendation,
            reaction_name=f"{record.mechanism} - Critical Interaction",
            confidence=Confidence.HIGH,
            evidence_level=EvidenceLevel.CLINICAL_LITERATURE,
            source=settings.SOURCE_CLINICAL_KB,
        ))
        verdict.add_source(settings.SOURCE_CLINICAL_KB)

    def _apply_safe(self, verdict: InteractionVerdict, record: SafeCombinationRecord) -> None:
        verdict.has_interaction = False
        verdict.confidence = Confidence.HIGH
        verdict.safe_combination_info = record
        verdict.add_source(settings.SOURCE_SAFETY_DB)

    async def _apply_signal(self, verdict: InteractionVerdict, combinations) -> bool:
        """
        Merge the best-evidenced signal into the verdict.

        Returns False when no interaction was found and at least one pair
        query failed upstream, so the negative result is not final.
        """
        best: Optional[SignalAnalysis] = None
        analyzed = 0
        insufficient = 0
        upstream_failed = 0
        last_error: Optional[Exception] = None

        for alt1, alt2 in combinations:
            try:
                analysis = await self.analyzer.analyze_interaction(alt1, alt2)
            except Exception as e:
                logger.debug(f"Signal analysis failed for {alt1} + {alt2}: {e}")
                last_error = e
                continue

            analyzed += 1
            if analysis.status == VerdictStatus.INSUFFICIENT_DATA:
                insufficient += 1
            if analysis.upstream_failed:
                upstream_failed += 1
            if analysis.has_interaction and (best is None or analysis.report_count > best.report_count):
                best = analysis

        if best is None:
            if combinations and analyzed == 0 and last_error is not None:
                raise last_error
            if analyzed and insufficient == analyzed:
                verdict.status = VerdictStatus.INSUFFICIENT_DATA
                verdict.message = INSUFFICIENT_DATA_MESSAGE
            return upstream_failed == 0

        verdict.has_interaction = True
        verdict.add_source(settings.SOURCE_OPENFDA)
        for reaction in best.reactions:
            verdict.interactions.append(InteractionFinding(
                severity=reaction.severity,
                description=reaction.description,
                reaction_name=reaction.reaction,
                report_count=best.report_count,
                confidence=best.confidence,
                elevation_factor=reaction.elevation_factor,
                evidence_level=EvidenceLevel.ADVERSE_EVENT_REPORTS,
                source=OPENFDA_FINDING_SOURCE,
            ))

        if best.severity.outranks(verdict.highest_severity):
            verdict.highest_severity = best.severity
        return True

    def finalize(self, verdict: InteractionVerdict) -> None:
        """Reconcile overall confidence and severity"""
        if not verdict.has_interaction:
            return

        if settings.SOURCE_CLINICAL_KB in verdict.sources:
            verdict.confidence = Confidence.HIGH
        elif settings.SOURCE_OPENFDA in verdict.sources:
            total_reports = sum(f.report_count or 0 for f in verdict.interactions)
            if total_reports >= settings.VERDICT_MEDIUM_CONFIDENCE_REPORTS:
                verdict.confidence = Confidence.MEDIUM
            elif total_reports >= settings.VERDICT_LOW_CONFIDENCE_REPORTS:
                verdict.confidence = Confidence.LOW
            else:
                verdict.confidence = Confidence.VERY_LOW

        if verdict.highest_severity == Severity.NONE:
            verdict.highest_severity = Severity.MINOR

    def get_cache_size(self) -> int:
        return len(self.cache)
