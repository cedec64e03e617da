"""
MedSure Interaction Engine - Batch Interaction Checker
"""
import asyncio
import logging
from typing import List, Dict, Optional, Any, Tuple

from config import settings
from src.core.hybrid_resolver import HybridInteractionResolver
from src.core.models import BatchReport, BatchReportEntry, InteractionVerdict, MedicationRef

logging.basicConfig(level=settings.LOG_LEVEL, format=settings.LOG_FORMAT)
logger = logging.getLogger(__name__)


class BatchInteractionChecker:
    """Checks every unordered pair in a medication list"""

    def __init__(
        self,
        resolver: Optional[HybridInteractionResolver] = None,
        max_concurrency: int = 1
    ):
        self.resolver = resolver or HybridInteractionResolver()
        self.max_concurrency = max(1, max_concurrency)

    @staticmethod
    def checkable(medications: List[MedicationRef]) -> List[MedicationRef]:
        result = []
        for med in medications:
            if med.is_checkable:
                result.append(med)
            else:
                logger.info(f"Skipping {med.display_name} ({med.id}): no usable interaction name")
        return result

    @staticmethod
    def enumerate_pairs(medications: List[MedicationRef]) -> List[Tuple[MedicationRef, MedicationRef]]:
        return [
            (med1, med2)
            for i, med1 in enumerate(medications)
            for med2 in medications[i + 1:]
        ]

    async def _check_pair(self, med1: MedicationRef, med2: MedicationRef) -> Optional[InteractionVerdict]:
        try:
            verdict = await self.resolver.resolve(med1.interaction_name, med2.interaction_name)
        except Exception as e:
            logger.warning(
                f"Failed to check interaction between {med1.interaction_name} "
                f"and {med2.interaction_name}: {e}"
            )
            return None

        if verdict.failed:
            logger.warning(
                f"Skipping {med1.interaction_name} + {med2.interaction_name}: {verdict.message}"
            )
            return None
        return verdict

    async def check_all(self, medications: List[MedicationRef]) -> BatchReport:
        """Interaction report over all pairs of checkable medications"""
        report = BatchReport()
        pairs = self.enumerate_pairs(self.checkable(medications))
        if not pairs:
            return report

        if self.max_concurrency == 1:
            verdicts = []
            for med1, med2 in pairs:
                verdicts.append(await self._check_pair(med1, med2))
        else:
            semaphore = asyncio.Semaphore(self.max_concurrency)

            async def bounded(med1, med2):
                async with semaphore:
                    return await self._check_pair(med1, med2)

            verdicts = await asyncio.gather(*(bounded(m1, m2) for m1, m2 in pairs))

        for (med1, med2), verdict in zip(pairs, verdicts):
            if verdict is None or not verdict.has_interaction:
                continue
            report.interactions.append(BatchReportEntry.from_verdict(med1, med2, verdict))
            report.summary.count(verdict.highest_severity)

        logger.info(
            f"Checked {len(pairs)} pairs: {report.summary.total} interactions "
            f"({report.summary.major} major)"
        )
        return report

    def get_service_stats(self) -> Dict[str, Any]:
        return {
            "known_interactions": self.resolver.registry.get_stats(),
            "cache_size": self.resolver.get_cache_size(),
            "sources": [settings.SOURCE_CLINICAL_KB, settings.SOURCE_OPENFDA],
        }


# Singleton instance
_batch_checker: Optional[BatchInteractionChecker] = None

def get_batch_checker() -> BatchInteractionChecker:
    """Get or create batch checker singleton (process-lifetime cache)"""
    global _batch_checker
    if _batch_checker is None:
        _batch_checker = BatchInteractionChecker()
    return _batch_checker
