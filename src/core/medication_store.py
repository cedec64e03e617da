"""
MedSure Interaction Engine - Per-user Medication Store
"""
import logging
from collections import defaultdict
from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Optional

from src.core.errors import MedicationNotFoundError
from src.core.models import MedicationRef

logger = logging.getLogger(__name__)


class MedicationStore:
    """Interface the engine expects from the persistence layer"""

    def list(self, user_id: str) -> List[MedicationRef]:
        raise NotImplementedError

    def add(self, user_id: str, medication: MedicationRef) -> MedicationRef:
        raise NotImplementedError

    def remove(self, user_id: str, medication_id: str) -> None:
        raise NotImplementedError

    def clear(self, user_id: str) -> None:
        raise NotImplementedError


class InMemoryMedicationStore(MedicationStore):
    """Process-local store, ordered by insertion"""

    def __init__(self):
        self._medications: Dict[str, List[MedicationRef]] = defaultdict(list)

    def list(self, user_id: str) -> List[MedicationRef]:
        return list(self._medications.get(user_id, []))

    def add(self, user_id: str, medication: MedicationRef) -> MedicationRef:
        """Add a medication; re-adding the same id or RxNorm code returns the existing record"""
        for existing in self._medications[user_id]:
            if existing.id == medication.id:
                return existing
            if medication.rx_norm_code and existing.rx_norm_code == medication.rx_norm_code:
                return existing

        if medication.added_at is None:
            medication = replace(medication, added_at=datetime.now())
        self._medications[user_id].append(medication)
        logger.info(f"Added {medication.display_name} for user {user_id}")
        return medication

    def remove(self, user_id: str, medication_id: str) -> None:
        medications = self._medications.get(user_id, [])
        for index, med in enumerate(medications):
            if med.id == medication_id:
                del medications[index]
                return
        raise MedicationNotFoundError(f"Medication {medication_id} not found for user {user_id}")

    def clear(self, user_id: str) -> None:
        self._medications.pop(user_id, None)


# Singleton instance
_store: Optional[InMemoryMedicationStore] = None

def get_medication_store() -> InMemoryMedicationStore:
    """Get or create medication store singleton"""
    global _store
    if _store is None:
        _store = InMemoryMedicationStore()
    return _store
