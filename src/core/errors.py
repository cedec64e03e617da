"""
MedSure Interaction Engine - Exceptions
"""


class InteractionEngineError(Exception):
    """Base class for engine errors"""


class UpstreamFetchError(InteractionEngineError):
    """An external data source could not be reached or returned garbage"""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"{source}: {reason}")


class RegistryIntegrityError(InteractionEngineError):
    """Seed data in the interaction registry is malformed"""


class MedicationNotFoundError(InteractionEngineError):
    """Medication id not present in a user's list"""
