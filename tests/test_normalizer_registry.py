"""
MedSure Interaction Engine - Test Suite
Name normalization and the known-interaction registry
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from src.core.errors import RegistryIntegrityError
from src.core.interaction_registry import (
    KnownInteractionRegistry, CRITICAL_INTERACTIONS, SAFE_COMBINATIONS
)
from src.core.models import Severity
from src.core.name_normalizer import NameNormalizer


class TestNameNormalizer:
    """Test cleaning, synonym keys and alternative spellings"""

    @pytest.fixture
    def normalizer(self):
        return NameNormalizer()

    def test_clean_strips_dosage_and_form(self, normalizer):
        assert normalizer.clean("Diltiazem 60mg Tablet") == "diltiazem"
        assert normalizer.clean("Carvedilol 6.25 mg") == "carvedilol"

    def test_clean_strips_salt_and_parentheticals(self, normalizer):
        assert normalizer.clean("Metformin HCl 500mg") == "metformin"
        assert normalizer.clean("Tramadol (as hydrochloride) 50mg Capsule") == "tramadol"

    def test_clean_empty(self, normalizer):
        assert normalizer.clean("") == ""
        assert normalizer.clean(None) == ""

    def test_normalize_uses_synonym_table(self, normalizer):
        assert normalizer.normalize("Coumadin") == "warfarin"
        assert normalizer.normalize("Tylenol Extra Strength") == "paracetamol"
        assert normalizer.normalize("Dolo 650") == "paracetamol"

    def test_normalize_unknown_falls_back_to_clean(self, normalizer):
        assert normalizer.normalize("Lisinopril 10mg Tablet") == "lisinopril"

    def test_dosage_and_form_do_not_change_token(self, normalizer):
        assert normalizer.normalize("Diltiazem 60mg Tablet") == normalizer.normalize("diltiazem")

    def test_alternatives_priority_order(self, normalizer):
        assert normalizer.alternatives("Diltiazem 60mg Tablet") == [
            "diltiazem",
            "diltiazem 60mg tablet",
        ]

    def test_alternatives_include_first_word_and_truncated_name(self, normalizer):
        alts = normalizer.alternatives("Augmentin Duo 625")
        assert alts == ["augmentin duo 625", "augmentin", "augmentin duo"]

    def test_alternatives_are_unique(self, normalizer):
        alts = normalizer.alternatives("Warfarin")
        assert alts == ["warfarin"]

    def test_alternatives_empty(self, normalizer):
        assert normalizer.alternatives("") == []

    def test_pair_key_is_order_independent(self, normalizer):
        assert normalizer.pair_key("Warfarin 5mg", "Ecosprin 75") == "aspirin-warfarin"
        assert normalizer.pair_key("Ecosprin 75", "Warfarin 5mg") == "aspirin-warfarin"

    def test_normalize_name(self, normalizer):
        result = normalizer.normalize_name("Coreg 12.5mg")
        assert result.canonical == "carvedilol"
        assert result.alternatives[0] == "coreg"

    def test_short_token_is_not_matched_inside_variant(self, normalizer):
        assert normalizer.normalize("B") == "b"
        assert normalizer.standard_key("b") is None
        assert normalizer.pair_key("B", "Warfarin") == "b-warfarin"

    def test_partial_token_still_matches_variant(self, normalizer):
        assert normalizer.normalize("Ibu") == "ibuprofen"

    def test_custom_synonym_table(self):
        normalizer = NameNormalizer(synonyms={"foo": ["foo", "foobrand"]})
        assert normalizer.normalize("FooBrand") == "foo"
        assert normalizer.normalize("Warfarin") == "warfarin"


class TestKnownInteractionRegistry:
    """Test seeded lookups and registry invariants"""

    @pytest.fixture
    def registry(self):
        return KnownInteractionRegistry()

    def test_all_seeded_critical_entries_are_major_and_complete(self, registry):
        assert len(registry.critical) == len(CRITICAL_INTERACTIONS)
        for record in registry.critical.values():
            assert record.severity == Severity.MAJOR
            assert record.mechanism
            assert record.clinical_effects
            assert record.monitoring
            assert record.recommendation

    def test_safe_entries_have_sources(self, registry):
        for record in registry.safe.values():
            assert record.evidence_sources

    def test_lookup_is_symmetric(self, registry):
        forward = registry.lookup_interaction("diltiazem", "carvedilol")
        backward = registry.lookup_interaction("carvedilol", "diltiazem")
        assert forward is not None
        assert forward is backward
        assert forward.mechanism == "Additive cardiovascular effects"

    def test_lookup_by_brand_names(self, registry):
        record = registry.lookup_interaction("Coumadin", "Ecosprin")
        assert record is not None
        assert record.mechanism == "Increased bleeding risk"

    def test_lookup_miss_returns_none(self, registry):
        assert registry.lookup_interaction("amiloride", "lisinopril") is None
        assert registry.lookup_safe_combination("amiloride", "lisinopril") is None

    def test_safe_lookup(self, registry):
        record = registry.lookup_safe_combination("paracetamol", "chlorpheniramine")
        assert record is not None
        assert record.safety_statement == "Well-established safety profile"

    def test_acetaminophen_entries_collapse_onto_paracetamol(self, registry):
        assert len(SAFE_COMBINATIONS) == 4
        assert len(registry.safe) == 2
        assert registry.lookup_safe_combination("acetaminophen", "ibuprofen") is \
            registry.lookup_safe_combination("paracetamol", "ibuprofen")

    def test_interactions_for_drug(self, registry):
        partners = {r["interacting_drug"] for r in registry.interactions_for_drug("Cardizem")}
        assert partners == {"carvedilol", "metoprolol", "propranolol"}

    def test_search_by_mechanism(self, registry):
        keys = {r["key"] for r in registry.search_by_mechanism("bleeding")}
        assert keys == {"aspirin-warfarin", "ibuprofen-warfarin"}

    def test_stats(self, registry):
        stats = registry.get_stats()
        assert stats["total"] == 10
        assert stats["safe_combinations"] == 2
        assert stats["by_severity"] == {"major": 10}


class TestRegistryIntegrity:
    """Malformed seed data is rejected at construction"""

    MAJOR_ENTRY = {
        "severity": "major",
        "mechanism": "Additive effect",
        "description": "Test interaction",
        "clinical_effects": ["Effect"],
        "monitoring": "Monitor",
        "recommendation": "Avoid",
        "sources": ["Test"],
    }

    def test_invalid_severity(self):
        with pytest.raises(RegistryIntegrityError):
            KnownInteractionRegistry(critical={"drugx-drugy": dict(self.MAJOR_ENTRY, severity="catastrophic")}, safe={})

    def test_major_entry_missing_monitoring(self):
        with pytest.raises(RegistryIntegrityError):
            KnownInteractionRegistry(critical={"drugx-drugy": dict(self.MAJOR_ENTRY, monitoring="")}, safe={})

    def test_safe_entry_without_sources(self):
        with pytest.raises(RegistryIntegrityError):
            KnownInteractionRegistry(critical={}, safe={"drugx-drugy": {"note": "n", "safety": "s", "sources": []}})

    def test_malformed_key(self):
        with pytest.raises(RegistryIntegrityError):
            KnownInteractionRegistry(critical={"drugx": self.MAJOR_ENTRY}, safe={})

    def test_moderate_entry_may_omit_clinical_detail(self):
        registry = KnownInteractionRegistry(
            critical={"drugx-drugy": {"severity": "moderate", "description": "Minor overlap", "sources": ["Test"]}},
            safe={},
        )
        assert registry.lookup_interaction("drugy", "drugx").severity == Severity.MODERATE


class TestSeverity:
    """Severity ordering and ingestion"""

    def test_total_order(self):
        ordered = [Severity.NONE, Severity.MINOR, Severity.MODERATE, Severity.MAJOR]
        for lower, higher in zip(ordered, ordered[1:]):
            assert higher.outranks(lower)
            assert not lower.outranks(higher)

    def test_highest(self):
        assert Severity.highest([Severity.MINOR, Severity.MAJOR, Severity.MODERATE]) == Severity.MAJOR
        assert Severity.highest([]) == Severity.NONE

    def test_parse(self):
        assert Severity.parse("Major") == Severity.MAJOR
        assert Severity.parse("moderate") == Severity.MODERATE
        assert Severity.parse("none") == Severity.NONE
        assert Severity.parse(None) == Severity.MINOR
