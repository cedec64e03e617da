"""
Shared fixtures for the interaction engine test suite
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import asyncio
import pytest


def single(name):
    return f'patient.drug.medicinalproduct:"{name}"'


def pair(name_a, name_b):
    return f"{single(name_a)} AND {single(name_b)}"


def rows(**counts):
    """openFDA-style count rows: rows(NAUSEA=10) -> [{"term": "NAUSEA", "count": 10}]"""
    return [{"term": term.replace("_", " "), "count": count} for term, count in counts.items()]


class FakeFetcher:
    """Stands in for OpenFDAClient; answers by exact query and records every call"""

    def __init__(self, responses=None, default=None, errors=None, error=None):
        self.responses = responses or {}
        self.default = default or []
        self.errors = errors or {}
        self.error = error
        self.calls = []
        self.closed = False

    async def count_reactions_for_query(self, query, limit=30):
        self.calls.append(query)
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        if query in self.errors:
            raise self.errors[query]
        return list(self.responses.get(query, self.default))

    async def aclose(self):
        self.closed = True


# Pair with one elevated reaction: hyperkalaemia is 6x its baseline rate
AMILORIDE_LISINOPRIL = {
    pair("amiloride", "lisinopril"): rows(HYPERKALAEMIA=30, NAUSEA=10, DIZZINESS=10),
    single("amiloride"): rows(HYPERKALAEMIA=10, NAUSEA=90),
    single("lisinopril"): rows(COUGH=80, NAUSEA=20),
}


@pytest.fixture
def signal_responses():
    return dict(AMILORIDE_LISINOPRIL)
