"""
MedSure Interaction Engine - Test Suite
REST API endpoints
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import httpx
import pandas as pd
import pytest
from fastapi.testclient import TestClient

from conftest import FakeFetcher
from src.api import main
from src.clients.rxnorm import RxNormClient
from src.core import batch_checker, drug_database, medication_store
from src.core.batch_checker import BatchInteractionChecker
from src.core.drug_database import IndianMedicineDatabase, PRICE_COLUMN
from src.core.hybrid_resolver import HybridInteractionResolver
from src.core.interaction_cache import InteractionCache
from src.core.medication_store import InMemoryMedicationStore
from src.core.signal_analyzer import AdverseEventSignalAnalyzer


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def client(monkeypatch, fetcher):
    resolver = HybridInteractionResolver(
        analyzer=AdverseEventSignalAnalyzer(fetcher=fetcher),
        cache=InteractionCache(),
    )
    db = IndianMedicineDatabase()
    db.load_frame(pd.DataFrame([
        {"id": 2, "name": "Dolo 650 Tablet", PRICE_COLUMN: 30.91, "manufacturer_name": "Micro Labs Ltd",
         "type": "allopathy", "pack_size_label": "strip of 15 tablets",
         "short_composition1": "Paracetamol (650mg)", "short_composition2": None},
    ]))

    monkeypatch.setattr(batch_checker, "_batch_checker", BatchInteractionChecker(resolver=resolver))
    monkeypatch.setattr(medication_store, "_store", InMemoryMedicationStore())
    monkeypatch.setattr(drug_database, "_medicine_db", db)
    return TestClient(main.app)


class TestHealthEndpoints:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["medicines_loaded"] == 1
        assert data["cache_size"] == 0

    def test_statistics(self, client):
        data = client.get("/statistics").json()
        assert data["interactions"]["known_interactions"]["total"] == 10
        assert data["medicine_database"]["total"] == 1

    def test_shutdown_closes_upstream_clients(self, monkeypatch, fetcher):
        monkeypatch.setattr(batch_checker, "_batch_checker", BatchInteractionChecker(
            resolver=HybridInteractionResolver(analyzer=AdverseEventSignalAnalyzer(fetcher=fetcher))
        ))
        monkeypatch.setattr(main, "rxnorm_client", None)
        monkeypatch.setattr(drug_database, "_medicine_db", IndianMedicineDatabase())

        with TestClient(main.app) as client:
            assert client.get("/").status_code == 200
            assert fetcher.closed is False

        assert fetcher.closed is True


class TestInteractionEndpoints:

    def test_check_critical_pair(self, client, fetcher):
        response = client.post("/interactions/check", json={"drug1_name": "Diltiazem", "drug2_name": "Carvedilol"})
        assert response.status_code == 200
        data = response.json()
        assert data["has_interaction"] is True
        assert data["highest_severity"] == "major"
        assert data["confidence"] == "high"
        assert data["status"] == "ok"
        assert fetcher.calls == []

    def test_check_requires_names(self, client):
        response = client.post("/interactions/check", json={"drug1_name": "", "drug2_name": "Carvedilol"})
        assert response.status_code == 422

    def test_batch(self, client):
        response = client.post("/interactions/batch", json={
            "medications": [
                {"id": "1", "display_name": "Diltiazem", "rx_norm_code": "3443"},
                {"id": "2", "display_name": "Carvedilol", "rx_norm_code": "20352"},
            ],
            "patient_info": {"name": "Test Patient"},
        })
        assert response.status_code == 200
        data = response.json()
        assert data["summary"]["major"] == 1
        assert data["interactions"][0]["pair_id"] == "1_2"
        assert data["patient_info"] == {"name": "Test Patient"}


class TestUserMedicationEndpoints:

    def test_crud(self, client):
        url = "/users/u1/medications"
        response = client.post(url, json={"id": "1", "display_name": "Warfarin", "rx_norm_code": "11289"})
        assert response.status_code == 201
        assert response.json()["added_at"] is not None

        assert [m["id"] for m in client.get(url).json()] == ["1"]

        assert client.delete(f"{url}/1").status_code == 200
        assert client.get(url).json() == []

    def test_remove_unknown_is_404(self, client):
        assert client.delete("/users/u1/medications/missing").status_code == 404

    def test_add_local_medicine(self, client):
        response = client.post("/users/u1/medications/local/2")
        assert response.status_code == 201
        assert response.json()["id"] == "indian_2"
        assert client.post("/users/u1/medications/local/999").status_code == 404

    def test_user_interactions_and_report(self, client):
        client.post("/users/u1/medications", json={"id": "1", "display_name": "Ecosprin", "rx_norm_code": "1191"})
        client.post("/users/u1/medications", json={"id": "2", "display_name": "Coumadin", "rx_norm_code": "202421"})

        data = client.get("/users/u1/interactions").json()
        assert data["summary"]["total"] == 1
        assert data["overall_severity"] == "major"

        report = client.get("/users/u1/interactions/report")
        assert report.status_code == 200
        assert report.headers["content-type"].startswith("text/plain")
        assert "DRUG INTERACTION REPORT" in report.text
        assert "Ecosprin + Coumadin" in report.text


class TestMedicationSearchEndpoints:

    def test_local_search(self, client):
        results = client.get("/medications/search", params={"q": "dolo"}).json()
        assert results[0]["name"] == "Dolo 650 Tablet"
        assert results[0]["generic_name"] == "Paracetamol"
        assert results[0]["checkable"] is True

    def test_local_search_not_loaded(self, client, monkeypatch):
        monkeypatch.setattr(drug_database, "_medicine_db", IndianMedicineDatabase())
        assert client.get("/medications/search", params={"q": "dolo"}).status_code == 503

    def test_rxnorm_search_falls_back_to_approximate(self, client, monkeypatch):
        def handler(request):
            if request.url.path.endswith("/drugs.json"):
                return httpx.Response(200, json={"drugGroup": {}})
            return httpx.Response(200, json={
                "approximateGroup": {"candidate": [{"rxcui": "11289", "name": "warfarin", "score": "7"}]}
            })

        rxnorm = RxNormClient(http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        monkeypatch.setattr(main, "rxnorm_client", rxnorm)

        data = client.get("/medications/rxnorm/search", params={"q": "warfrin"}).json()
        assert data["count"] == 1
        assert data["results"][0]["code"] == "11289"

    def test_rxnorm_outage_is_502(self, client, monkeypatch):
        rxnorm = RxNormClient(http_client=httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(500))
        ))
        monkeypatch.setattr(main, "rxnorm_client", rxnorm)

        assert client.get("/medications/rxnorm/search", params={"q": "warfarin"}).status_code == 502
