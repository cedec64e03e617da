"""
MedSure Interaction Engine - openFDA Adverse Event Client
"""
import logging
import httpx
from typing import List, Dict, Optional, Any

from config import settings
from src.core.errors import UpstreamFetchError

logger = logging.getLogger(__name__)

REACTION_COUNT_FIELD = "patient.reaction.reactionmeddrapt.exact"


class OpenFDAClient:
    """
    Counts adverse-event reactions for a search expression over the
    openFDA drug event endpoint.
    """

    source = "openFDA"

    def __init__(
        self,
        base_url: str = None,
        timeout: float = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self.base_url = base_url or settings.OPENFDA_EVENTS_URL
        self.http_client = http_client or httpx.AsyncClient(
            timeout=timeout or settings.HTTP_TIMEOUT_SECONDS
        )

    async def count_reactions_for_query(
        self,
        query: str,
        limit: int = settings.OPENFDA_SINGLE_LIMIT
    ) -> List[Dict[str, Any]]:
        """
        Reaction term counts for reports matching ``query``.

        Returns ``[{"term": str, "count": int}, ...]``. A 404 means openFDA
        found no matching reports and yields an empty list.
        """
        params = {"search": query, "count": REACTION_COUNT_FIELD, "limit": limit}

        try:
            resp = await self.http_client.get(self.base_url, params=params)
        except httpx.HTTPError as e:
            raise UpstreamFetchError(self.source, f"request failed: {e}")

        if resp.status_code == 404:
            return []
        if resp.status_code != 200:
            raise UpstreamFetchError(self.source, f"HTTP {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as e:
            raise UpstreamFetchError(self.source, f"invalid JSON: {e}")

        results = data.get("results", []) if isinstance(data, dict) else None
        if not isinstance(results, list):
            raise UpstreamFetchError(self.source, "unexpected response shape")

        counts = []
        for item in results:
            if not isinstance(item, dict):
                raise UpstreamFetchError(self.source, f"malformed result row: {item!r}")
            try:
                count = int(item.get("count", 0))
            except (TypeError, ValueError):
                raise UpstreamFetchError(self.source, f"non-integer count: {item.get('count')!r}")
            counts.append({"term": item.get("term"), "count": count})
        return counts

    async def aclose(self) -> None:
        await self.http_client.aclose()

    async def __aenter__(self) -> "OpenFDAClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


def single_drug_query(drug_name: str) -> str:
    return f'patient.drug.medicinalproduct:"{drug_name}"'


def drug_pair_query(drug_a: str, drug_b: str) -> str:
    return f"{single_drug_query(drug_a)} AND {single_drug_query(drug_b)}"
