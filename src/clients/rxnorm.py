"""
MedSure Interaction Engine - RxNorm Nomenclature Client
Used by medication search to attach RxNorm codes; not by interaction resolution
"""
import logging
import httpx
from typing import List, Dict, Optional, Any

from config import settings
from src.core.errors import UpstreamFetchError

logger = logging.getLogger(__name__)

# Preferred term types: clinical drug, branded drug, generic pack, branded pack
TERM_TYPE_PRIORITY = {"SCD": 1, "SBD": 2, "GPCK": 3, "BPCK": 4}


class RxNormClient:
    """Thin async wrapper around the RxNav REST API"""

    source = "RxNorm"

    def __init__(
        self,
        base_url: str = None,
        timeout: float = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self.base_url = (base_url or settings.RXNORM_BASE_URL).rstrip("/")
        self.http_client = http_client or httpx.AsyncClient(
            timeout=timeout or settings.HTTP_TIMEOUT_SECONDS
        )

    async def _get_json(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        try:
            resp = await self.http_client.get(f"{self.base_url}{path}", params=params)
        except httpx.HTTPError as e:
            raise UpstreamFetchError(self.source, f"request failed: {e}")

        if resp.status_code != 200:
            raise UpstreamFetchError(self.source, f"HTTP {resp.status_code}")

        try:
            return resp.json()
        except ValueError as e:
            raise UpstreamFetchError(self.source, f"invalid JSON: {e}")

    async def search_by_name(self, term: str) -> List[Dict[str, Any]]:
        """
        Search drug concepts by name.

        Returns ``[{"code", "display_name", "type"}]`` for English,
        non-suppressed concepts, preferred term types first.
        """
        data = await self._get_json("/drugs.json", {"name": term})
        groups = (data.get("drugGroup") or {}).get("conceptGroup") or []

        concepts = []
        for group in groups:
            for concept in group.get("conceptProperties") or []:
                if concept.get("suppress") == "Y" or concept.get("language", "ENG") != "ENG":
                    continue
                concepts.append({
                    "code": concept.get("rxcui"),
                    "display_name": concept.get("name"),
                    "type": concept.get("tty"),
                })

        concepts.sort(key=lambda c: TERM_TYPE_PRIORITY.get(c["type"], 99))
        return concepts[:settings.RXNORM_SEARCH_LIMIT]

    async def approximate_match(
        self,
        term: str,
        max_entries: int = settings.RXNORM_APPROXIMATE_MAX_ENTRIES
    ) -> List[Dict[str, Any]]:
        """Approximate-term candidates as ``[{"code", "display_name", "score"}]``"""
        data = await self._get_json(
            "/approximateTerm.json", {"term": term, "maxEntries": max_entries}
        )
        candidates = (data.get("approximateGroup") or {}).get("candidate") or []
        return [
            {
                "code": c.get("rxcui"),
                "display_name": c.get("name"),
                "score": float(c.get("score") or 0),
            }
            for c in candidates
        ]

    async def aclose(self) -> None:
        await self.http_client.aclose()

    async def __aenter__(self) -> "RxNormClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
