"""
MedSure Interaction Engine - FastAPI REST API
"""
from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any
from datetime import datetime
import logging

from config import settings
from src.clients.rxnorm import RxNormClient
from src.core.batch_checker import get_batch_checker
from src.core.drug_database import get_medicine_database, init_medicine_database
from src.core.errors import MedicationNotFoundError, UpstreamFetchError
from src.core.medication_store import get_medication_store
from src.core.models import MedicationRef
from src.core.report import report_to_dict, render_text_report

logging.basicConfig(level=settings.LOG_LEVEL, format=settings.LOG_FORMAT)
logger = logging.getLogger(__name__)


# Pydantic models for API
class MedicationRequest(BaseModel):
    id: str = Field(..., min_length=1)
    display_name: str = Field(..., min_length=1)
    generic_name: Optional[str] = None
    is_local_market_item: bool = False
    rx_norm_code: Optional[str] = None

    def to_ref(self) -> MedicationRef:
        return MedicationRef(
            id=self.id,
            display_name=self.display_name,
            generic_name=self.generic_name,
            is_local_market_item=self.is_local_market_item,
            rx_norm_code=self.rx_norm_code,
            added_at=None,
        )


class InteractionCheckRequest(BaseModel):
    drug1_name: str = Field(..., min_length=1)
    drug2_name: str = Field(..., min_length=1)


class BatchCheckRequest(BaseModel):
    medications: List[MedicationRequest]
    patient_info: Dict[str, Any] = {}


class HealthCheckResponse(BaseModel):
    status: str
    version: str
    medicines_loaded: int
    cache_size: int
    timestamp: str


class LocalMedicineResponse(BaseModel):
    id: int
    name: str
    generic_name: Optional[str]
    manufacturer: Optional[str]
    type: Optional[str]
    pack_size_label: Optional[str]
    price: Optional[str]
    checkable: bool


# Create FastAPI app
app = FastAPI(
    title=settings.API_TITLE,
    description="Drug-drug interaction checks combining curated clinical knowledge with openFDA adverse-event signal.",
    version=settings.API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Global state
rxnorm_client: Optional[RxNormClient] = None


def get_rxnorm_client() -> RxNormClient:
    global rxnorm_client
    if rxnorm_client is None:
        rxnorm_client = RxNormClient()
    return rxnorm_client


@app.on_event("startup")
async def startup_event():
    """Initialize services on startup"""
    logger.info(f"Starting {settings.API_TITLE}...")

    if settings.LOCAL_MEDICINE_DATASET.exists():
        try:
            db = init_medicine_database(str(settings.LOCAL_MEDICINE_DATASET))
            logger.info(f"Auto-loaded {len(db.medicines)} medicines from {settings.LOCAL_MEDICINE_DATASET}")
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to auto-load {settings.LOCAL_MEDICINE_DATASET}: {e}")
    else:
        logger.info("No local medicine dataset found; local search disabled")

    get_batch_checker()
    logger.info("Interaction engine initialized")


@app.on_event("shutdown")
async def shutdown_event():
    global rxnorm_client
    if rxnorm_client is not None:
        await rxnorm_client.aclose()
        rxnorm_client = None

    fetcher = get_batch_checker().resolver.analyzer.fetcher
    if hasattr(fetcher, "aclose"):
        await fetcher.aclose()


@app.get("/", tags=["Health"])
async def root():
    """Root endpoint"""
    return {
        "name": settings.API_TITLE,
        "version": settings.API_VERSION,
        "status": "operational",
        "docs": "/docs"
    }


@app.get("/health", response_model=HealthCheckResponse, tags=["Health"])
async def health_check():
    """Health check endpoint"""
    db = get_medicine_database()
    return HealthCheckResponse(
        status="healthy",
        version=settings.API_VERSION,
        medicines_loaded=len(db.medicines) if db.loaded else 0,
        cache_size=get_batch_checker().resolver.get_cache_size(),
        timestamp=datetime.now().isoformat()
    )


@app.get("/statistics", tags=["Admin"])
async def get_statistics():
    """Interaction registry, cache and dataset statistics"""
    db = get_medicine_database()
    return {
        "interactions": get_batch_checker().get_service_stats(),
        "medicine_database": db.get_statistics() if db.loaded else {"status": "not_loaded"},
    }


# ============================================================================
# MEDICATION SEARCH
# ============================================================================

@app.get("/medications/search", response_model=List[LocalMedicineResponse], tags=["Medications"])
async def search_medications(
    q: str = Query(..., min_length=2, description="Brand name or composition"),
    limit: int = Query(10, ge=1, le=100)
):
    """Search the local-market medicine dataset"""
    db = get_medicine_database()
    if not db.loaded:
        raise HTTPException(status_code=503, detail="Medicine dataset not loaded")

    return [
        LocalMedicineResponse(
            id=med.id,
            name=med.name,
            generic_name=med.generic_name,
            manufacturer=med.manufacturer,
            type=med.type,
            pack_size_label=med.pack_size_label,
            price=med.formatted_price,
            checkable=med.to_medication_ref().is_checkable,
        )
        for med in db.search(q, limit)
    ]


@app.get("/medications/rxnorm/search", tags=["Medications"])
async def search_rxnorm(q: str = Query(..., min_length=2, description="Drug name")):
    """
    Search RxNorm concepts by name.
    Falls back to approximate matching when the exact search is empty.
    """
    client = get_rxnorm_client()
    try:
        results = await client.search_by_name(q)
        if not results:
            results = await client.approximate_match(q)
    except UpstreamFetchError as e:
        logger.error(f"RxNorm search failed for {q}: {e}")
        raise HTTPException(status_code=502, detail=str(e))

    return {"query": q, "results": results, "count": len(results)}


# ============================================================================
# USER MEDICATION LISTS
# ============================================================================

@app.get("/users/{user_id}/medications", tags=["User Medications"])
async def list_user_medications(user_id: str):
    return [med.to_dict() for med in get_medication_store().list(user_id)]


@app.post("/users/{user_id}/medications", status_code=201, tags=["User Medications"])
async def add_user_medication(user_id: str, request: MedicationRequest):
    """Add a medication; adding a duplicate returns the existing entry"""
    medication = get_medication_store().add(user_id, request.to_ref())
    return medication.to_dict()


@app.post("/users/{user_id}/medications/local/{medicine_id}", status_code=201, tags=["User Medications"])
async def add_local_medication(user_id: str, medicine_id: int):
    """Add a product from the local-market dataset by its dataset id"""
    ref = get_medicine_database().to_medication_ref(medicine_id)
    if ref is None:
        raise HTTPException(status_code=404, detail="Medicine not found")
    return get_medication_store().add(user_id, ref).to_dict()


@app.delete("/users/{user_id}/medications/{medication_id}", tags=["User Medications"])
async def remove_user_medication(user_id: str, medication_id: str):
    try:
        get_medication_store().remove(user_id, medication_id)
    except MedicationNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"status": "removed", "medication_id": medication_id}


@app.delete("/users/{user_id}/medications", tags=["User Medications"])
async def clear_user_medications(user_id: str):
    get_medication_store().clear(user_id)
    return {"status": "cleared"}


# ============================================================================
# INTERACTION CHECKS
# ============================================================================

@app.post("/interactions/check", tags=["Interactions"])
async def check_interaction(request: InteractionCheckRequest):
    """
    Resolve the interaction verdict for two drug names.

    A verdict with status "failed" means the check could not be completed;
    it is not the same as "no interaction found".
    """
    verdict = await get_batch_checker().resolver.resolve(request.drug1_name, request.drug2_name)
    return verdict.to_dict()


@app.post("/interactions/batch", tags=["Interactions"])
async def check_batch(request: BatchCheckRequest):
    """Check every pair in a medication list"""
    medications = [med.to_ref() for med in request.medications]
    report = await get_batch_checker().check_all(medications)
    return report_to_dict(report, medications, request.patient_info)


@app.get("/users/{user_id}/interactions", tags=["Interactions"])
async def check_user_interactions(user_id: str):
    """Batch check over a user's stored medication list"""
    medications = get_medication_store().list(user_id)
    report = await get_batch_checker().check_all(medications)
    return report_to_dict(report, medications)


@app.get("/users/{user_id}/interactions/report", response_class=PlainTextResponse, tags=["Interactions"])
async def user_interaction_report(user_id: str):
    """Plain-text interaction report for a user's medication list"""
    medications = get_medication_store().list(user_id)
    report = await get_batch_checker().check_all(medications)
    return render_text_report(report, medications)


# Main entry point for running directly
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.API_HOST, port=settings.API_PORT)
