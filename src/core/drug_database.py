"""
MedSure Interaction Engine - Indian Medicine Database
Local-market brand products and their generic names
"""
import pandas as pd
import re
import json
import logging
from pathlib import Path
from typing import List, Dict, Optional, Any
from dataclasses import asdict

from config import settings
from src.core.models import LocalMedicine, MedicationRef

logging.basicConfig(level=settings.LOG_LEVEL, format=settings.LOG_FORMAT)
logger = logging.getLogger(__name__)


# Patterns tried in order against each composition field
COMPOSITION_PATTERNS = [
    re.compile(r"^([A-Za-z\s]+)\s*\("),     # "Fluoxetine (20mg)"
    re.compile(r"^([A-Za-z\s]+)\s+\d+"),    # "Amoxycillin 500mg"
    re.compile(r"^([A-Za-z\s]+)$"),         # "Paracetamol"
]
BRAND_PATTERN = re.compile(r"^([A-Za-z]+)")
SALT_PATTERN = re.compile(
    r"\b(Sodium|Hydrochloride|HCl|Sulphate|Sulfate|Tartrate|Citrate|Maleate)\b",
    re.IGNORECASE
)

PRICE_COLUMN = "price(₹)"


def _value(row: Dict[str, Any], key: str) -> Optional[Any]:
    value = row.get(key)
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    return value


def _counts(column: pd.Series, top: Optional[int] = None) -> Dict[str, int]:
    counts = column.fillna("unknown").value_counts()
    if top:
        counts = counts.head(top)
    return {str(k): int(v) for k, v in counts.items()}


def extract_generic_name(
    composition1: Optional[str],
    composition2: Optional[str],
    medicine_name: Optional[str]
) -> Optional[str]:
    """Extract the active-ingredient name from composition fields"""
    compositions = [c.strip() for c in (composition1, composition2) if c and c.strip()]
    if not compositions:
        return None

    for composition in compositions:
        for pattern in COMPOSITION_PATTERNS:
            match = pattern.match(composition)
            if match:
                generic = SALT_PATTERN.sub("", match.group(1))
                generic = " ".join(generic.split())
                if len(generic) >= 3:
                    return generic

    # Brand name fallback is less reliable
    match = BRAND_PATTERN.match(medicine_name or "")
    if match and len(match.group(1)) >= 4:
        return match.group(1)

    return None


class IndianMedicineDatabase:
    """Searchable Indian medicine dataset"""

    def __init__(self):
        self.medicines: Dict[int, LocalMedicine] = {}
        self._loaded = False

    @property
    def loaded(self) -> bool:
        return self._loaded

    def load_from_csv(self, filepath: str) -> int:
        """Load the raw dataset export (one row per product)"""
        logger.info(f"Loading medicines from CSV: {filepath}")
        return self.load_frame(pd.read_csv(filepath))

    def load_from_json(self, filepath: str) -> int:
        """Load a raw JSON list or a processed export"""
        logger.info(f"Loading medicines from JSON: {filepath}")
        with open(filepath, "r", encoding="utf-8") as f:
            data = json.load(f)

        if isinstance(data, dict) and "medicines" in data:
            return self.load_processed(data["medicines"])
        return self.load_frame(pd.DataFrame(data))

    def load_frame(self, df: pd.DataFrame) -> int:
        count = 0
        for row in df.to_dict("records"):
            try:
                medicine = self._parse_row(row)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Failed to parse medicine: {row.get('name', 'Unknown')} - {e}")
                continue
            self.medicines[medicine.id] = medicine
            count += 1

        self._loaded = True
        logger.info(f"Loaded {count} medicines")
        return count

    def load_processed(self, records: List[Dict[str, Any]]) -> int:
        for record in records:
            medicine = LocalMedicine(**record)
            self.medicines[medicine.id] = medicine
        self._loaded = True
        logger.info(f"Loaded {len(records)} processed medicines")
        return len(records)

    @staticmethod
    def _parse_row(row: Dict[str, Any]) -> LocalMedicine:
        name = str(row["name"])
        composition1 = _value(row, "short_composition1")
        composition2 = _value(row, "short_composition2")
        price = _value(row, PRICE_COLUMN)

        return LocalMedicine(
            id=int(row["id"]),
            name=name,
            manufacturer=_value(row, "manufacturer_name"),
            compositions=[c for c in (composition1, composition2) if c],
            price=float(price) if price is not None else None,
            type=_value(row, "type"),
            pack_size_label=_value(row, "pack_size_label"),
            generic_name=extract_generic_name(composition1, composition2, name),
        )

    def search(self, term: str, limit: int = 10) -> List[LocalMedicine]:
        """Search by brand name or composition; names starting with the term first"""
        if not self._loaded or not term or len(term.strip()) < 2:
            return []

        needle = term.lower().strip()
        results = []
        for medicine in self.medicines.values():
            if len(results) >= limit:
                break
            haystacks = [medicine.name.lower()] + [c.lower() for c in medicine.compositions]
            if any(needle in h for h in haystacks):
                results.append(medicine)

        results.sort(key=lambda m: not m.name.lower().startswith(needle))
        return results

    def get_by_id(self, medicine_id: int) -> Optional[LocalMedicine]:
        return self.medicines.get(medicine_id)

    def to_medication_ref(self, medicine_id: int) -> Optional[MedicationRef]:
        medicine = self.medicines.get(medicine_id)
        return medicine.to_medication_ref() if medicine else None

    def get_statistics(self) -> Dict[str, Any]:
        if not self.medicines:
            return {"total": 0, "by_type": {}, "top_manufacturers": {}, "with_generic_name": 0}

        frame = pd.DataFrame([asdict(m) for m in self.medicines.values()])
        return {
            "total": len(self.medicines),
            "by_type": _counts(frame["type"]),
            "top_manufacturers": _counts(frame["manufacturer"], top=10),
            "with_generic_name": int(frame["generic_name"].notna().sum()),
        }

    def export_processed(self, output_path: str) -> None:
        """Export parsed medicines (with generic names) to JSON"""
        data = {
            "medicines": [asdict(m) for m in self.medicines.values()],
            "stats": self.get_statistics(),
        }
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)

        logger.info(f"Exported {len(self.medicines)} medicines to {output_path}")


# Singleton instance
_medicine_db: Optional[IndianMedicineDatabase] = None

def get_medicine_database() -> IndianMedicineDatabase:
    """Get or create medicine database singleton"""
    global _medicine_db
    if _medicine_db is None:
        _medicine_db = IndianMedicineDatabase()
    return _medicine_db


def init_medicine_database(path: str) -> IndianMedicineDatabase:
    """Initialize medicine database from a CSV or JSON file"""
    global _medicine_db
    _medicine_db = IndianMedicineDatabase()
    if str(path).lower().endswith(".csv"):
        _medicine_db.load_from_csv(path)
    else:
        _medicine_db.load_from_json(path)
    return _medicine_db
