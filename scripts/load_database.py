#!/usr/bin/env python3
"""
MedSure Interaction Engine
Database Loader - Process the Indian medicine dataset

Usage:
    python load_database.py /path/to/indian_medicine_data.csv [--output processed.json]
    python load_database.py sample
"""
import sys
import logging
import argparse
from pathlib import Path

import pandas as pd

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import settings
from src.core.drug_database import IndianMedicineDatabase, PRICE_COLUMN

logging.basicConfig(level=settings.LOG_LEVEL, format=settings.LOG_FORMAT)
logger = logging.getLogger(__name__)

SAMPLE_QUERIES = ["crocin", "dolo", "carvedilol", "warfarin", "tramadol"]

SAMPLE_MEDICINES = [
    (1, "Crocin Advance 500mg Tablet", 15.0, "GlaxoSmithKline Pharmaceuticals Ltd", "strip of 15 tablets", "Paracetamol (500mg)", None),
    (2, "Dolo 650 Tablet", 30.91, "Micro Labs Ltd", "strip of 15 tablets", "Paracetamol (650mg)", None),
    (3, "Cardivas 6.25 Tablet", 78.5, "Sun Pharmaceutical Industries Ltd", "strip of 10 tablets", "Carvedilol (6.25mg)", None),
    (4, "Dilzem 30mg Tablet", 42.0, "Torrent Pharmaceuticals Ltd", "strip of 10 tablets", "Diltiazem (30mg)", None),
    (5, "Warf 5 Tablet", 97.6, "Cipla Ltd", "strip of 30 tablets", "Warfarin (5mg)", None),
    (6, "Ecosprin 75 Tablet", 4.95, "USV Ltd", "strip of 14 tablets", "Aspirin (75mg)", None),
    (7, "Brufen 400 Tablet", 16.24, "Abbott", "strip of 15 tablets", "Ibuprofen (400mg)", None),
    (8, "Ultracet Tablet", 213.0, "Janssen Pharmaceuticals", "strip of 15 tablets", "Tramadol (37.5mg)", "Paracetamol (325mg)"),
    (9, "Fludac Capsule", 62.3, "Cadila Pharmaceuticals Ltd", "strip of 10 capsules", "Fluoxetine (20mg)", None),
    (10, "Simvotin 20 Tablet", 120.0, "Sun Pharmaceutical Industries Ltd", "strip of 10 tablets", "Simvastatin (20mg)", None),
    (11, "Claribid 250 Tablet", 184.0, "Abbott", "strip of 4 tablets", "Clarithromycin (250mg)", None),
    (12, "Piriton Tablet", 12.5, "GlaxoSmithKline Pharmaceuticals Ltd", "strip of 10 tablets", "Chlorpheniramine Maleate (4mg)", None),
]


def load_and_process_database(input_path: str, output_path: str = None, export_json: bool = True):
    """
    Load the Indian medicine CSV export and process it.

    Args:
        input_path: Path to the dataset CSV
        output_path: Optional output path for processed JSON
        export_json: Whether to export processed data to JSON
    """
    db = IndianMedicineDatabase()
    count = db.load_from_csv(input_path)
    logger.info(f"Loaded {count} medicines")

    stats = db.get_statistics()
    logger.info("Database Statistics:")
    for key, value in stats.items():
        logger.info(f"  {key}: {value}")

    if export_json:
        db.export_processed(output_path or str(settings.LOCAL_MEDICINE_DATASET))

    logger.info("Sample Searches:")
    for query in SAMPLE_QUERIES:
        results = db.search(query, limit=3)
        logger.info(f"  '{query}': {len(results)} results")
        for r in results[:2]:
            logger.info(f"    - {r.name} [{r.generic_name}]")

    return db, stats


def generate_sample_database(output_path: str) -> IndianMedicineDatabase:
    """Generate a small sample dataset when the real export is unavailable"""
    frame = pd.DataFrame(
        SAMPLE_MEDICINES,
        columns=["id", "name", PRICE_COLUMN, "manufacturer_name", "pack_size_label",
                 "short_composition1", "short_composition2"],
    )
    frame["type"] = "allopathy"

    db = IndianMedicineDatabase()
    db.load_frame(frame)
    db.export_processed(output_path)

    logger.info(f"Generated sample database with {len(SAMPLE_MEDICINES)} medicines")
    return db


def main():
    parser = argparse.ArgumentParser(description="Load and process the Indian medicine dataset")
    parser.add_argument(
        "input",
        nargs="?",
        help="Path to the dataset CSV (or 'sample' to generate sample data)"
    )
    parser.add_argument("--output", "-o", help="Output path for processed JSON")
    parser.add_argument("--no-export", action="store_true", help="Skip JSON export")

    args = parser.parse_args()

    if args.input == "sample" or args.input is None:
        logger.info("Generating sample database for development...")
        generate_sample_database(args.output or str(settings.DATA_DIR / "sample_medicines.json"))
    else:
        load_and_process_database(args.input, args.output, export_json=not args.no_export)


if __name__ == "__main__":
    main()
