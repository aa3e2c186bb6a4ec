#!/usr/bin/env python
"""
Seed Data
Script to seed the document store with demo medicines and intake history
"""

import sys
import os
import argparse
import asyncio
import logging
import random
from datetime import datetime, timedelta

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import init_db, drop_db
from models import AdherenceStatus
from services.tracker_service import TrackerService


logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


DEMO_MEDICINES = [
    {"name": "Metformin", "dosage": "500mg", "times": ["08:00", "18:00"],
     "instructions": "Take with meals", "rate": 0.88},
    {"name": "Lisinopril", "dosage": "10mg", "times": ["08:00"],
     "instructions": "Take in the morning", "rate": 0.92},
    {"name": "Atorvastatin", "dosage": "20mg", "times": ["21:00"],
     "instructions": "Take at bedtime", "rate": 0.85},
]

DEMO_PROFILE = {
    "name": "John Doe",
    "age": 59,
    "health_condition": "Type 2 Diabetes, Hypertension",
    "emergency_contact": "+15551234567",
    "caregiver_email": "caregiver@example.com",
    "doctor_name": "Dr. Sarah Smith",
    "doctor_phone": "+15559876543",
}


async def seed_all(days: int = 30) -> None:
    """Seed the profile, medicines and `days` days of intake history"""
    tracker = TrackerService()
    await tracker.hydrate()

    if tracker.list_medicines():
        logger.info("Medicines already present, skipping (use --clear to reseed)")
        return

    random.seed(42)  # For reproducibility
    today = datetime.now().date()

    await tracker.set_profile(DEMO_PROFILE)

    records_created = 0
    for data in DEMO_MEDICINES:
        medicine = await tracker.add_medicine({
            "name": data["name"],
            "dosage": data["dosage"],
            "times": data["times"],
            "instructions": data["instructions"],
            "start_date": today - timedelta(days=days),
        })

        for day_offset in range(1, days + 1):  # Skip today
            record_date = today - timedelta(days=day_offset)
            # Weekend adherence slightly lower
            rate = data["rate"] - 0.05 if record_date.weekday() >= 5 else data["rate"]

            for slot in medicine.times:
                roll = random.random()
                if roll < rate:
                    status = AdherenceStatus.TAKEN
                elif roll < rate + 0.03:
                    status = AdherenceStatus.SKIPPED
                else:
                    # unrecorded slots resolve as missed
                    continue
                await tracker.update_intake_status(medicine.id, record_date, slot, status)
                records_created += 1

    logger.info(f"Seeded {len(DEMO_MEDICINES)} medicines and {records_created} intake records")


def main():
    parser = argparse.ArgumentParser(
        description="Seed the document store with demo data"
    )
    parser.add_argument(
        "--clear",
        action="store_true",
        help="Drop existing data before seeding"
    )
    parser.add_argument(
        "--days",
        type=int,
        default=30,
        help="Days of intake history to generate"
    )

    args = parser.parse_args()

    if args.clear:
        drop_db()
    init_db()
    asyncio.run(seed_all(days=args.days))


if __name__ == "__main__":
    main()
