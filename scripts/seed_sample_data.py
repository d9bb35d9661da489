#!/usr/bin/env python3
"""
Generate sample practice data for testing.

Creates synthetic clients with cases and sessions so reports and exports
can be tried without real client records. Output is reproducible for a
given seed.

Usage:
    # 30 clients into the default database
    python scripts/seed_sample_data.py

    # More clients into a separate database
    python scripts/seed_sample_data.py --clients 200 --db-path data/sample.db

    # Different but still reproducible data
    python scripts/seed_sample_data.py --seed 7
"""

import argparse
import logging
import random
import sys
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Optional

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from notizia.config.constants import GENDERS, METHODS, PROBLEM_CATEGORIES
from notizia.pipeline import setup_logging
from notizia.schemas.domain import Anamnesis, MedicationEntry, TherapyEntry
from notizia.storage import StorageBackend, get_backend

logger = logging.getLogger(__name__)


# =============================================================================
# SAMPLE VOCABULARY
# =============================================================================

FIRST_NAMES = [
    "Anna", "Ben", "Clara", "David", "Eva", "Felix", "Greta", "Hannah",
    "Jonas", "Katrin", "Lukas", "Mara", "Nico", "Olga", "Paul", "Rosa",
    "Simon", "Tina", "Uwe", "Vera", "Yusuf", "Zoe",
]

LAST_NAMES = [
    "Bauer", "Fischer", "Hoffmann", "Klein", "Koch", "Meyer", "Neumann",
    "Richter", "Schmidt", "Schulz", "Wagner", "Weber", "Wolf",
]

PROBLEM_TEXTS = {
    "overweight": "Möchte 10 kg abnehmen, Heißhunger abends",
    "social_anxiety": "Angst vor Vorträgen im Team",
    "panic": "Panikattacken in der U-Bahn",
    "depression": "Antriebslosigkeit seit dem Winter",
    "sleep": "Einschlafprobleme, grübelt nachts",
    "pain": "Chronische Rückenschmerzen",
    "self_worth": "Zweifelt ständig an eigenen Entscheidungen",
    "relationship": "Konflikte in der Partnerschaft",
    "other": "Allgemeine Stressbewältigung",
}

# Relative frequency of methods in a typical practice
METHOD_WEIGHTS = [0.4, 0.25, 0.3, 0.05]

PREVIOUS_THERAPIES = ["Verhaltenstherapie", "Psychoanalyse", "Klinikaufenthalt", "Heilpraktiker"]

MEDICATIONS = [
    ("Sertralin", "50 mg", "1x täglich"),
    ("Melatonin", "2 mg", "abends"),
    ("Ibuprofen", "400 mg", "bei Bedarf"),
]

PLANNED_METHOD_TEXTS = ["Auflösende Hypnose", "Klassische Hypnose", "Coaching", "EMDR"]

CASE_STATUSES = ["open", "solved", "dropped"]
CASE_STATUS_WEIGHTS = [0.4, 0.5, 0.1]


class SampleDataGenerator:
    """Generates clients, cases and sessions into a storage backend."""

    def __init__(
        self,
        backend: StorageBackend,
        start_date: date,
        days: int = 365,
        seed: Optional[int] = None,
    ):
        """
        Initialize the generator.

        Args:
            backend: Initialized storage backend to write to
            start_date: Earliest possible case start
            days: Length of the period cases and sessions fall into
            seed: Random seed for reproducibility
        """
        self.backend = backend
        self.start_date = start_date
        self.days = days
        self.rng = random.Random(seed)

    def _random_anamnesis(self) -> Anamnesis:
        therapies = [
            TherapyEntry(
                self.rng.choice(PREVIOUS_THERAPIES),
                duration_months=self.rng.choice([None, 3, 6, 12, 24]),
                completed=self.rng.random() > 0.3,
            )
            for _ in range(self.rng.choice([0, 0, 1, 2]))
        ]
        medications = [
            MedicationEntry(name, dosage, frequency, current=self.rng.random() > 0.5)
            for name, dosage, frequency in self.rng.sample(
                MEDICATIONS, self.rng.choice([0, 0, 0, 1, 2])
            )
        ]
        problem = self.rng.choice(PROBLEM_CATEGORIES)
        # from_dict maps the planned method text onto a method
        intake = Anamnesis.from_dict(
            {
                "initial_problem_category": problem,
                "initial_problem_text": PROBLEM_TEXTS[problem],
                "planned_method_text": self.rng.choice(PLANNED_METHOD_TEXTS),
            }
        )
        intake.previous_therapies = therapies
        intake.medications = medications
        return intake

    def _random_datetime(self, earliest: date) -> datetime:
        offset = self.rng.randint(0, max(0, self.days - 1))
        day = max(earliest, self.start_date + timedelta(days=offset))
        return datetime(day.year, day.month, day.day, self.rng.randint(8, 18), 0)

    def generate_client(self) -> dict:
        """Create one client with 1-2 cases and their sessions."""
        name = f"{self.rng.choice(FIRST_NAMES)} {self.rng.choice(LAST_NAMES)}"
        # Some clients have no recorded gender or age
        gender = self.rng.choice(GENDERS) if self.rng.random() > 0.05 else None
        age = self.rng.randint(14, 78) if self.rng.random() > 0.1 else None
        anamnesis = self._random_anamnesis() if self.rng.random() > 0.3 else None
        client = self.backend.add_client(
            name, gender=gender, age=age, anamnesis=anamnesis
        )

        stats = {"cases": 0, "sessions": 0}
        for _ in range(self.rng.choice([1, 1, 1, 2])):
            problem = self.rng.choice(PROBLEM_CATEGORIES)
            case_start = self._random_datetime(self.start_date)
            case = self.backend.add_case(
                client.id,
                problem_category=problem,
                problem_text=PROBLEM_TEXTS[problem],
                started_at=case_start.isoformat(),
                status=self.rng.choices(CASE_STATUSES, weights=CASE_STATUS_WEIGHTS)[0],
                severity=self.rng.randint(3, 10),
            )
            stats["cases"] += 1

            session_time = case_start
            method = self.rng.choices(METHODS, weights=METHOD_WEIGHTS)[0]
            for _ in range(self.rng.randint(1, 6)):
                # Occasionally switch method within a case
                if self.rng.random() < 0.15:
                    method = self.rng.choices(METHODS, weights=METHOD_WEIGHTS)[0]
                sud_before = self.rng.randint(4, 10)
                sud_after = max(0, sud_before - self.rng.randint(0, 6))
                self.backend.add_session(
                    case.id,
                    started_at=session_time.isoformat(),
                    duration_min=self.rng.choice([45, 60, 60, 75, 90]),
                    method=method,
                    sud_before=sud_before,
                    sud_after=sud_after,
                )
                stats["sessions"] += 1
                session_time += timedelta(days=self.rng.randint(5, 21))

        return stats

    def generate(self, clients: int) -> dict:
        """
        Generate a number of clients.

        Returns:
            Totals of created clients, cases and sessions
        """
        totals = {"clients": 0, "cases": 0, "sessions": 0}
        for _ in range(clients):
            stats = self.generate_client()
            totals["clients"] += 1
            totals["cases"] += stats["cases"]
            totals["sessions"] += stats["sessions"]
        logger.info(
            f"Generated {totals['clients']} clients, {totals['cases']} cases, "
            f"{totals['sessions']} sessions"
        )
        return totals


def parse_date(date_str: str) -> date:
    """Parse date string in YYYY-MM-DD format."""
    try:
        return datetime.strptime(date_str, "%Y-%m-%d").date()
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"Invalid date format: {date_str}. Use YYYY-MM-DD"
        )


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Generate sample practice data",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--clients",
        type=int,
        default=30,
        help="Number of clients to generate (default: 30)",
    )
    parser.add_argument(
        "--start-date",
        type=parse_date,
        default=date.today() - timedelta(days=365),
        help="Earliest case start (default: one year ago)",
    )
    parser.add_argument(
        "--days",
        type=int,
        default=365,
        help="Length of the period in days (default: 365)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Random seed (default: 42)",
    )
    parser.add_argument(
        "--db-path",
        type=Path,
        help="Path to SQLite database (default from settings)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()

    setup_logging(level=logging.DEBUG if args.verbose else logging.INFO)

    kwargs = {"db_path": args.db_path} if args.db_path else {}
    backend = get_backend("sqlite", **kwargs)
    backend.initialize()

    try:
        generator = SampleDataGenerator(
            backend, start_date=args.start_date, days=args.days, seed=args.seed
        )
        totals = generator.generate(args.clients)
    finally:
        backend.close()

    print()
    print("🌱 Sample data generated")
    print("=" * 50)
    print(f"  Clients: {totals['clients']:,}")
    print(f"  Cases: {totals['cases']:,}")
    print(f"  Sessions: {totals['sessions']:,}")
    print(f"  Seed: {args.seed}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
