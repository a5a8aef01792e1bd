"""
Built-in Kathmandu-valley hospital directory.

Serves three purposes:

* the default ``/hospitals/nearby`` source when no database is involved,
* the fallback when OpenStreetMap returns too few hospitals,
* the seed data loaded by ``seed.py``.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional

from src.domain.entities import Candidate, CandidateFilters, Coordinate
from src.domain.geo import BoundingBox

HOSPITALS: list[dict[str, Any]] = [
    {
        "id": "1",
        "name": "Kathmandu Medical College (KMC)",
        "address": "Sinamangal, Kathmandu",
        "district": "Kathmandu",
        "phone": "01-4467711",
        "services": "Emergency, Surgery, Cardiology, ICU, Pharmacy",
        "latitude": 27.7172, "longitude": 85.3240,
    },
    {
        "id": "2",
        "name": "Bir Hospital",
        "address": "Mahaboudha, Kathmandu",
        "district": "Kathmandu",
        "phone": "01-4221119",
        "services": "Emergency, General Medicine, Surgery, Pediatrics",
        "latitude": 27.7025, "longitude": 85.3140,
    },
    {
        "id": "3",
        "name": "Teaching Hospital (Maharajgunj)",
        "address": "Maharajgunj, Kathmandu",
        "district": "Kathmandu",
        "phone": "01-4412303",
        "services": "Emergency, Surgery, Medicine, Pediatrics, Cardiology, Neurology",
        "latitude": 27.7369, "longitude": 85.3236,
    },
    {
        "id": "4",
        "name": "Patan Hospital",
        "address": "Lagankhel, Lalitpur",
        "district": "Lalitpur",
        "phone": "01-5522278",
        "services": "Emergency, Surgery, Medicine, Orthopedics, Pharmacy",
        "latitude": 27.6648, "longitude": 85.3240,
    },
    {
        "id": "5",
        "name": "Civil Service Hospital",
        "address": "Minbhawan, Kathmandu",
        "district": "Kathmandu",
        "phone": "01-4412248",
        "services": "Emergency, Medicine, Surgery, Cardiology, Radiology",
        "latitude": 27.7216, "longitude": 85.3206,
    },
    {
        "id": "6",
        "name": "Everest Hospital",
        "address": "Basundhara, Kathmandu",
        "district": "Kathmandu",
        "phone": "01-4217766",
        "services": "Emergency, Surgery, Cardiology, ICU, Neurology",
        "latitude": 27.7373, "longitude": 85.3413,
    },
    {
        "id": "7",
        "name": "Tribhuvan University Teaching Hospital",
        "address": "Maharajgunj, Kathmandu",
        "district": "Kathmandu",
        "phone": "01-4412404",
        "services": "Emergency, All specialties, Research, Education",
        "latitude": 27.7376, "longitude": 85.3234,
    },
    {
        "id": "8",
        "name": "Bhaktapur Hospital",
        "address": "Dudhpati, Bhaktapur",
        "district": "Bhaktapur",
        "phone": "01-6610798",
        "services": "Emergency, Medicine, Surgery, Maternity",
        "latitude": 27.6710, "longitude": 85.4298,
    },
]

# Every listed hospital is a verified 24/7 emergency facility offering free care
_DEFAULT_FLAGS = {
    "is_free": True,
    "is_verified": True,
    "is_emergency": True,
    "open_hours": "24/7",
}

BLOOD_REQUESTS: list[dict[str, Any]] = [
    {
        "blood_group": "O+",
        "units_required": 2,
        "patient_name": "Ram Bahadur",
        "hospital_id": "1",
        "hospital_name": "Kathmandu Medical College",
        "contact_person": "Dr. Sharma",
        "contact_phone": "9841234567",
        "urgency": "critical",
        "district": "Kathmandu",
    },
    {
        "blood_group": "B+",
        "units_required": 1,
        "patient_name": "Sita Kumari",
        "hospital_id": "2",
        "hospital_name": "Bir Hospital",
        "contact_person": "Dr. Adhikari",
        "contact_phone": "9851234567",
        "urgency": "urgent",
        "district": "Kathmandu",
    },
    {
        "blood_group": "A-",
        "units_required": 3,
        "patient_name": "Hari Prasad",
        "hospital_id": "4",
        "hospital_name": "Patan Hospital",
        "contact_person": "Dr. Shrestha",
        "contact_phone": "9861234567",
        "urgency": "normal",
        "district": "Lalitpur",
    },
]


def directory_hospitals() -> list[dict[str, Any]]:
    """Directory rows with the default flags filled in."""
    return [{**_DEFAULT_FLAGS, **row} for row in HOSPITALS]


def to_candidate(row: dict[str, Any]) -> Candidate:
    attributes = {
        k: v for k, v in row.items() if k not in ("id", "latitude", "longitude")
    }
    return Candidate(
        id=str(row["id"]),
        location=Coordinate(float(row["latitude"]), float(row["longitude"])),
        attributes=attributes,
    )


class StaticCandidateSource:
    """In-memory candidate source; a linear scan stands in for the range index."""

    def __init__(self, candidates: Iterable[Candidate]):
        self.candidates = list(candidates)

    @classmethod
    def from_directory(cls) -> StaticCandidateSource:
        return cls(to_candidate(row) for row in directory_hospitals())

    async def candidates_in_box(
        self, box: BoundingBox, filters: Optional[CandidateFilters] = None
    ) -> list[Candidate]:
        return [
            c
            for c in self.candidates
            if box.contains(c.location)
            and (filters is None or filters.matches(c.attributes))
        ]
