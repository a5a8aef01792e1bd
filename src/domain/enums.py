"""Domain enumerations."""

import enum


class Urgency(str, enum.Enum):
    CRITICAL = "critical"
    URGENT = "urgent"
    NORMAL = "normal"


class BloodGroup(str, enum.Enum):
    A_POS = "A+"
    A_NEG = "A-"
    B_POS = "B+"
    B_NEG = "B-"
    AB_POS = "AB+"
    AB_NEG = "AB-"
    O_POS = "O+"
    O_NEG = "O-"


class NearbySource(str, enum.Enum):
    """Where ``/hospitals/nearby`` draws its candidates from."""

    DIRECTORY = "directory"
    DATABASE = "database"
    OSM = "osm"
