import enum


class Blade(str, enum.Enum):
    """Turbine blade label"""
    A = "A"
    B = "B"
    C = "C"


class BladeSide(str, enum.Enum):
    """Blade face enumeration"""
    TE = "TE"  # Trailing Edge
    PS = "PS"  # Pressure Side
    LE = "LE"  # Leading Edge
    SS = "SS"  # Suction Side

    @property
    def full_name(self) -> str:
        return {
            "TE": "Trailing Edge",
            "PS": "Pressure Side",
            "LE": "Leading Edge",
            "SS": "Suction Side",
        }[self.value]


_CONFIDENCE_RANK = {"low": 0, "medium": 1, "high": 2}


class DistanceConfidence(str, enum.Enum):
    """Ordered trust level of a resolved camera-to-blade distance: LOW < MEDIUM < HIGH"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _CONFIDENCE_RANK[self.value]

    def downgrade(self) -> "DistanceConfidence":
        """One level lower; LOW stays LOW"""
        return _BY_RANK[max(0, self.rank - 1)]

    def __lt__(self, other):
        if not isinstance(other, DistanceConfidence):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, DistanceConfidence):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, DistanceConfidence):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, DistanceConfidence):
            return NotImplemented
        return self.rank >= other.rank


_BY_RANK = {
    0: DistanceConfidence.LOW,
    1: DistanceConfidence.MEDIUM,
    2: DistanceConfidence.HIGH,
}
