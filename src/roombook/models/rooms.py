from dataclasses import dataclass, field
from decimal import Decimal
from typing import List


@dataclass
class Room:
    room_id: str
    name: str
    price_per_hour: Decimal
    capacity: int = 1
    facilities: List[str] = field(default_factory=list)

    def __post_init__(self):
        self.price_per_hour = Decimal(str(self.price_per_hour))
        if self.price_per_hour < 0:
            raise ValueError("price_per_hour must be non-negative")

    def summary(self) -> dict:
        return {
            "room_id": self.room_id,
            "name": self.name,
            "price_per_hour": self.price_per_hour,
            "capacity": self.capacity,
            "facilities": list(self.facilities),
        }
