from dataclasses import dataclass
from typing import Optional


@dataclass
class User:
    user_id: str
    name: str
    email: str
    mobile_number: Optional[str] = None

    def summary(self) -> dict:
        return {
            "user_id": self.user_id,
            "name": self.name,
            "email": self.email,
            "mobile_number": self.mobile_number,
        }
