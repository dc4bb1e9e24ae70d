from enum import Enum
from typing import Dict, List

from fastapi import HTTPException, status

# Check intervals offered to users and admins: label -> seconds
INTERVAL_SECONDS: Dict[str, int] = {
    "5min": 300,
    "10min": 600,
    "15min": 900,
    "30min": 1800,
    "1hour": 3600,
    "2hours": 7200,
    "3hours": 10800,
    "6hours": 21600,
    "12hours": 43200,
    "24hours": 86400,
}

DEFAULT_INTERVAL_LABEL = "1hour"


class CheckInterval(str, Enum):
    FIVE_MINUTES = "5min"
    TEN_MINUTES = "10min"
    FIFTEEN_MINUTES = "15min"
    THIRTY_MINUTES = "30min"
    ONE_HOUR = "1hour"
    TWO_HOURS = "2hours"
    THREE_HOURS = "3hours"
    SIX_HOURS = "6hours"
    TWELVE_HOURS = "12hours"
    TWENTY_FOUR_HOURS = "24hours"

    @property
    def seconds(self) -> int:
        return INTERVAL_SECONDS[self.value]

    @classmethod
    def from_label(cls, label: str) -> "CheckInterval":
        """Resolve a label, raising 400 with the valid labels when it is unknown."""
        try:
            return cls(label)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={
                    "error": "Invalid check interval",
                    "valid_intervals": list(INTERVAL_SECONDS.keys()),
                }
            )

    @classmethod
    def label_for(cls, seconds: int) -> str:
        """Reverse lookup of a stored interval; unknown values read as the default."""
        for interval in cls:
            if interval.seconds == seconds:
                return interval.value
        return DEFAULT_INTERVAL_LABEL

    @classmethod
    def choices(cls) -> List[Dict[str, object]]:
        return [{"label": interval.value, "value": interval.seconds} for interval in cls]
