import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field, TypeAdapter


class NeoRecord(BaseModel):
    # Decimals are written as JSON strings so no precision is lost.
    name: str
    diameter: Decimal
    velocity: Decimal
    date: datetime.date


# Shapes of the NeoWs feed payload. Only the fields we read are declared;
# everything else in the feed is ignored.

class DiameterRange(BaseModel):
    estimated_diameter_min: Decimal
    estimated_diameter_max: Decimal


class EstimatedDiameter(BaseModel):
    kilometers: DiameterRange


class RelativeVelocity(BaseModel):
    kilometers_per_hour: Decimal


class CloseApproach(BaseModel):
    close_approach_date: datetime.date
    relative_velocity: RelativeVelocity


class NeoDetail(BaseModel):
    name: str
    estimated_diameter: EstimatedDiameter
    close_approach_data: list[CloseApproach] = Field(min_length=1)


DayEntries = TypeAdapter(list[NeoDetail | None])


class FeedResponse(BaseModel):
    # Days are validated lazily by objects_on, so entries outside the
    # requested window never fail the request.
    near_earth_objects: dict[str, Any] | None = None

    def objects_on(self, day: datetime.date) -> list[NeoDetail | None] | None:
        """Entries listed under `day`, or None when the feed has no such key.

        Raises pydantic.ValidationError when that day's entries are malformed.
        """
        if self.near_earth_objects is None:
            return None
        entries = self.near_earth_objects.get(day.strftime("%Y-%m-%d"))
        if entries is None:
            return None
        return DayEntries.validate_python(entries)
