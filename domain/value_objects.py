"""Domain Value Objects"""
from pydantic import BaseModel, validator
from datetime import date
from uuid import UUID


class StayInterval(BaseModel):
    """Half-open date interval [arrival_date, departure_date)"""
    arrival_date: date
    departure_date: date

    @validator('departure_date')
    def departure_after_arrival(cls, v, values):
        if 'arrival_date' in values and v <= values['arrival_date']:
            raise ValueError('Departure date must be after arrival date')
        return v

    def nights(self) -> int:
        """Calculate number of nights"""
        return (self.departure_date - self.arrival_date).days

    def overlaps(self, other: "StayInterval") -> bool:
        """[a1,b1) and [a2,b2) overlap iff a1 < b2 and a2 < b1"""
        return (
            self.arrival_date < other.departure_date
            and other.arrival_date < self.departure_date
        )

    def contains(self, day: date) -> bool:
        return self.arrival_date <= day < self.departure_date

    class Config:
        frozen = True


class RoomClaim(BaseModel):
    """A reservation's exclusive hold on a room for an interval"""
    room_id: str
    reservation_id: UUID
    interval: StayInterval

    class Config:
        frozen = True
