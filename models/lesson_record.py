"""Eingangsdaten: Unterrichtsstunden mit ihren externen Terminen (Pydantic v2)."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class TeacherRef(BaseModel):
    """Verweis auf den zuständigen Lehrer."""

    id: str
    name: str


class StudentRef(BaseModel):
    name: str


class BookingRef(BaseModel):
    """Buchung einer Stunde (nur die Schüler werden benötigt)."""

    students: list[StudentRef] = []


class EventRecord(BaseModel):
    """Ein gespeicherter Termin aus dem externen Speicher."""

    id: Optional[str] = None
    date: datetime                   # ISO-UTC
    duration: Optional[int] = None   # Minuten
    location: Optional[str] = None
    status: str = "planned"


class LessonRecord(BaseModel):
    """Eine Unterrichtsstunde mit Lehrer, Terminen und Buchung."""

    id: str
    teacher: Optional[TeacherRef] = None
    events: list[EventRecord] = []
    booking: BookingRef = Field(default_factory=BookingRef)
    status: str = "planned"

    @property
    def student_names(self) -> list[str]:
        return [s.name for s in self.booking.students]
