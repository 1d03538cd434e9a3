from pydantic import BaseModel, Field, field_validator, model_validator

from models.time_of_day import minutes_to_time, time_to_minutes


# ─── DAUERN PRO TEILNEHMERZAHL ───

class DurationCaps(BaseModel):
    """Standard-Unterrichtsdauer (Minuten) abhängig von der Schülerzahl."""
    # 1 Schüler
    cap_one: int = Field(120, ge=30, le=600,
        description="Dauer bei 1 Schüler")
    # 2-3 Schüler
    cap_two: int = Field(180, ge=30, le=600,
        description="Dauer bei 2-3 Schülern")
    # 4+ Schüler
    cap_three: int = Field(240, ge=30, le=600,
        description="Dauer bei 4 und mehr Schülern")

    def for_student_count(self, student_count: int) -> int:
        """Gibt die Standarddauer für eine Gruppengröße zurück."""
        if student_count >= 4:
            return self.cap_three
        if student_count >= 2:
            return self.cap_two
        return self.cap_one


# ─── GESAMT-CONFIG ───

class EngineConfig(BaseModel):
    """Konfiguration der Tagesplanung (Zeiten, Schwellwerte, Defaults)."""
    # Name der Schule (nur Anzeige)
    school_name: str = Field("Kite-Schule",
        description="Name der Schule")
    # Startzeit der Warteschlange, wenn weder Vorgabe noch Termine existieren
    default_start_time: str = Field("09:00",
        description="Fallback-Start der Warteschlange")
    # Arbeitstag für die Abfrage freier Zeitfenster
    working_day_start: str = Field("09:00",
        description="Beginn des Arbeitstages")
    working_day_end: str = Field("18:00",
        description="Ende des Arbeitstages")
    # Vorschlag für den ersten Slot eines leeren Tages
    default_slot_start: str = Field("10:00",
        description="Default-Start für find_next_available_slot")
    # Lücken darunter gelten nicht als Lücke (has_schedule_gaps)
    min_gap_minutes: int = Field(15, ge=0, le=240,
        description="Mindestdauer einer relevanten Lücke (Minuten)")
    # Fallbacks beim Import unvollständiger Termine
    default_event_duration: int = Field(120, ge=1, le=720,
        description="Dauer, wenn ein Termin keine Dauer hat")
    default_location: str = Field("Los Lances",
        description="Spot, wenn ein Termin keinen Ort hat")
    # Schrittweite für manuelle Zeit-/Dauer-Änderungen
    adjustment_step_minutes: int = Field(30, ge=5, le=120,
        description="Schrittweite manueller Anpassungen (Minuten)")
    # Untergrenze für Dauer-Änderungen
    min_lesson_duration: int = Field(30, ge=1, le=240,
        description="Minimale Unterrichtsdauer (Minuten)")
    # Zeitfenster, in dem die Warteschlange verschoben werden darf
    queue_earliest_time: str = Field("06:00",
        description="Früheste Startzeit in der Warteschlange")
    queue_latest_time: str = Field("23:00",
        description="Späteste Startzeit in der Warteschlange")
    # Standarddauern nach Gruppengröße
    duration_caps: DurationCaps = Field(default_factory=DurationCaps)

    @field_validator(
        "default_start_time", "working_day_start", "working_day_end",
        "default_slot_start", "queue_earliest_time", "queue_latest_time",
    )
    @classmethod
    def _check_hhmm(cls, v: str) -> str:
        return minutes_to_time(time_to_minutes(v))

    @model_validator(mode='after')
    def _check_windows(self):
        if time_to_minutes(self.working_day_start) >= time_to_minutes(self.working_day_end):
            raise ValueError(
                f"working_day_start ({self.working_day_start}) muss vor "
                f"working_day_end ({self.working_day_end}) liegen"
            )
        if time_to_minutes(self.queue_earliest_time) >= time_to_minutes(self.queue_latest_time):
            raise ValueError(
                f"queue_earliest_time ({self.queue_earliest_time}) muss vor "
                f"queue_latest_time ({self.queue_latest_time}) liegen"
            )
        return self

    @property
    def queue_window(self) -> tuple[int, int]:
        """Erlaubtes Fenster der Warteschlange als (von, bis) in Minuten."""
        return time_to_minutes(self.queue_earliest_time), time_to_minutes(self.queue_latest_time)
