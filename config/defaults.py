from config.schema import DurationCaps, EngineConfig


# Spots der Schule (Reihenfolge = Anzeige-Reihenfolge)
LOCATIONS: list[str] = [
    "Los Lances",
    "Valdevaqueros",
    "Palmones",
]

# Status externer Termine
EVENT_STATUSES: list[str] = [
    "planned",
    "completed",
    "tbc",
    "cancelled",
]


def default_duration_caps() -> DurationCaps:
    """Standarddauern: 2h Einzel, 3h für 2-3 Schüler, 4h ab 4 Schülern."""
    return DurationCaps(cap_one=120, cap_two=180, cap_three=240)


def default_engine_config() -> EngineConfig:
    """Standard-Konfiguration einer Kite-Schule.

    Arbeitstag 09:00 - 18:00, Warteschlange darf zwischen 06:00 und 23:00
    verschoben werden, Anpassungen in 30-Minuten-Schritten.
    """
    return EngineConfig(
        school_name="Kite-Schule",
        default_start_time="09:00",
        working_day_start="09:00",
        working_day_end="18:00",
        default_slot_start="10:00",
        min_gap_minutes=15,
        default_event_duration=120,
        default_location=LOCATIONS[0],
        adjustment_step_minutes=30,
        min_lesson_duration=30,
        queue_earliest_time="06:00",
        queue_latest_time="23:00",
        duration_caps=default_duration_caps(),
    )
