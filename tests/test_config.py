"""Tests für das Konfigurationssystem und die Uhrzeit-Hilfsfunktionen."""

from pathlib import Path

import pytest

from config.schema import DurationCaps, EngineConfig
from config.defaults import (
    EVENT_STATUSES,
    LOCATIONS,
    default_duration_caps,
    default_engine_config,
)
from config.manager import ConfigManager
from models.time_of_day import (
    add_minutes_to_time,
    create_utc_datetime,
    extract_date_from_utc,
    extract_time_from_utc,
    format_duration,
    is_same_utc_date,
    is_valid_time,
    minutes_to_time,
    time_to_minutes,
    to_utc_string,
)


# ─── DEFAULT-KONFIGURATION ────────────────────────────────────────────────────

class TestDefaultConfig:
    def test_default_engine_config_valid(self):
        """Vollständige Default-Config ist valide."""
        config = default_engine_config()
        assert config.default_start_time == "09:00"
        assert config.working_day_start == "09:00"
        assert config.working_day_end == "18:00"
        assert config.default_slot_start == "10:00"
        assert config.min_gap_minutes == 15
        assert config.default_location == "Los Lances"
        assert config.adjustment_step_minutes == 30

    def test_queue_window_minutes(self):
        """queue_window liefert 06:00-23:00 in Minuten."""
        assert default_engine_config().queue_window == (360, 1380)

    def test_duration_caps(self):
        """Standarddauern nach Gruppengröße: 1 / 2-3 / 4+."""
        caps = default_duration_caps()
        assert caps.for_student_count(0) == 120
        assert caps.for_student_count(1) == 120
        assert caps.for_student_count(2) == 180
        assert caps.for_student_count(3) == 180
        assert caps.for_student_count(4) == 240
        assert caps.for_student_count(9) == 240

    def test_locations_and_statuses(self):
        assert LOCATIONS[0] == "Los Lances"
        assert set(EVENT_STATUSES) == {"planned", "completed", "tbc", "cancelled"}


# ─── PYDANTIC-VALIDIERUNG ─────────────────────────────────────────────────────

class TestPydanticValidation:
    def test_time_is_normalized(self):
        """Einstellige Stunden werden auf HH:MM ergänzt."""
        config = EngineConfig(default_start_time="9:30")
        assert config.default_start_time == "09:30"

    @pytest.mark.parametrize("value", ["9:30", "24:00", "neun", "10:75", "", "123:00"])
    def test_time_fields_follow_time_of_day(self, value):
        """Config akzeptiert genau die Uhrzeiten, die is_valid_time akzeptiert."""
        from pydantic import ValidationError
        if is_valid_time(value):
            config = EngineConfig(default_slot_start=value)
            assert config.default_slot_start == minutes_to_time(time_to_minutes(value))
        else:
            with pytest.raises(ValidationError):
                EngineConfig(default_slot_start=value)

    def test_invalid_time_raises(self):
        """Ungültiges Zeitformat → Validierungsfehler."""
        with pytest.raises(Exception):
            EngineConfig(working_day_start="neun")

    def test_invalid_minutes_raises(self):
        with pytest.raises(Exception):
            EngineConfig(default_slot_start="10:75")

    def test_working_day_order_raises(self):
        """Arbeitstag-Ende vor Beginn → Validierungsfehler."""
        with pytest.raises(Exception):
            EngineConfig(working_day_start="18:00", working_day_end="09:00")

    def test_queue_window_order_raises(self):
        with pytest.raises(Exception):
            EngineConfig(queue_earliest_time="23:00", queue_latest_time="06:00")

    def test_step_bounds(self):
        """Schrittweite außerhalb 5-120 → Validierungsfehler."""
        with pytest.raises(Exception):
            EngineConfig(adjustment_step_minutes=0)

    def test_caps_lower_bound(self):
        with pytest.raises(Exception):
            DurationCaps(cap_one=10)


# ─── YAML SPEICHERN / LADEN ───────────────────────────────────────────────────

class TestConfigManager:
    def test_save_and_load_roundtrip(self, tmp_path: Path):
        """Config speichern, laden und validieren: vollständiger Roundtrip."""
        config = default_engine_config().model_copy(update={"school_name": "Tarifa Kite"})
        mgr = ConfigManager(tmp_path / "engine_config.yaml")

        path = mgr.save(config)
        assert path.exists()

        loaded = mgr.load()
        assert loaded == config

    def test_saved_yaml_has_comments(self, tmp_path: Path):
        """Die YAML-Datei enthält Kopf und Abschnitts-Kommentare."""
        mgr = ConfigManager(tmp_path / "engine_config.yaml")
        mgr.save(default_engine_config())
        text = mgr.path.read_text(encoding="utf-8")
        assert "Kite-Tagesplanung" in text
        assert "Standarddauern" in text
        assert "4+ Schüler" in text

    def test_first_run_check_no_file(self, tmp_path: Path):
        """first_run_check gibt True zurück wenn keine Config existiert."""
        mgr = ConfigManager(tmp_path / "nonexistent.yaml")
        assert mgr.first_run_check() is True

    def test_first_run_check_with_file(self, tmp_path: Path):
        """first_run_check gibt False zurück wenn Config existiert."""
        mgr = ConfigManager(tmp_path / "engine_config.yaml")
        mgr.save(default_engine_config())
        assert mgr.first_run_check() is False

    def test_load_missing_raises(self, tmp_path: Path):
        mgr = ConfigManager(tmp_path / "fehlt.yaml")
        with pytest.raises(FileNotFoundError):
            mgr.load()

    def test_load_invalid_raises_value_error(self, tmp_path: Path):
        """Ungültige Werte in der YAML → ValueError mit Pydantic-Details."""
        path = tmp_path / "engine_config.yaml"
        path.write_text("working_day_start: '19:00'\nworking_day_end: '08:00'\n",
                        encoding="utf-8")
        with pytest.raises(ValueError):
            ConfigManager(path).load()

    def test_load_or_default_without_file(self, tmp_path: Path):
        mgr = ConfigManager(tmp_path / "fehlt.yaml")
        assert mgr.load_or_default() == default_engine_config()

    def test_partial_yaml_uses_defaults(self, tmp_path: Path):
        """Fehlende Felder werden mit Standardwerten ergänzt."""
        path = tmp_path / "engine_config.yaml"
        path.write_text("min_gap_minutes: 30\n", encoding="utf-8")
        config = ConfigManager(path).load()
        assert config.min_gap_minutes == 30
        assert config.default_start_time == "09:00"


# ─── UHRZEITEN ────────────────────────────────────────────────────────────────

class TestTimeOfDay:
    def test_time_to_minutes(self):
        assert time_to_minutes("00:00") == 0
        assert time_to_minutes("09:30") == 570
        assert time_to_minutes("9:05") == 545

    def test_time_to_minutes_invalid(self):
        """Ungültige Uhrzeiten → ValueError."""
        for bad in ("", "9", "09:60", "ab:cd", "09-30"):
            with pytest.raises(ValueError):
                time_to_minutes(bad)

    def test_minutes_to_time(self):
        assert minutes_to_time(0) == "00:00"
        assert minutes_to_time(570) == "09:30"
        # Kein Umbruch nach Mitternacht
        assert minutes_to_time(1470) == "24:30"

    def test_minutes_to_time_negative(self):
        with pytest.raises(ValueError):
            minutes_to_time(-1)

    def test_add_minutes_wraps(self):
        """add_minutes_to_time bricht nach 24h um."""
        assert add_minutes_to_time("23:30", 60) == "00:30"
        assert add_minutes_to_time("00:15", -30) == "23:45"

    def test_is_valid_time(self):
        assert is_valid_time("12:00")
        assert not is_valid_time("12:5")

    def test_create_utc_datetime(self):
        """Datum + Uhrzeit werden ohne Zeitzonen-Umrechnung als UTC gelesen."""
        dt = create_utc_datetime("2024-06-01", "09:30")
        assert to_utc_string(dt) == "2024-06-01T09:30:00.000Z"

    def test_create_utc_datetime_accepts_iso_date(self):
        dt = create_utc_datetime("2024-06-01T00:00:00.000Z", "14:00")
        assert to_utc_string(dt) == "2024-06-01T14:00:00.000Z"

    def test_extract_from_utc(self):
        assert extract_time_from_utc("2024-06-01T14:45:00.000Z") == "14:45"
        assert extract_date_from_utc("2024-06-01T23:59:00Z") == "2024-06-01"

    def test_extract_from_offset_datetime(self):
        """Zeitpunkte mit Offset werden nach UTC umgerechnet."""
        assert extract_time_from_utc("2024-06-01T11:00:00+02:00") == "09:00"

    def test_is_same_utc_date(self):
        assert is_same_utc_date("2024-06-01T08:00:00Z", "2024-06-01")
        assert not is_same_utc_date("2024-06-02T00:30:00Z", "2024-06-01")

    def test_format_duration(self):
        assert format_duration(120) == "2:00hrs"
        assert format_duration(90) == "1:30hrs"
        assert format_duration(45) == "0:45hrs"


# ─── MAIN.PY CLI ──────────────────────────────────────────────────────────────

_LESSONS = [
    {"id": "L1", "teacher": {"id": "t1", "name": "Ana"},
     "events": [{"id": "E1", "date": "2024-06-01T09:00:00.000Z", "duration": 60,
                 "location": "Los Lances"}]},
    {"id": "L2", "teacher": {"id": "t1", "name": "Ana"},
     "events": [{"id": "E2", "date": "2024-06-01T11:00:00.000Z", "duration": 60,
                 "location": "Los Lances"}]},
    {"id": "L3", "teacher": {"id": "t1", "name": "Ana"},
     "booking": {"students": [{"name": "Ben"}, {"name": "Clara"}]}},
]


def _write_lessons(path: str = "lessons.json") -> str:
    import json
    Path(path).write_text(json.dumps(_LESSONS), encoding="utf-8")
    return path


class TestCli:
    def test_help(self):
        """main.py --help gibt Usage aus."""
        from click.testing import CliRunner
        from main import cli
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "Usage" in result.output

    def test_config_init_and_show(self):
        """config init legt die YAML an, config show liest sie."""
        from click.testing import CliRunner
        from main import cli
        runner = CliRunner()
        with runner.isolated_filesystem():
            result = runner.invoke(cli, ["config", "init"])
            assert result.exit_code == 0
            assert Path("config/engine_config.yaml").exists()

            result = runner.invoke(cli, ["config", "show"])
            assert result.exit_code == 0
            assert "Kite-Schule" in result.output

            result = runner.invoke(cli, ["config", "init"])
            assert "existiert bereits" in result.output

    def test_generate_writes_json(self):
        from click.testing import CliRunner
        from main import cli
        runner = CliRunner()
        with runner.isolated_filesystem():
            result = runner.invoke(
                cli, ["generate", "--date", "2024-06-01", "--seed", "3", "-o", "out/lessons.json"]
            )
            assert result.exit_code == 0
            assert Path("out/lessons.json").exists()

    def test_show_lists_gap(self):
        from click.testing import CliRunner
        from main import cli
        runner = CliRunner()
        with runner.isolated_filesystem():
            path = _write_lessons()
            result = runner.invoke(cli, ["show", path, "--date", "2024-06-01"])
            assert result.exit_code == 0
            assert "Lücke" in result.output

    def test_compact_prints_updates(self):
        from click.testing import CliRunner
        from main import cli
        runner = CliRunner()
        with runner.isolated_filesystem():
            path = _write_lessons()
            result = runner.invoke(
                cli, ["compact", path, "--date", "2024-06-01", "--teacher", "t1"]
            )
            assert result.exit_code == 0
            assert "E2" in result.output

    def test_shift_rejected(self):
        """Verschiebung vor 00:00 → Exit-Code 1."""
        from click.testing import CliRunner
        from main import cli
        runner = CliRunner()
        with runner.isolated_filesystem():
            path = _write_lessons()
            result = runner.invoke(
                cli, ["shift", path, "--date", "2024-06-01", "--teacher", "t1", "--offset", "-600"]
            )
            assert result.exit_code == 1

    def test_unknown_teacher(self):
        from click.testing import CliRunner
        from main import cli
        runner = CliRunner()
        with runner.isolated_filesystem():
            path = _write_lessons()
            result = runner.invoke(
                cli, ["compact", path, "--date", "2024-06-01", "--teacher", "t9"]
            )
            assert result.exit_code == 1

    def test_queue_commit(self):
        """Stunde ohne Termin wird über die Warteschlange angelegt."""
        from click.testing import CliRunner
        from main import cli
        runner = CliRunner()
        with runner.isolated_filesystem():
            path = _write_lessons()
            result = runner.invoke(
                cli, ["queue", path, "--date", "2024-06-01", "--teacher", "t1", "--commit"]
            )
            assert result.exit_code == 0
            assert "L3" in result.output
            assert "1 Termine angelegt" in result.output

    def test_queue_invalid_start(self):
        from click.testing import CliRunner
        from main import cli
        runner = CliRunner()
        with runner.isolated_filesystem():
            path = _write_lessons()
            result = runner.invoke(
                cli, ["queue", path, "--date", "2024-06-01", "--teacher", "t1", "--start", "9 Uhr"]
            )
            assert result.exit_code == 1
