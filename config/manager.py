"""Konfigurationsmanager: Laden, Speichern und Validieren der Engine-Konfiguration.

Nutzt ruamel.yaml für YAML-Serialisierung mit Kommentaren.
"""

import json
from datetime import date
from pathlib import Path
from typing import Optional

from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap

from config.schema import EngineConfig

yaml = YAML()
yaml.default_flow_style = False
yaml.width = 120


# ─── YAML-KOMMENTAR-AUFBAU ───

_YAML_HEADER = f"""\
# ============================================
# Kite-Tagesplanung — Engine-Konfiguration
# Version: 1.0
# Erstellt: {date.today().isoformat()}
# ============================================
"""

_SECTION_COMMENTS = {
    "default_start_time": (
        "Warteschlange",
        "Fallback-Start, wenn weder Flaggen-Zeit noch Termine existieren.",
    ),
    "working_day_start": (
        "Arbeitstag",
        "Grundlage für die Abfrage freier Zeitfenster.",
    ),
    "min_gap_minutes": (
        "Lücken & Import",
        None,
    ),
    "adjustment_step_minutes": (
        "Manuelle Anpassungen",
        "Schrittweite für Zeit- und Dauer-Änderungen.",
    ),
    "duration_caps": (
        "Standarddauern",
        "Minuten pro Gruppengröße: 1 / 2-3 / 4+ Schüler.",
    ),
}


class ConfigManager:
    CONFIG_DIR = Path("config")
    DEFAULT_CONFIG = CONFIG_DIR / "engine_config.yaml"

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = Path(path) if path else self.DEFAULT_CONFIG

    def first_run_check(self) -> bool:
        """Gibt True zurück wenn noch keine Config existiert (Erstaufruf)."""
        return not self.path.exists()

    # ─── Laden ───

    def load(self, path: Optional[Path] = None) -> EngineConfig:
        """Lade Config aus YAML. Validiert automatisch via Pydantic."""
        target = Path(path) if path else self.path
        if not target.exists():
            raise FileNotFoundError(
                f"Konfigurationsdatei nicht gefunden: {target}\n"
                f"Führen Sie 'python main.py config init' aus."
            )
        with open(target, "r", encoding="utf-8") as f:
            raw = yaml.load(f)
        try:
            return EngineConfig.model_validate(dict(raw or {}))
        except Exception as e:
            raise ValueError(
                f"Konfigurationsdatei ungültig: {target}\n"
                f"Pydantic-Fehler: {e}"
            ) from e

    def load_or_default(self) -> EngineConfig:
        """Lädt die Config, fällt ohne Datei auf die Standardwerte zurück."""
        if self.first_run_check():
            from config.defaults import default_engine_config
            return default_engine_config()
        return self.load()

    # ─── Speichern ───

    def save(self, config: EngineConfig, path: Optional[Path] = None) -> Path:
        """Speichere Config als YAML mit deutschen Kommentaren."""
        target = Path(path) if path else self.path
        target.parent.mkdir(parents=True, exist_ok=True)

        data = self._build_commented_yaml(config)

        with open(target, "w", encoding="utf-8") as f:
            f.write(_YAML_HEADER + "\n")
            yaml.dump(data, f)
        return target

    def _build_commented_yaml(self, config: EngineConfig) -> CommentedMap:
        """Baut die YAML-Struktur mit Kommentaren auf."""
        raw = json.loads(config.model_dump_json())
        cm = CommentedMap(raw)
        cm["duration_caps"] = CommentedMap(cm["duration_caps"])

        for field, (label, comment) in _SECTION_COMMENTS.items():
            cm.yaml_set_comment_before_after_key(
                field,
                before=f"\n─── {label} ───" + (f"\n{comment}" if comment else ""),
            )

        cm["duration_caps"].yaml_add_eol_comment("1 Schüler", "cap_one")
        cm["duration_caps"].yaml_add_eol_comment("2-3 Schüler", "cap_two")
        cm["duration_caps"].yaml_add_eol_comment("4+ Schüler", "cap_three")
        return cm
