"""Konfiguration der Tagesplanung (Pydantic v2 + ruamel.yaml)."""

from config.schema import DurationCaps, EngineConfig
from config.defaults import default_engine_config

__all__ = ["DurationCaps", "EngineConfig", "default_engine_config"]
