"""Canonical enumerations shared by the SARFI engine."""

from __future__ import annotations

from enum import Enum


class VoltageLevel(str, Enum):
    KV_400 = "400kV"
    KV_132 = "132kV"
    KV_11 = "11kV"
    V_380 = "380V"
    OTHERS = "Others"
    ALL = "All"


class EventType(str, Enum):
    VOLTAGE_DIP = "voltage_dip"
    VOLTAGE_SWELL = "voltage_swell"
    INTERRUPTION = "interruption"
    HARMONIC = "harmonic"
    TRANSIENT = "transient"
