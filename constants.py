import json
from enum import Enum
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Optional
VERSION = "1.0.0"

class DoseUnit(Enum):
    MG_KG_HR = "mg_per_kg_per_hr"
    MG_KG_MIN = "mg_per_kg_per_min"
    MG_MIN = "mg_per_min"
    MCG_KG_MIN = "mcg_per_kg_per_min"
    UNITS_HR = "units_per_hr"     # Passed through as-is (units/hr treated as mg/hr)

# Short codes used by the bedside form
DOSE_UNIT_ALIASES = {
    "mg_kg_hr": DoseUnit.MG_KG_HR,
    "mg_kg_min": DoseUnit.MG_KG_MIN,
    "mg_min": DoseUnit.MG_MIN,
    "mcg_kg_min": DoseUnit.MCG_KG_MIN,
    "units_hr": DoseUnit.UNITS_HR,
}

@dataclass(frozen=True)
class SafetyProfile:
    max_rate: float           # Per-hour dose ceiling
    max_concentration: float  # mg/mL
    unit: str = "mg/hr"       # Display unit for max_rate

class PUMP_CONSTANTS:
    MINUTES_PER_HOUR = 60.0
    MCG_PER_MG = 1000.0
    SECONDS_PER_HOUR = 3600.0
    UNDER_INFUSION_ML_HR = 0.5  # Below this most pumps deliver erratically

class MEDICATION_LIBRARY:
    """
    The Formulary of Infusion Limits.
    Keyed by lowercased medication name; 'default' covers anything unlisted.
    """
    DEFAULT_KEY = "default"

    # Read-only: callers wanting a different table pass their own copy
    SPECS = MappingProxyType({
        "insulin": SafetyProfile(max_rate=50, max_concentration=100, unit="units/hr"),
        "heparin": SafetyProfile(max_rate=25000, max_concentration=25000, unit="units/hr"),
        "morphine": SafetyProfile(max_rate=30, max_concentration=10, unit="mg/hr"),
        "fentanyl": SafetyProfile(max_rate=0.5, max_concentration=0.05, unit="mg/hr"),
        "propofol": SafetyProfile(max_rate=200, max_concentration=10, unit="mg/hr"),
        "norepinephrine": SafetyProfile(max_rate=0.5, max_concentration=0.1, unit="mg/hr"),
        "default": SafetyProfile(max_rate=999, max_concentration=1000, unit="mg/hr"),
    })

    @staticmethod
    def get(medication: str, table: Optional[Mapping[str, SafetyProfile]] = None) -> SafetyProfile:
        specs = table if table is not None else MEDICATION_LIBRARY.SPECS
        fallback = specs.get(MEDICATION_LIBRARY.DEFAULT_KEY, MEDICATION_LIBRARY.SPECS[MEDICATION_LIBRARY.DEFAULT_KEY])
        return specs.get(medication.strip().lower(), fallback)


def load_safety_profiles(path: str,
                         base: Optional[Mapping[str, SafetyProfile]] = None) -> Dict[str, SafetyProfile]:
    """
    Reads a JSON formulary and layers it over `base` (the built-in table by default).

    Expected shape:
        {"vancomycin": {"max_rate": 1000, "max_concentration": 5, "unit": "mg/hr"}, ...}

    Raises ValueError for entries missing a limit or carrying non-numeric limits.
    """
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)

    if not isinstance(raw, dict):
        raise ValueError(f"Safety table {path} must be a JSON object keyed by medication")

    table = dict(base if base is not None else MEDICATION_LIBRARY.SPECS)
    for name, entry in raw.items():
        if not isinstance(entry, dict):
            raise ValueError(f"Safety entry for '{name}' must be an object")
        try:
            profile = SafetyProfile(
                max_rate=float(entry["max_rate"]),
                max_concentration=float(entry["max_concentration"]),
                unit=str(entry.get("unit", "mg/hr")),
            )
        except KeyError as e:
            raise ValueError(f"Safety entry for '{name}' is missing {e}") from e
        except (TypeError, ValueError) as e:
            raise ValueError(f"Safety entry for '{name}' has a non-numeric limit") from e
        table[str(name).strip().lower()] = profile

    if MEDICATION_LIBRARY.DEFAULT_KEY not in table:
        table[MEDICATION_LIBRARY.DEFAULT_KEY] = MEDICATION_LIBRARY.SPECS[MEDICATION_LIBRARY.DEFAULT_KEY]
    return table
