"""
InfuseCalc: Data Dictionary for the Infusion Pump Calculator
============================================================
Defines the request coming from the bedside form, the immutable result records
handed back to the UI/API, and the error taxonomy of the dose engine.

The only logic here is turning raw form text into a typed request.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Mapping, Optional, Tuple, Union
from constants import DoseUnit, DOSE_UNIT_ALIASES, SafetyProfile

class DoseCalculationError(ValueError):
    """Base for every failure the engine reports back as an ERROR result."""
    pass

class InvalidInputError(DoseCalculationError):
    """Raised for non-positive weight/concentration/duration or a bolus without duration."""
    pass

class UnsupportedUnitError(DoseCalculationError):
    """Raised when the dose unit is outside the supported set."""
    pass

class CalculationStatus(Enum):
    SAFE = "SAFE"         # Ready to program the pump
    WARNING = "WARNING"   # Review required
    ERROR = "ERROR"       # Cannot proceed


def parse_dose_unit(value: Union[DoseUnit, str]) -> DoseUnit:
    if isinstance(value, DoseUnit):
        return value
    key = str(value).strip().lower()
    if key in DOSE_UNIT_ALIASES:
        return DOSE_UNIT_ALIASES[key]
    try:
        return DoseUnit(key)
    except ValueError:
        raise UnsupportedUnitError(f"Unsupported dose unit: {value}") from None

# --- 1. INPUT LAYER (What the Nurse Enters) ---

@dataclass(frozen=True)
class DoseRequest:
    """
    One 'Calculate' press. Built fresh each time, never stored.
    Range checks live in the engine so that errors come back in a fixed order.
    """
    medication: str                  # Case-insensitive lookup key
    concentration_mg_ml: float
    patient_weight_kg: float
    dose_amount: float
    dose_unit: Union[DoseUnit, str]
    infusion_duration_hr: float
    max_infusion_rate_ml_hr: float   # Hardware ceiling of the pump
    reservoir_volume_ml: float
    bolus_dose_mg: float = 0.0
    bolus_duration_min: float = 0.0

# --- 2. OUTPUT LAYER (The Actionable Results) ---

@dataclass(frozen=True)
class InfusionParameters:
    dose_rate_mg_hr: float
    infusion_rate_ml_hr: float
    total_volume_ml: float
    total_medication_mg: float

@dataclass(frozen=True)
class PumpProgramming:
    """What gets keyed into the pump."""
    vtbi_ml: float                  # Volume To Be Infused
    rate_ml_hr: float
    dose_rate_mg_hr: float
    concentration_mg_ml: float
    estimated_completion: datetime

@dataclass(frozen=True)
class BolusParameters:
    bolus_dose_mg: float
    bolus_volume_ml: float
    bolus_duration_min: float
    bolus_rate_ml_hr: float

@dataclass(frozen=True)
class SafetyValidation:
    warnings: Tuple[str, ...]
    errors: Tuple[str, ...]
    safety_limits_applied: SafetyProfile
    time_to_empty_hours: float

@dataclass(frozen=True)
class CalculationResult:
    status: CalculationStatus
    medication: str                 # Echoed as entered
    patient_weight_kg: float
    infusion_parameters: InfusionParameters
    pump_programming: PumpProgramming
    bolus_parameters: Optional[BolusParameters]
    safety_validation: SafetyValidation
    calculation_timestamp: datetime

@dataclass(frozen=True)
class ErrorResult:
    """Returned instead of a CalculationResult when validation fails. No derived fields."""
    error_message: str
    calculation_timestamp: datetime
    status: CalculationStatus = CalculationStatus.ERROR

# --- 3. FORM PARSING (Raw Text -> DoseRequest) ---

REQUIRED_NUMERIC_FIELDS = (
    'concentration_mg_ml', 'patient_weight_kg', 'dose_amount',
    'infusion_duration_hr', 'max_infusion_rate_ml_hr', 'reservoir_volume_ml',
)
OPTIONAL_NUMERIC_FIELDS = ('bolus_dose_mg', 'bolus_duration_min')


def _parse_number(field: str, raw, required: bool) -> float:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        if required:
            raise InvalidInputError(f"Field '{field}' is required")
        return 0.0
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise InvalidInputError(f"Field '{field}' must be numeric, got '{raw}'") from None
    if not math.isfinite(value):
        raise InvalidInputError(f"Field '{field}' must be a finite number")
    return value


def parse_dose_form(raw: Mapping[str, object]) -> DoseRequest:
    """
    Converts the bedside form (all values as typed text) into a DoseRequest.
    Blank bolus fields mean 'no bolus'. The dose unit is kept as text so the
    engine reports an unknown unit the same way for every caller.
    """
    medication = str(raw.get('medication') or '').strip()
    if not medication:
        raise InvalidInputError("Field 'medication' is required")

    numbers = {f: _parse_number(f, raw.get(f), required=True) for f in REQUIRED_NUMERIC_FIELDS}
    numbers.update({f: _parse_number(f, raw.get(f), required=False) for f in OPTIONAL_NUMERIC_FIELDS})

    return DoseRequest(
        medication=medication,
        dose_unit=str(raw.get('dose_unit') or '').strip(),
        **numbers
    )
