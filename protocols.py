# protocols.py
from typing import Optional, Union
from constants import DoseUnit, PUMP_CONSTANTS
from models import BolusParameters, InvalidInputError, parse_dose_unit

class DoseRateConverter:
    @staticmethod
    def to_mg_per_hr(dose: float, weight_kg: float, unit: Union[DoseUnit, str]) -> float:
        """
        Normalizes the ordered dose to mg/hr.
        units/hr passes straight through and is handled as if it were mg/hr.
        """
        unit = parse_dose_unit(unit)
        per_hour = PUMP_CONSTANTS.MINUTES_PER_HOUR

        if unit == DoseUnit.MG_KG_HR:
            return dose * weight_kg
        elif unit == DoseUnit.MG_KG_MIN:
            return dose * weight_kg * per_hour
        elif unit == DoseUnit.MG_MIN:
            return dose * per_hour
        elif unit == DoseUnit.MCG_KG_MIN:
            return (dose * weight_kg * per_hour) / PUMP_CONSTANTS.MCG_PER_MG
        else: # UNITS_HR
            return dose

class BolusPlanner:
    @staticmethod
    def plan(bolus_dose_mg: float, bolus_duration_min: float,
             concentration_mg_ml: float) -> Optional[BolusParameters]:
        # No bolus ordered (zero, negative or left blank)
        if not bolus_dose_mg > 0:
            return None

        if bolus_duration_min <= 0:
            raise InvalidInputError("Bolus duration must be positive if bolus dose is given")

        volume_ml = bolus_dose_mg / concentration_mg_ml
        rate_ml_hr = (volume_ml / bolus_duration_min) * PUMP_CONSTANTS.MINUTES_PER_HOUR

        return BolusParameters(
            bolus_dose_mg=bolus_dose_mg,
            bolus_volume_ml=volume_ml,
            bolus_duration_min=bolus_duration_min,
            bolus_rate_ml_hr=rate_ml_hr
        )
