# safety.py
from typing import List, Optional, Tuple
from constants import SafetyProfile, PUMP_CONSTANTS
from models import BolusParameters, CalculationStatus


def _num(value: float) -> str:
    """Number as entered: 100.0 -> '100', 12.3456789 -> '12.3456789', never exponent-rounded."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)

class SafetySupervisor:
    """
    Layered safety checks run after the infusion has been derived.
    Errors block pump programming; warnings only annotate the result.
    The order of the checks fixes the order of the messages.
    """
    @staticmethod
    def evaluate(medication: str,
                 dose_rate_mg_hr: float,
                 infusion_rate_ml_hr: float,
                 concentration_mg_ml: float,
                 max_infusion_rate_ml_hr: float,
                 profile: SafetyProfile,
                 bolus: Optional[BolusParameters],
                 time_to_empty_hours: float,
                 infusion_duration_hr: float) -> Tuple[List[str], List[str]]:
        warnings: List[str] = []
        errors: List[str] = []
        med = medication.strip().lower()

        # 1. Pump hardware ceiling
        if infusion_rate_ml_hr > max_infusion_rate_ml_hr:
            errors.append(
                f"Infusion rate {infusion_rate_ml_hr:.2f} mL/hr exceeds pump limit "
                f"{_num(max_infusion_rate_ml_hr)} mL/hr"
            )

        # 2. Formulary dose ceiling
        if dose_rate_mg_hr > profile.max_rate:
            warnings.append(
                f"Dose rate {dose_rate_mg_hr:.2f} mg/hr exceeds recommended maximum "
                f"{_num(profile.max_rate)} mg/hr for {med}"
            )

        # 3. Formulary concentration ceiling
        if concentration_mg_ml > profile.max_concentration:
            warnings.append(
                f"Concentration {_num(concentration_mg_ml)} mg/mL exceeds recommended maximum "
                f"{_num(profile.max_concentration)} mg/mL for {med}"
            )

        # 4. Under-infusion
        if infusion_rate_ml_hr < PUMP_CONSTANTS.UNDER_INFUSION_ML_HR:
            warnings.append("Very low infusion rate detected - risk of under-infusion")

        # 5. Bolus through the same pump
        if bolus is not None and bolus.bolus_rate_ml_hr > max_infusion_rate_ml_hr:
            errors.append(f"Bolus rate {bolus.bolus_rate_ml_hr:.2f} mL/hr exceeds pump limit")

        # 6. Syringe runs dry before the infusion ends
        if time_to_empty_hours < infusion_duration_hr:
            warnings.append(
                f"Reservoir will empty in {time_to_empty_hours:.1f} hours - monitor for refill"
            )

        return warnings, errors

    @staticmethod
    def derive_status(warnings: List[str], errors: List[str]) -> CalculationStatus:
        if errors:
            return CalculationStatus.ERROR
        if warnings:
            return CalculationStatus.WARNING
        return CalculationStatus.SAFE
