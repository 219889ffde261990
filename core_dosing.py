"""
InfuseCalc: Core Dose Engine
============================
Translates one DoseRequest into pump settings, an optional bolus plan and a
safety verdict. Stateless: the clock and the formulary are passed in.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional, Union

from constants import MEDICATION_LIBRARY, SafetyProfile
from models import (
    DoseRequest,
    CalculationResult,
    ErrorResult,
    InfusionParameters,
    PumpProgramming,
    SafetyValidation,
    DoseCalculationError,
    InvalidInputError
)
from protocols import DoseRateConverter, BolusPlanner
from safety import SafetySupervisor

logger = logging.getLogger("infusion-engine")

Clock = Callable[[], datetime]

class DoseCalculationEngine:
    """
    The Mathematical Core.
    Request -> Dose Rate (mg/hr) -> Pump Rate (mL/hr) -> Safety Verdict.
    """

    @staticmethod
    def _validate_request(request: DoseRequest) -> None:
        # Order matters: the first failing check is the message the user sees.
        if request.patient_weight_kg <= 0:
            raise InvalidInputError("Patient weight must be positive")
        if request.concentration_mg_ml <= 0:
            raise InvalidInputError("Concentration must be positive")
        if request.infusion_duration_hr <= 0:
            raise InvalidInputError("Infusion duration must be positive")

    @staticmethod
    def _calculate_time_to_empty(reservoir_ml: float, infusion_rate_ml_hr: float) -> float:
        if infusion_rate_ml_hr > 0:
            return reservoir_ml / infusion_rate_ml_hr
        return 0.0

    @staticmethod
    def _build_result(request: DoseRequest, now: datetime,
                      profiles: Dict[str, SafetyProfile]) -> CalculationResult:
        DoseCalculationEngine._validate_request(request)

        concentration = request.concentration_mg_ml
        duration_hr = request.infusion_duration_hr

        # 1. Normalize the order to mg/hr
        dose_rate = DoseRateConverter.to_mg_per_hr(
            request.dose_amount, request.patient_weight_kg, request.dose_unit
        )

        # 2. Volumetrics
        infusion_rate = dose_rate / concentration
        total_volume = infusion_rate * duration_hr
        total_medication = dose_rate * duration_hr

        # 3. Optional loading dose
        bolus = BolusPlanner.plan(request.bolus_dose_mg, request.bolus_duration_min, concentration)

        # 4. Safety
        profile = MEDICATION_LIBRARY.get(request.medication, profiles)
        time_to_empty = DoseCalculationEngine._calculate_time_to_empty(
            request.reservoir_volume_ml, infusion_rate
        )
        warnings, errors = SafetySupervisor.evaluate(
            medication=request.medication,
            dose_rate_mg_hr=dose_rate,
            infusion_rate_ml_hr=infusion_rate,
            concentration_mg_ml=concentration,
            max_infusion_rate_ml_hr=request.max_infusion_rate_ml_hr,
            profile=profile,
            bolus=bolus,
            time_to_empty_hours=time_to_empty,
            infusion_duration_hr=duration_hr
        )

        return CalculationResult(
            status=SafetySupervisor.derive_status(warnings, errors),
            medication=request.medication,
            patient_weight_kg=request.patient_weight_kg,
            infusion_parameters=InfusionParameters(
                dose_rate_mg_hr=dose_rate,
                infusion_rate_ml_hr=infusion_rate,
                total_volume_ml=total_volume,
                total_medication_mg=total_medication
            ),
            pump_programming=PumpProgramming(
                vtbi_ml=total_volume,
                rate_ml_hr=infusion_rate,
                dose_rate_mg_hr=dose_rate,
                concentration_mg_ml=concentration,
                estimated_completion=now + timedelta(hours=duration_hr)
            ),
            bolus_parameters=bolus,
            safety_validation=SafetyValidation(
                warnings=tuple(warnings),
                errors=tuple(errors),
                safety_limits_applied=profile,
                time_to_empty_hours=time_to_empty
            ),
            calculation_timestamp=now
        )

    @staticmethod
    def calculate(request: DoseRequest,
                  clock: Clock = datetime.now,
                  profiles: Optional[Dict[str, SafetyProfile]] = None
                  ) -> Union[CalculationResult, ErrorResult]:
        """
        SAFE FACTORY: The main entry point for the UI/API.
        Input problems come back as an ErrorResult; anything else is a real fault
        and propagates.
        """
        now = clock()
        table = profiles if profiles is not None else MEDICATION_LIBRARY.SPECS

        try:
            result = DoseCalculationEngine._build_result(request, now, table)
        except DoseCalculationError as e:
            logger.warning(f"Dose validation error for {request.medication}: {e}")
            return ErrorResult(error_message=str(e), calculation_timestamp=now)
        except Exception:
            logger.error(f"Dose engine failure for {request.medication}", exc_info=True)
            raise

        logger.info(
            f"Calculated {request.medication}: {result.pump_programming.rate_ml_hr:.2f} mL/hr "
            f"-> {result.status.value}"
        )
        return result
