# main.py

import os
import logging
from typing import Dict, List, Optional, Union
from datetime import datetime
from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

# Import Data Models & Logic
from constants import VERSION, MEDICATION_LIBRARY, SafetyProfile, load_safety_profiles
from models import (
    CalculationStatus,
    DoseRequest,
    ErrorResult,
    InvalidInputError,
    parse_dose_form
)
from core_dosing import DoseCalculationEngine

# --- 1. CONFIGURATION & LOGGING ---
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("infusion-api")

SAFETY_TABLE_ENV = "INFUSION_SAFETY_TABLE"


def _load_safety_table() -> Dict[str, SafetyProfile]:
    path = os.environ.get(SAFETY_TABLE_ENV)
    if not path:
        return dict(MEDICATION_LIBRARY.SPECS)
    logger.info(f"Loading safety table from {path}")
    return load_safety_profiles(path)

SAFETY_TABLE = _load_safety_table()

app = FastAPI(
    title="InfuseCalc API",
    version=VERSION,
    description="Infusion pump dose calculator with formulary safety checks. \n\n"
                "**WARNING**: Decision Support Tool Only. Verify every pump setting independently.",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_safety_table() -> Dict[str, SafetyProfile]:
    return SAFETY_TABLE


def get_clock():
    return datetime.now

@app.get("/")
def read_root():
    return {"status": "active", "message": "InfuseCalc API is running successfully!"}

@app.get("/health")
def health_check():
    """Health Probe"""
    return {"status": "active", "version": VERSION, "module": "infusion-dose-engine"}

# --- 2. STRICT INPUT SCHEMA ---
# Only type/finiteness is enforced here. Range checks stay in the engine so the
# bedside sees the engine's own messages.
class DoseRequestSchema(BaseModel):
    medication: str = Field(..., min_length=1, description="Medication name (case-insensitive)")
    concentration_mg_ml: float = Field(..., allow_inf_nan=False, description="mg/mL")
    patient_weight_kg: float = Field(..., allow_inf_nan=False, description="kg")
    dose_amount: float = Field(..., allow_inf_nan=False)
    dose_unit: str = Field(..., description="e.g. 'mg_per_kg_per_hr', 'mcg_per_kg_per_min'")
    infusion_duration_hr: float = Field(..., allow_inf_nan=False, description="Hours")
    max_infusion_rate_ml_hr: float = Field(..., allow_inf_nan=False, description="Pump ceiling in mL/hr")
    reservoir_volume_ml: float = Field(..., allow_inf_nan=False, description="Syringe/bag volume in mL")
    bolus_dose_mg: float = Field(0.0, allow_inf_nan=False, description="Loading dose in mg (0 = none)")
    bolus_duration_min: float = Field(0.0, allow_inf_nan=False, description="Minutes")

    class Config:
        # Document an example for Swagger UI
        json_schema_extra = {
            "example": {
                "medication": "morphine", "concentration_mg_ml": 1.0, "patient_weight_kg": 70,
                "dose_amount": 0.1, "dose_unit": "mg_per_kg_per_hr", "infusion_duration_hr": 24,
                "max_infusion_rate_ml_hr": 100, "reservoir_volume_ml": 100,
                "bolus_dose_mg": 2, "bolus_duration_min": 5
            }
        }

# --- 3. EXPLICIT RESPONSE SCHEMA (The Contract) ---
class SafetyProfileResponse(BaseModel):
    max_rate: float
    max_concentration: float
    unit: str

class InfusionParametersResponse(BaseModel):
    dose_rate_mg_hr: float
    infusion_rate_ml_hr: float
    total_volume_ml: float
    total_medication_mg: float

class PumpProgrammingResponse(BaseModel):
    vtbi_ml: float
    rate_ml_hr: float
    dose_rate_mg_hr: float
    concentration_mg_ml: float
    estimated_completion: datetime

class BolusParametersResponse(BaseModel):
    bolus_dose_mg: float
    bolus_volume_ml: float
    bolus_duration_min: float
    bolus_rate_ml_hr: float

class SafetyValidationResponse(BaseModel):
    warnings: List[str]
    errors: List[str]
    safety_limits_applied: SafetyProfileResponse
    time_to_empty_hours: float

class CalculationResponse(BaseModel):
    status: CalculationStatus
    medication: str
    patient_weight_kg: float
    infusion_parameters: InfusionParametersResponse
    pump_programming: PumpProgrammingResponse
    bolus_parameters: Optional[BolusParametersResponse] = None
    safety_validation: SafetyValidationResponse
    calculation_timestamp: datetime

class ErrorResponse(BaseModel):
    status: CalculationStatus
    error_message: str
    calculation_timestamp: datetime

# --- 4. ENDPOINTS ---

@app.get("/medications", response_model=Dict[str, SafetyProfileResponse])
def list_medications(table: Dict[str, SafetyProfile] = Depends(get_safety_table)):
    """The formulary limits currently applied to calculations."""
    return table


def _run_engine(request: DoseRequest, clock, table):
    try:
        logger.info(f"Processing {request.medication} order: {request.dose_amount} {request.dose_unit}")
        return DoseCalculationEngine.calculate(request, clock=clock, profiles=table)
    except Exception as e:
        logger.error(f"Internal Engine Failure: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal Dose Engine Error")

@app.post("/calculate", response_model=Union[CalculationResponse, ErrorResponse])
def calculate(payload: DoseRequestSchema,
              table: Dict[str, SafetyProfile] = Depends(get_safety_table),
              clock=Depends(get_clock)):
    """
    Runs the dose engine on a typed request.
    Input problems (e.g. zero weight) come back as an ERROR record, not an HTTP error.
    """
    return _run_engine(DoseRequest(**payload.dict()), clock, table)

@app.post("/calculate/form", response_model=Union[CalculationResponse, ErrorResponse])
def calculate_from_form(form: Dict[str, Optional[str]],
                        table: Dict[str, SafetyProfile] = Depends(get_safety_table),
                        clock=Depends(get_clock)):
    """Accepts the bedside form exactly as typed (every value a string)."""
    try:
        request = parse_dose_form(form)
    except InvalidInputError as e:
        logger.warning(f"Form Validation Error: {str(e)}")
        return ErrorResult(error_message=str(e), calculation_timestamp=clock())
    return _run_engine(request, clock, table)
