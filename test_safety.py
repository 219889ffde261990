import unittest
from constants import MEDICATION_LIBRARY, SafetyProfile
from models import BolusParameters, CalculationStatus
from safety import SafetySupervisor


class TestSafetySupervisor(unittest.TestCase):

    def setUp(self):
        # A quiet baseline: nothing should fire
        self.base = {
            'medication': 'morphine',
            'dose_rate_mg_hr': 7.0,
            'infusion_rate_ml_hr': 7.0,
            'concentration_mg_ml': 1.0,
            'max_infusion_rate_ml_hr': 100.0,
            'profile': MEDICATION_LIBRARY.SPECS['morphine'],
            'bolus': None,
            'time_to_empty_hours': 48.0,
            'infusion_duration_hr': 24.0,
        }

    def evaluate(self, **overrides):
        kwargs = dict(self.base)
        kwargs.update(overrides)
        return SafetySupervisor.evaluate(**kwargs)

    def test_01_quiet_baseline(self):
        self.assertEqual(self.evaluate(), ([], []))

    def test_02_thresholds_are_strict(self):
        """Sitting exactly on a limit never fires."""
        warnings, errors = self.evaluate(
            infusion_rate_ml_hr=100.0,      # == pump limit
            dose_rate_mg_hr=30.0,           # == morphine max_rate
            concentration_mg_ml=10.0,       # == morphine max_concentration
            time_to_empty_hours=24.0,       # == duration
        )
        self.assertEqual((warnings, errors), ([], []))

        warnings, _ = self.evaluate(infusion_rate_ml_hr=0.5)
        self.assertEqual(warnings, [])
        warnings, _ = self.evaluate(infusion_rate_ml_hr=0.49)
        self.assertEqual(warnings, ["Very low infusion rate detected - risk of under-infusion"])

    def test_03_pump_limit_message(self):
        _, errors = self.evaluate(infusion_rate_ml_hr=120.456)
        self.assertEqual(errors, ["Infusion rate 120.46 mL/hr exceeds pump limit 100 mL/hr"])

    def test_04_medication_name_is_lowercased_in_messages(self):
        warnings, _ = self.evaluate(medication='  Morphine ', dose_rate_mg_hr=31.0)
        self.assertEqual(warnings, ["Dose rate 31.00 mg/hr exceeds recommended maximum 30 mg/hr for morphine"])

    def test_05_bolus_check_only_when_bolus_present(self):
        fast_bolus = BolusParameters(bolus_dose_mg=10, bolus_volume_ml=10,
                                     bolus_duration_min=1, bolus_rate_ml_hr=600)
        _, errors = self.evaluate(bolus=fast_bolus)
        self.assertEqual(errors, ["Bolus rate 600.00 mL/hr exceeds pump limit"])
        _, errors = self.evaluate(bolus=None)
        self.assertEqual(errors, [])

    def test_06_custom_profile(self):
        profile = SafetyProfile(max_rate=1.5, max_concentration=0.5, unit="mg/hr")
        warnings, _ = self.evaluate(medication='ketamine', profile=profile)
        self.assertEqual(warnings, [
            "Dose rate 7.00 mg/hr exceeds recommended maximum 1.5 mg/hr for ketamine",
            "Concentration 1 mg/mL exceeds recommended maximum 0.5 mg/mL for ketamine",
        ])

    def test_07_quoted_limits_keep_every_digit(self):
        """Messages quote the pump limit and concentration exactly as entered."""
        warnings, errors = self.evaluate(infusion_rate_ml_hr=56.7, concentration_mg_ml=12.3456789,
                                         max_infusion_rate_ml_hr=12.3456789)
        self.assertEqual(errors, ["Infusion rate 56.70 mL/hr exceeds pump limit 12.3456789 mL/hr"])
        self.assertEqual(warnings, [
            "Concentration 12.3456789 mg/mL exceeds recommended maximum 10 mg/mL for morphine",
        ])

        _, errors = self.evaluate(infusion_rate_ml_hr=2000000.0, max_infusion_rate_ml_hr=1234567)
        self.assertEqual(errors, ["Infusion rate 2000000.00 mL/hr exceeds pump limit 1234567 mL/hr"])

    def test_08_status_derivation(self):
        self.assertEqual(SafetySupervisor.derive_status([], []), CalculationStatus.SAFE)
        self.assertEqual(SafetySupervisor.derive_status(["w"], []), CalculationStatus.WARNING)
        self.assertEqual(SafetySupervisor.derive_status([], ["e"]), CalculationStatus.ERROR)
        self.assertEqual(SafetySupervisor.derive_status(["w"], ["e"]), CalculationStatus.ERROR)

if __name__ == '__main__':
    unittest.main()
