import unittest

from scheduling import ErrorRule, map_error, remap_for_reschedule


class MapErrorTests(unittest.TestCase):
    def test_overlap_marks_both_slot_fields(self) -> None:
        message = "Slot overlaps with existing appointment"
        self.assertEqual(map_error(message), {"slotStart": message, "slotEnd": message})

    def test_patient_double_booking_marks_slot_fields(self) -> None:
        message = "Patient already has an appointment in this time slot"
        self.assertEqual(map_error(message), {"slotStart": message, "slotEnd": message})

    def test_doctor_not_found_marks_only_doctor(self) -> None:
        self.assertEqual(map_error("Doctor not found"), {"doctorId": "Doctor not found"})

    def test_inactive_patient_marks_patient(self) -> None:
        message = "Patient not found or inactive"
        self.assertEqual(map_error(message), {"patientId": message})

    def test_department_mismatch_marks_department(self) -> None:
        message = "Department mismatch: Doctor belongs to Cardiology"
        self.assertEqual(map_error(message), {"department": message})

    def test_lead_time_marks_start(self) -> None:
        message = "New appointment slot must be at least 2 hours from now"
        self.assertEqual(map_error(message), {"slotStart": message})

    def test_clinic_hours_marks_both_slot_fields(self) -> None:
        message = "Appointment must be within clinic hours"
        self.assertEqual(map_error(message), {"slotStart": message, "slotEnd": message})

    def test_matching_is_case_insensitive(self) -> None:
        message = "SLOT NOT AVAILABLE: doctor on leave"
        self.assertEqual(map_error(message), {"slotStart": message, "slotEnd": message})

    def test_several_rules_can_apply(self) -> None:
        message = "Doctor does not exist in department"
        self.assertEqual(map_error(message), {"doctorId": message, "department": message})

    def test_unrecognized_message_maps_to_nothing(self) -> None:
        self.assertEqual(map_error("Maximum reschedule limit (2) reached"), {})
        self.assertEqual(map_error("Internal server error"), {})
        self.assertEqual(map_error(""), {})
        self.assertEqual(map_error(None), {})

    def test_rule_table_can_be_replaced(self) -> None:
        rules = (ErrorRule(("patientId",), (("blocked",),)),)
        self.assertEqual(map_error("Account blocked", rules), {"patientId": "Account blocked"})
        self.assertEqual(map_error("Doctor not found", rules), {})


class RemapTests(unittest.TestCase):
    def test_slot_fields_are_renamed_and_others_dropped(self) -> None:
        errors = {"slotStart": "a", "slotEnd": "b", "doctorId": "c"}
        self.assertEqual(remap_for_reschedule(errors), {"newSlotStart": "a", "newSlotEnd": "b"})


if __name__ == "__main__":
    unittest.main()
