from __future__ import annotations

RECORD_TYPES: dict[str, str] = {
    "1": "Add new record",
    "2": "Modify existing record",
    "3": "Inactivate existing record",
}

REASON_FOR_RECORD: dict[str, str] = {
    "1": "Admission (ADM)",
    "2": "HOPE Update Visit 1 (HUV1)",
    "3": "HOPE Update Visit 2 (HUV2)",
    "4": "Transfer to different hospice - planned discharge",
    "5": "Transfer to different hospice - change in ownership",
    "6": "Transfer to different hospice - other",
    "7": "Transfer within same hospice - change in CCN",
    "8": "Transfer within same hospice - change in ownership",
    "9": "Discharge (DC)",
}

ADMISSION_REASON = "1"

SITE_OF_SERVICE: dict[str, str] = {
    "01": "Patient's Home/Residence",
    "02": "Assisted Living Facility",
    "03": "Nursing Long Term Care (LTC) or Non-Skilled Nursing Facility (NF)",
    "04": "Skilled Nursing Facility (SNF)",
    "05": "Inpatient Hospital",
    "06": "Inpatient Hospice Facility (General Inpatient (GIP))",
    "07": "Long Term Care Hospital (LTCH)",
    "08": "Inpatient Psychiatric Facility",
    "09": "Hospice Home Care (Routine Home Care (RHC)) Provided in a Hospice Facility",
    "99": "Not listed",
}

SEX_OPTIONS: dict[str, str] = {"1": "Male", "2": "Female"}

ETHNICITY_OPTIONS: dict[str, str] = {
    "A": "No, not of Hispanic, Latino/a, or Spanish origin",
    "B": "Yes, Mexican, Mexican American, Chicano/a",
    "C": "Yes, Puerto Rican",
    "D": "Yes, Cuban",
    "E": "Yes, another Hispanic, Latino, or Spanish origin",
    "X": "Patient unable to respond",
    "Y": "Patient declines to respond",
}

RACE_OPTIONS: dict[str, str] = {
    "A": "White",
    "B": "Black or African American",
    "C": "American Indian or Alaska Native",
    "D": "Asian Indian",
    "E": "Chinese",
    "F": "Filipino",
    "G": "Japanese",
    "H": "Korean",
    "I": "Vietnamese",
    "J": "Other Asian",
    "K": "Native Hawaiian",
    "L": "Guamanian or Chamorro",
    "M": "Samoan",
    "N": "Other Pacific Islander",
    "X": "Patient unable to respond",
    "Y": "Patient declines to respond",
    "Z": "None of the above",
}

INTERPRETER_NEEDED: dict[str, str] = {
    "0": "No",
    "1": "Yes",
    "9": "Unable to determine",
}

PAYER_OPTIONS: dict[str, str] = {
    "A": "Medicare (traditional fee-for-service)",
    "B": "Medicare (managed care/Part C/Medicare Advantage)",
    "C": "Medicaid (traditional fee-for-service)",
    "D": "Medicaid (managed care)",
    "E": "Title V / Other Federal",
    "F": "Workers' Compensation",
    "G": "Other government (e.g., TRICARE, VA, etc.)",
    "H": "Private Insurance/Medigap",
    "I": "Private managed care",
    "J": "Self-pay",
    "K": "No payer source",
    "X": "Unknown",
    "Y": "Other",
}

YES_NO_OPTIONS: dict[str, str] = {"0": "No", "1": "Yes"}

SYMPTOM_IMPACT_LEVELS: dict[str, str] = {
    "0": "Not at all",
    "1": "Slight",
    "2": "Moderate",
    "3": "Severe",
    "9": "Not applicable (the patient is not experiencing the symptom)",
}

# Impact codes that make a symptom follow-up visit mandatory.
FOLLOW_UP_TRIGGER_LEVELS: tuple[str, ...] = ("2", "3")

SYMPTOM_TYPES: dict[str, str] = {
    "A": "Pain",
    "B": "Shortness of breath",
    "C": "Anxiety",
    "D": "Nausea",
    "E": "Vomiting",
    "F": "Diarrhea",
    "G": "Constipation",
    "H": "Agitation",
}

SFV_NOT_COMPLETED_REASONS: dict[str, str] = {
    "1": "Patient and/or caregiver declined an in-person visit",
    "2": "Patient unavailable (e.g., in ED, hospital, travelling)",
    "3": "Hospice unable to reach patient/caregiver",
    "9": "None of the above",
}

SKIN_CONDITION_TYPES: dict[str, str] = {
    "A": "Diabetic foot ulcer(s)",
    "B": "Open lesion(s) other than ulcers, rash, or skin tear",
    "C": "Pressure Ulcer(s)/Injuries",
    "D": "Rash(es)",
    "E": "Skin tear(s)",
    "F": "Surgical wound(s)",
    "G": "Ulcers other than diabetic or pressure ulcers",
    "H": "Moisture Associated Skin Damage (MASD)",
    "Y": "Other specified condition",
    "Z": "None of the above were present",
}

SKIN_TREATMENTS: dict[str, str] = {
    "A": "Pressure reducing device for chair",
    "B": "Pressure reducing device for bed",
    "C": "Turning/repositioning program",
    "D": "Nutrition or hydration intervention to manage skin problems",
    "E": "Pressure ulcer/injury care",
    "F": "Surgical wound care",
    "G": "Application of nonsurgical dressings (not feet)",
    "H": "Application of ointments/medications (not feet)",
    "I": "Application of dressings to feet",
    "J": "Incontinence Management",
    "Z": "None of the above were provided",
}

BOWEL_REGIMEN_OPTIONS: dict[str, str] = {
    "0": "No",
    "1": "No, but there is documentation of why a bowel regimen was not initiated",
    "2": "Yes",
}

SECTION_TITLES: dict[str, str] = {
    "A": "Administrative Information",
    "J": "Health Conditions",
    "M": "Skin Conditions",
    "N": "Medications",
    "Z": "Record Administration",
}
