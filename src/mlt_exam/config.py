"""Exam policy, domain catalog and runtime configuration."""
import os
from dataclasses import dataclass, field, replace
from pathlib import Path

DEFAULT_DB_PATH = os.environ.get(
    "MLT_EXAM_DB", str(Path.home() / ".mlt_exam" / "exam.db")
)
DEBUG = os.environ.get("MLT_EXAM_DEBUG", "") == "1"
TIER = os.environ.get("MLT_EXAM_TIER", "paid")

DOMAINS = (
    "Clinical Chemistry",
    "Urinalysis & Other Body Fluids",
    "Immunology",
    "Blood Bank (Transfusion Medicine)",
    "Hematology",
    "Microbiology",
    "Lab Operations",
    "Patient Safety & Professionalism",
    "Histo/Cyto-Techniques",
)

SUBTOPICS = {
    "Clinical Chemistry": [
        "Electrolytes & Blood Gases", "Enzymology", "Endocrinology", "Toxicology & TDM",
        "Carbohydrates & Lipids", "Proteins & Tumor Markers", "Liver & Renal Function",
    ],
    "Urinalysis & Other Body Fluids": [
        "Routine Urinalysis", "Microscopic Examination", "Cerebrospinal Fluid (CSF)",
        "Synovial & Serous Fluids", "Amniotic Fluid",
    ],
    "Immunology": [
        "Cellular Immunity", "Humoral Immunity", "Autoimmune Diseases",
        "Hypersensitivity Reactions", "Immunodeficiency Disorders", "Serology & Infectious Diseases",
    ],
    "Blood Bank (Transfusion Medicine)": [
        "ABO/Rh Grouping", "Antibody Screening & ID", "Crossmatching",
        "Transfusion Reactions", "Blood Components & Therapy", "Donor Processing",
    ],
    "Hematology": [
        "Complete Blood Count (CBC)", "WBC Differential", "RBC Morphology & Anemias",
        "Hemostasis & Coagulation", "Hematologic Malignancies", "Bone Marrow Examination",
    ],
    "Microbiology": [
        "Bacteriology", "Mycology", "Parasitology", "Virology",
        "Antimicrobial Susceptibility", "Specimen Processing & Culture",
    ],
    "Lab Operations": [
        "Quality Control & Assurance", "Laboratory Safety", "Instrumentation",
        "Laboratory Information Systems (LIS)", "Phlebotomy & Specimen Collection",
    ],
    "Patient Safety & Professionalism": [
        "Patient Identification", "Critical Value Reporting", "Professional Ethics",
        "Communication", "Continuing Education",
    ],
    "Histo/Cyto-Techniques": [
        "Tissue Fixation & Processing", "Staining Techniques", "Immunohistochemistry (IHC)",
        "Cytology Specimen Preparation", "Microtomy",
    ],
}

# Zero-weight domains are not sampled by the generator; see normalized_weights()
DOMAIN_WEIGHTS = {
    "Clinical Chemistry": 0.20,
    "Hematology": 0.20,
    "Microbiology": 0.20,
    "Blood Bank (Transfusion Medicine)": 0.20,
    "Immunology": 0.10,
    "Urinalysis & Other Body Fluids": 0.05,
    "Lab Operations": 0.05,
    "Patient Safety & Professionalism": 0.00,
    "Histo/Cyto-Techniques": 0.00,
}

# Cumulative cut points: Easy below 0.40, Medium below 0.85, Hard otherwise
DIFFICULTY_CUTS = (0.40, 0.85)

LANGUAGES = ("English", "Arabic")


def normalized_weights(weights: dict = None) -> dict:
    """Spread whatever is missing from 1.0 evenly across the non-zero domains."""
    weights = dict(DOMAIN_WEIGHTS if weights is None else weights)
    non_zero = [d for d, w in weights.items() if w > 0]
    total = sum(weights.values())
    if total < 1 and non_zero:
        share = (1 - total) / len(non_zero)
        for d in non_zero:
            weights[d] += share
    return weights


@dataclass(frozen=True)
class ExamPolicy:
    """Tunable policy values used by the attempt, timer and analytics engines."""
    total_questions: int = 150
    duration_minutes: int = 180
    pass_percentage: float = 60.0
    # Bucket boundaries: < weak_below is weak, < mid_below is mid, < good_below is good
    weak_below: float = 0.50
    mid_below: float = 0.70
    good_below: float = 0.80
    impact_target: float = 0.70
    max_recommendations: int = 3
    drill_question_cap: int = 20
    drill_minutes: int = 45
    weakest_subtopics: int = 5
    srs_new_ratio: float = 0.10
    srs_new_min: int = 10
    srs_new_max: int = 25
    srs_review_ratio: float = 0.20
    srs_review_min: int = 15
    srs_review_max: int = 45
    warning_marks_minutes: tuple = field(default=(30, 10, 5))

    @property
    def duration_seconds(self) -> int:
        return self.duration_minutes * 60

    @property
    def warning_marks_seconds(self) -> tuple:
        return tuple(m * 60 for m in self.warning_marks_minutes)

    @classmethod
    def for_tier(cls, tier: str) -> "ExamPolicy":
        if tier not in TIER_OVERRIDES:
            raise ValueError(f"Unknown subscription tier: {tier}")
        return replace(cls(), **TIER_OVERRIDES[tier])


TIER_OVERRIDES = {
    "free": {"duration_minutes": 30, "warning_marks_minutes": (10, 5, 1)},
    "paid": {"duration_minutes": 180, "warning_marks_minutes": (30, 10, 5)},
}

DEFAULT_POLICY = ExamPolicy()
