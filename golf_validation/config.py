"""
Centralized configuration for post-event validation.

Single source of truth for the thresholds used by the correlation,
classification, bias and calibration code. The course-type margin and the
bias / stability cutoffs are empirically chosen; tune them here or through
a run profile (profiles.yaml) rather than inside the statistics modules.
"""

import os

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------
DATA_ROOT = os.environ.get("GOLF_VALIDATION_DATA_ROOT", os.path.join(PROJECT_ROOT, "data"))
DB_PATH = os.environ.get("GOLF_VALIDATION_DB", os.path.join(PROJECT_ROOT, "data", "validation.db"))
METRIC_DEFINITIONS_PATH = os.path.join(PROJECT_ROOT, "metric_definitions.yaml")
WEIGHT_TEMPLATES_PATH = os.environ.get(
    "GOLF_VALIDATION_TEMPLATES", os.path.join(PROJECT_ROOT, "weight_templates.yaml")
)
TOURNAMENTS_CONFIG_PATH = os.path.join(PROJECT_ROOT, "tournaments.yaml")

OUTPUT_DIR_NAME = "validation_outputs"
METRIC_ANALYSIS_DIR_NAME = "metric_analysis"
CORRELATION_SUMMARY_DIR_NAME = "template_correlation_summaries"

OUTPUT_NAMES: dict[str, str] = {
    "calibration_report": "Calibration_Report",
    "weight_templates": "Weight_Templates",
    "course_type_classification": "Course_Type_Classification",
    "processing_log": "Processing_Log",
    "model_delta_trends": "Model_Delta_Trends",
    "metric_stability": "Metric_Stability",
    "weight_calibration_guide": "Weight_Calibration_Guide",
    "POWER": "POWER_Correlation_Summary",
    "TECHNICAL": "TECHNICAL_Correlation_Summary",
    "BALANCED": "BALANCED_Correlation_Summary",
}

# ---------------------------------------------------------------------------
# Metric analysis artifact
# ---------------------------------------------------------------------------
# Bump whenever the MetricAnalysis payload shape or its math changes;
# stored artifacts with another version are recomputed.
METRIC_ANALYSIS_VERSION = 3

# Metric values are rounded before aggregation so reruns are byte-stable
METRIC_VALUE_DECIMALS = 3

# ---------------------------------------------------------------------------
# Feeds
# ---------------------------------------------------------------------------
MAX_PREDICTION_ROWS = 150
# "72.5%" and "72.5" both mean 0.725 for percentage metrics
PERCENT_DETECTION_THRESHOLD = 1.5
FINISH_MISSING_TOKENS = ("CUT", "WD", "DQ", "MC", "DNS", "MDF")

# ---------------------------------------------------------------------------
# Correlation
# ---------------------------------------------------------------------------
MIN_RANK_CORRELATION_SAMPLES = 2
MIN_METRIC_CORRELATION_SAMPLES = 3
MIN_TOP_N_CORRELATION_SAMPLES = 5
TOP_N_SUCCESS = 10
HIT_RATE_WINDOWS = (5, 10, 20, 50)

CORRELATION_STRENGTH: list[tuple[float, str]] = [
    (0.3, "Strong"),
    (0.2, "Moderate"),
    (0.1, "Weak"),
]
CORRELATION_STRENGTH_FLOOR = "Very Weak"

# ---------------------------------------------------------------------------
# Course type classification
# ---------------------------------------------------------------------------
COURSE_TYPES = ("POWER", "TECHNICAL", "BALANCED")
DEFAULT_COURSE_TYPE = "BALANCED"
COURSE_TYPE_TOP_METRICS = 15
# Winner must beat the runner-up by 25%, otherwise BALANCED
COURSE_TYPE_MARGIN = 1.25

COURSE_TYPE_DESCRIPTIONS: dict[str, str] = {
    "POWER": "Driving Distance & Power Metrics Dominant",
    "TECHNICAL": "Short Game & Approach Metrics Dominant",
    "BALANCED": "Multiple Metric Types Equally Important",
}

# ---------------------------------------------------------------------------
# Bias trends (model estimate - actual)
# ---------------------------------------------------------------------------
BIAS_MIN_SAMPLES = 20
BIAS_STABLE_Z = 0.2
BIAS_CHRONIC_Z = 0.75

# ---------------------------------------------------------------------------
# Metric group stability across seasons
# ---------------------------------------------------------------------------
STABILITY_HIGH = 0.70
STABILITY_MODERATE = 0.40
STABILITY_MIN_SEASONS = 2
STABILITY_MEAN_EPSILON = 0.001

# ---------------------------------------------------------------------------
# Calibration
# ---------------------------------------------------------------------------
CALIBRATION_TOP_FINISH = 10
CALIBRATION_BUCKETS: list[tuple[int, str]] = [
    (20, "Top 20"),
    (50, "Top 50"),
]
CALIBRATION_OUTSIDE_LABEL = "Outside Top 50"
# (finish cutoff, predicted-rank window) pairs for the headline ratios
CALIBRATION_TOP5_WINDOW = 20
CALIBRATION_TOP10_WINDOW = 30
CALIBRATION_TOP20_WINDOW = 50

# Sentinel for percentage changes against a zero template weight
NOT_APPLICABLE = "N/A"
