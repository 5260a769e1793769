"""
Enumeration definitions for the Funnel Diagnostics backend.

All enums inherit from both `str` and `Enum` to ensure JSON serialization compatibility
with Pydantic models, enabling automatic serialization/deserialization in API responses.

Groups:
- Registry metadata: Direction, MetricUnit
- Grading: MetricStatus, StageStatus, EligibilityReason
- Confidence: ConfidenceTier, PenaltyCategory
- Impact: PropagationKind
- Actions: ActionCategory, ActionPriority, ActionSource
- Context: MediaChannel, IndustrySegment, CaptureType, FormComplexity
- Benchmarks: BenchmarkChannel, BenchmarkSegment
"""

from enum import Enum


class Direction(str, Enum):
    """
    Comparison direction of a metric target.

    - min: Higher observed values are better; the target is a floor.
    - max: Lower observed values are better; the target is a ceiling.
    """
    MIN = "min"
    MAX = "max"


class MetricUnit(str, Enum):
    """Display unit of a registry metric."""
    PERCENT = "percent"
    CURRENCY = "currency"
    MINUTES = "minutes"
    DAYS = "days"
    COUNT = "count"


class MetricStatus(str, Enum):
    """
    Status of a single metric against its target.

    - pass: At or better than target
    - warn: Worse than target but within the tolerance buffer
    - fail: Worse than target beyond the tolerance buffer
    - no_data: Value or target undefined (or the metric is not eligible)
    """
    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"
    NO_DATA = "no_data"


class StageStatus(str, Enum):
    """
    Status of a funnel stage.

    ok / warn / critical / no_data come from aggregating member metric statuses.
    low_sample is only produced on stage impacts, where the eligibility gate
    rejected a present-but-small denominator.
    """
    OK = "ok"
    WARN = "warn"
    CRITICAL = "critical"
    NO_DATA = "no_data"
    LOW_SAMPLE = "low_sample"


class EligibilityReason(str, Enum):
    """Why a stage or media metric failed the sample-size gate."""
    NO_DATA = "no_data"
    LOW_SAMPLE = "low_sample"


class ConfidenceTier(str, Enum):
    """
    Confidence tier derived from the 0-100 confidence score.

    - low: score < 50
    - medium: 50 <= score < 80
    - high: score >= 80
    """
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class PenaltyCategory(str, Enum):
    """Category of a confidence penalty. Declaration order is the tie-break order."""
    SAMPLE = "sample"
    COMPLETENESS = "completeness"
    CONSISTENCY = "consistency"


class PropagationKind(str, Enum):
    """
    Trust level of a propagated final-outcome estimate.

    - trusted: every downstream stage used its observed rate
    - estimated: at least one downstream stage fell back to its target rate
    - unavailable: a downstream stage had unusable data; no number is reported
    """
    TRUSTED = "trusted"
    ESTIMATED = "estimated"
    UNAVAILABLE = "unavailable"


class ActionCategory(str, Enum):
    """Whether a recommended action targets paid media or the sales process."""
    MEDIA = "media"
    PROCESS = "process"


class ActionPriority(str, Enum):
    """Priority of a recommended action. Sort order is high, medium, low."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ActionSource(str, Enum):
    """Origin of a recommended action or diagnostic item."""
    PLAYBOOK = "playbook"
    MATRIX_RULE = "matrix_rule"


class MediaChannel(str, Enum):
    """Paid acquisition channel supplied as analysis context."""
    GOOGLE_ADS = "google_ads"
    LINKEDIN_ADS = "linkedin_ads"
    META_ADS = "meta_ads"
    OTHER = "other"


class IndustrySegment(str, Enum):
    """Industry segment supplied as analysis context."""
    CONSULTING = "consulting"
    SOFTWARE_B2B = "software_b2b"
    MANUFACTURING = "manufacturing"
    LEGAL_SERVICES = "legal_services"
    PROFESSIONAL_SERVICES_SAAS = "professional_services_saas"
    B2C_RETAIL = "b2c_retail"
    B2C_SERVICES = "b2c_services"
    OTHER = "other"


class CaptureType(str, Enum):
    """
    How leads are captured.

    - landing_page: Lower click-to-lead conversion, better qualified leads
    - native_lead: Platform lead form; quality depends on the form fields
    - chat: Chat-app capture; cheap leads that need qualification
    - other: Unspecified
    """
    LANDING_PAGE = "landing_page"
    NATIVE_LEAD = "native_lead"
    CHAT = "chat"
    OTHER = "other"


class FormComplexity(str, Enum):
    """Field setup of a native lead form."""
    FEW_FIELDS = "few_fields"
    MANY_FIELDS = "many_fields"
    QUALIFYING_FIELDS = "qualifying_fields"


class BenchmarkChannel(str, Enum):
    """Channels with published stage-conversion benchmarks."""
    SEO = "seo"
    PPC = "ppc"
    LINKEDIN = "linkedin"
    EMAIL = "email"
    WEBINAR = "webinar"


class BenchmarkSegment(str, Enum):
    """Industry segments with published stage-conversion benchmarks."""
    ADTECH = "adtech"
    AUTOMOTIVE_SAAS = "automotive_saas"
    CRMS = "crms"
    CHEMICAL_PHARMACEUTICAL = "chemical_pharmaceutical"
    CYBERSECURITY = "cybersecurity"
    DESIGN = "design"
    EDTECH = "edtech"
    ENTERTAINMENT = "entertainment"
    FINTECH = "fintech"
    HOSPITALITY = "hospitality"
    INDUSTRIAL_IOT = "industrial_iot"
    INSURANCE = "insurance"
    LEGALTECH = "legaltech"
    MEDTECH = "medtech"
    PROJECT_MANAGEMENT = "project_management"
    RETAIL_ECOMMERCE = "retail_ecommerce"
    TELECOM = "telecom"
