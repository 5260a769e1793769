"""
Action Recommendation Service

Deterministic playbook of recommended actions plus the companion outputs built
from it.

Playbook
--------
An ordered list of independent trigger rules. Each rule is a small pure
function that inspects the snapshot, derived metrics, stage impacts and
context and returns zero or one ActionItem. Rules are not mutually exclusive;
every rule runs on every call.

After all rules run the combined list is sorted by priority (high, medium,
low) with a stable sort, so rules evaluated earlier keep their relative order
among equal-priority items, then truncated to Settings.max_actions.

Companions
----------
- generate_missing_data_questions: clarifying questions for specific optional
  fields, checked in fixed order and capped at Settings.max_missing_data_questions
- generate_daily_checklist: high-priority actions only, capped at
  Settings.checklist_max_items, and empty when the confidence score is below
  Settings.checklist_min_confidence
- get_matching_rules: diagnostic matrix rules for a stage's failing metrics
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from funnel_diagnostics.core.config import Settings, get_settings
from funnel_diagnostics.models.enums import (
    ActionCategory,
    ActionPriority,
    CaptureType,
    IndustrySegment,
    MediaChannel,
    StageStatus,
)
from funnel_diagnostics.models.schemas import (
    ActionItem,
    DerivedMetrics,
    DiagnosticContext,
    DiagnosticItem,
    FunnelSnapshot,
    MatrixRule,
    StageEvaluation,
    StageImpact,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Playbook Constants
# =============================================================================

# Reference CPL used to estimate the lead volume a spend level should produce
REFERENCE_CPL: float = 150.0
LOW_LEAD_VOLUME_RATIO: float = 0.5
SPEED_TO_LEAD_MINUTES: float = 5.0
MIN_CONNECT_RATE: float = 30.0

_PRIORITY_RANK = {
    ActionPriority.HIGH: 0,
    ActionPriority.MEDIUM: 1,
    ActionPriority.LOW: 2,
}


@dataclass
class ActionRuleInput:
    """Everything a playbook rule may inspect."""
    snapshot: FunnelSnapshot
    derived: DerivedMetrics
    impacts: List[StageImpact]
    context: DiagnosticContext

    def impact_for(self, stage_id: str) -> Optional[StageImpact]:
        for impact in self.impacts:
            if impact.stageId == stage_id:
                return impact
        return None

    def is_eligible_critical(self, stage_id: str) -> bool:
        impact = self.impact_for(stage_id)
        return (
            impact is not None
            and impact.eligibility.eligible
            and impact.status == StageStatus.CRITICAL
        )


ActionRule = Callable[[ActionRuleInput], Optional[ActionItem]]


# =============================================================================
# Media Rules (top of funnel)
# =============================================================================


def linkedin_lead_quality(data: ActionRuleInput) -> Optional[ActionItem]:
    """Cheap LinkedIn leads that do not qualify: a lead quality problem."""
    if data.context.channel != MediaChannel.LINKEDIN_ADS:
        return None
    if not data.derived.cpl or data.derived.cpl >= REFERENCE_CPL:
        return None
    if not data.is_eligible_critical("lead_to_mql"):
        return None
    return ActionItem(
        id="media_linkedin_quality",
        category=ActionCategory.MEDIA,
        stage="Lead → MQL",
        priority=ActionPriority.HIGH,
        title="Move to a landing page or add qualification",
        nextStep="Add qualifying questions to the lead form or use a landing page with filters",
        metricToWatch="Lead → MQL (%)",
    )


def consulting_native_lead(data: ActionRuleInput) -> Optional[ActionItem]:
    if data.context.segment != IndustrySegment.CONSULTING:
        return None
    if data.context.captureType != CaptureType.NATIVE_LEAD:
        return None
    return ActionItem(
        id="media_consulting_landing_page",
        category=ActionCategory.MEDIA,
        stage="Top of funnel",
        priority=ActionPriority.HIGH,
        title="Prioritise a landing page with social proof",
        nextStep="Build a landing page with case studies, testimonials and a qualification filter",
        metricToWatch="Lead → MQL (%)",
    )


def low_lead_volume(data: ActionRuleInput) -> Optional[ActionItem]:
    """Spend is present but leads are under half of what the reference CPL predicts."""
    spend = data.snapshot.spend
    leads = data.snapshot.leads
    if not spend or not leads:
        return None
    expected_leads = spend / REFERENCE_CPL
    if leads >= expected_leads * LOW_LEAD_VOLUME_RATIO:
        return None
    return ActionItem(
        id="media_low_leads",
        category=ActionCategory.MEDIA,
        stage="Top of funnel",
        priority=ActionPriority.HIGH,
        title="Review targeting and creatives",
        nextStep="Audit campaigns: audience targeting, ad copy and images",
        metricToWatch="CPL",
    )


def meta_nurturing(data: ActionRuleInput) -> Optional[ActionItem]:
    if data.context.channel != MediaChannel.META_ADS:
        return None
    impact = data.impact_for("lead_to_mql")
    if impact is None or impact.status == StageStatus.OK:
        return None
    return ActionItem(
        id="media_meta_nurturing",
        category=ActionCategory.MEDIA,
        stage="Lead → MQL",
        priority=ActionPriority.MEDIUM,
        title="Set up a nurturing flow",
        nextStep="Create an email or messaging sequence for Meta Ads leads",
        metricToWatch="Lead → MQL (%)",
    )


# =============================================================================
# Process Rules (inside sales)
# =============================================================================


def slow_first_touch(data: ActionRuleInput) -> Optional[ActionItem]:
    ttft = data.snapshot.timeToFirstTouch
    if ttft is None or ttft <= SPEED_TO_LEAD_MINUTES:
        return None
    return ActionItem(
        id="process_first_touch",
        category=ActionCategory.PROCESS,
        stage="Lead → MQL",
        priority=ActionPriority.HIGH,
        title="Bring the first-touch SLA under 5 minutes",
        nextStep="Set up automatic lead routing and new-lead alerts",
        metricToWatch="Time to first touch (min)",
    )


def chat_not_integrated(data: ActionRuleInput) -> Optional[ActionItem]:
    # Only an explicit False fires; unknown is a missing-data question instead
    if data.context.crmChatIntegrated is not False:
        return None
    return ActionItem(
        id="process_chat_integration",
        category=ActionCategory.PROCESS,
        stage="Lead → MQL",
        priority=ActionPriority.HIGH,
        title="Integrate the chat channel with the CRM",
        nextStep="Connect chat to the CRM and standardise follow-up templates",
        metricToWatch="Connect rate (%)",
    )


def mql_qualification(data: ActionRuleInput) -> Optional[ActionItem]:
    if not data.is_eligible_critical("mql_to_sql"):
        return None
    return ActionItem(
        id="process_qualification",
        category=ActionCategory.PROCESS,
        stage="MQL → SQL",
        priority=ActionPriority.HIGH,
        title="Review MQL → SQL qualification criteria",
        nextStep="Align marketing and sales on the MQL and SQL definitions",
        metricToWatch="MQL → SQL (%)",
    )


def opportunity_creation(data: ActionRuleInput) -> Optional[ActionItem]:
    if not data.is_eligible_critical("sql_to_opportunity"):
        return None
    return ActionItem(
        id="process_opportunity_creation",
        category=ActionCategory.PROCESS,
        stage="SQL → Opportunity",
        priority=ActionPriority.HIGH,
        title="Improve SQL follow-up and meeting booking",
        nextStep="Review the follow-up cadence and the value proposition used to book meetings",
        metricToWatch="SQL → Opportunity (%)",
    )


def closing_process(data: ActionRuleInput) -> Optional[ActionItem]:
    if not data.is_eligible_critical("opportunity_to_won"):
        return None
    return ActionItem(
        id="process_closing",
        category=ActionCategory.PROCESS,
        stage="Opportunity → Won",
        priority=ActionPriority.HIGH,
        title="Optimise the closing process",
        nextStep="Analyse objections, the proposal and the cycle. Cut approval steps.",
        metricToWatch="Opportunity → Won (%)",
    )


def low_connect_rate(data: ActionRuleInput) -> Optional[ActionItem]:
    connect_rate = data.snapshot.connectRate
    if connect_rate is None or connect_rate >= MIN_CONNECT_RATE:
        return None
    return ActionItem(
        id="process_connect",
        category=ActionCategory.PROCESS,
        stage="Lead → MQL",
        priority=ActionPriority.MEDIUM,
        title="Raise the connect rate",
        nextStep="Test other call times, channels (call plus messaging) and cadences",
        metricToWatch="Connect rate (%)",
    )


# Evaluation order matters: it is the tie-break among equal priorities
PLAYBOOK_RULES: List[ActionRule] = [
    linkedin_lead_quality,
    consulting_native_lead,
    low_lead_volume,
    meta_nurturing,
    slow_first_touch,
    chat_not_integrated,
    mql_qualification,
    opportunity_creation,
    closing_process,
    low_connect_rate,
]


# =============================================================================
# Action Generation
# =============================================================================


def generate_actions(
    snapshot: FunnelSnapshot,
    derived: DerivedMetrics,
    impacts: List[StageImpact],
    context: Optional[DiagnosticContext] = None,
    settings: Optional[Settings] = None,
    rules: Optional[Sequence[ActionRule]] = None
) -> List[ActionItem]:
    """
    Run every playbook rule and return the prioritised, capped action list.

    Args:
        snapshot: Raw funnel counters
        derived: Derived metrics for the same snapshot
        impacts: Stage impacts in declaration order
        context: Channel, segment and integration flags
        settings: Settings providing max_actions
        rules: Rule list to run (defaults to PLAYBOOK_RULES)

    Returns:
        At most settings.max_actions ActionItems, high priority first
    """
    if settings is None:
        settings = get_settings()
    if rules is None:
        rules = PLAYBOOK_RULES

    data = ActionRuleInput(
        snapshot=snapshot,
        derived=derived,
        impacts=impacts,
        context=context or DiagnosticContext(),
    )

    actions: List[ActionItem] = []
    for rule in rules:
        action = rule(data)
        if action is not None:
            actions.append(action)

    fired = len(actions)
    actions.sort(key=lambda a: _PRIORITY_RANK[a.priority])
    actions = actions[:settings.max_actions]

    logger.debug(f"Playbook: {fired} rules fired, returning {len(actions)} actions")
    return actions


def generate_missing_data_questions(
    snapshot: FunnelSnapshot,
    context: Optional[DiagnosticContext] = None,
    settings: Optional[Settings] = None
) -> List[str]:
    """
    Clarifying questions for optional inputs that were not provided.

    Checked in fixed order: time to first touch, CRM chat integration, connect
    rate, media spend. No randomisation.
    """
    if settings is None:
        settings = get_settings()
    context = context or DiagnosticContext()

    questions: List[str] = []

    if snapshot.timeToFirstTouch is None:
        questions.append("What is the average time to first touch, in minutes?")
    if context.crmChatIntegrated is None:
        questions.append("Is the chat channel integrated with the CRM?")
    if snapshot.connectRate is None:
        questions.append("What is the connect rate on contact attempts?")
    if not snapshot.spend:
        questions.append("How much was spent on paid media in the period?")

    return questions[:settings.max_missing_data_questions]


def generate_daily_checklist(
    actions: List[ActionItem],
    confidence_score: int,
    settings: Optional[Settings] = None
) -> List[ActionItem]:
    """
    Top high-priority actions for today.

    Low-confidence data does not drive a concrete daily list: below
    settings.checklist_min_confidence the checklist is empty.
    """
    if settings is None:
        settings = get_settings()

    if confidence_score < settings.checklist_min_confidence:
        return []

    high_priority = [a for a in actions if a.priority == ActionPriority.HIGH]
    return high_priority[:settings.checklist_max_items]


# =============================================================================
# Diagnostic Matrix Rules
# =============================================================================

DEFAULT_MATRIX_RULES: List[MatrixRule] = [
    # Lead → MQL
    MatrixRule(stage="lead_to_mql", situation="Ads do not catch attention", metricLabel="Low CTR",
               metricKey="ctr", action="Test new creatives, headlines and CTAs. Review targeting.", sortOrder=1),
    MatrixRule(stage="lead_to_mql", situation="Cost per click too high", metricLabel="High CPC/CPM",
               metricKey="cpc", action="Tune bids, test other audiences, improve quality score.", sortOrder=2),
    MatrixRule(stage="lead_to_mql", situation="Landing page does not convert", metricLabel="Low click → lead rate",
               metricKey="clickToLeadRate",
               action="Improve the landing page: headline, shorter form, social proof, speed.", sortOrder=3),
    MatrixRule(stage="lead_to_mql", situation="Leads too expensive", metricLabel="High CPL",
               metricKey="cpl", action="Review the offer, test a lead magnet, improve page conversion.", sortOrder=4),
    MatrixRule(stage="lead_to_mql", situation="Low quality leads", metricLabel="High invalid lead rate",
               metricKey="invalidLeadRate",
               action="Add qualifying fields, use a captcha, review the traffic source.", sortOrder=5),
    # MQL → SQL
    MatrixRule(stage="mql_to_sql", situation="Slow first contact", metricLabel="High time to first touch",
               metricKey="timeToFirstTouch",
               action="Automate lead routing, add real-time alerts, SLA under 5 minutes.", sortOrder=10),
    MatrixRule(stage="mql_to_sql", situation="Few leads contacted within 24h", metricLabel="Low 24h contact rate",
               metricKey="contactRate24h", action="Review cadence, routing and lead prioritisation.", sortOrder=11),
    MatrixRule(stage="mql_to_sql", situation="Leads do not pick up or reply", metricLabel="Low connect rate",
               metricKey="connectRate", action="Test call times, channels and personalisation.", sortOrder=12),
    MatrixRule(stage="mql_to_sql", situation="Sales rejects many MQLs", metricLabel="Low SAL rate",
               metricKey="salRate", action="Align qualification criteria between marketing and sales.", sortOrder=13),
    MatrixRule(stage="mql_to_sql", situation="MQLs wait too long", metricLabel="High MQL aging",
               metricKey="mqlAgingDays", action="Create SLAs, aging alerts and a weekly pipeline review.", sortOrder=14),
    # SQL → Opportunity
    MatrixRule(stage="sql_to_opportunity", situation="SQLs do not become opportunities",
               metricLabel="Low SQL → opportunity rate", metricKey="sqlToOpportunity",
               action="Review the approach, follow-up cadence and value proposition.", sortOrder=20),
    MatrixRule(stage="sql_to_opportunity", situation="Low reply rate", metricLabel="Low response rate",
               metricKey="responseRate", action="Personalise messages, test other channels and times.", sortOrder=21),
    MatrixRule(stage="sql_to_opportunity", situation="Too few contact attempts", metricLabel="Few attempts per SQL",
               metricKey="attemptsPerSql", action="Increase cadence, use several channels, persist.", sortOrder=22),
    MatrixRule(stage="sql_to_opportunity", situation="Slow to schedule", metricLabel="High time to schedule",
               metricKey="timeToScheduleDays", action="Offer immediate slots, use a scheduling tool.", sortOrder=23),
    # Opportunity → Won
    MatrixRule(stage="opportunity_to_won", situation="Low close rate", metricLabel="Low win rate",
               metricKey="opportunityToWon", action="Review the pitch, train the team, study common objections.",
               sortOrder=30),
    MatrixRule(stage="opportunity_to_won", situation="Sales cycle too long", metricLabel="High sales cycle",
               metricKey="salesCycleDays", action="Create urgency, simplify the proposal, remove friction.",
               sortOrder=31),
    MatrixRule(stage="opportunity_to_won", situation="Discounts too deep", metricLabel="High discount rate",
               metricKey="discountRate", action="Train negotiation, set discount limits, justify value.",
               sortOrder=32),
]

# Rules returned for a critical stage with no specific failing metric
GENERIC_RULE_COUNT: int = 2


def get_matching_rules(
    stage_id: str,
    failing_metric_keys: Sequence[str],
    rules: Optional[Sequence[MatrixRule]] = None
) -> List[DiagnosticItem]:
    """
    Matrix rules that apply to a stage.

    With failing metrics: the stage's rules for those metrics. Without: the
    stage's first two rules as common issues.
    """
    if rules is None:
        rules = DEFAULT_MATRIX_RULES

    stage_rules = sorted((r for r in rules if r.stage == stage_id), key=lambda r: r.sortOrder)

    if not failing_metric_keys:
        selected = stage_rules[:GENERIC_RULE_COUNT]
    else:
        selected = [r for r in stage_rules if r.metricKey in failing_metric_keys]

    return [
        DiagnosticItem(
            stageId=stage_id,
            situation=r.situation,
            metricLabel=r.metricLabel,
            action=r.action,
        )
        for r in selected
    ]


def build_stage_diagnostics(
    evaluations: List[StageEvaluation],
    rules: Optional[Sequence[MatrixRule]] = None
) -> List[DiagnosticItem]:
    """Matrix diagnostics for every critical stage, in stage order."""
    diagnostics: List[DiagnosticItem] = []
    for evaluation in evaluations:
        if evaluation.status != StageStatus.CRITICAL:
            continue
        diagnostics.extend(get_matching_rules(evaluation.stageId, evaluation.failingMetrics, rules))
    return diagnostics


__all__ = [
    "ActionRuleInput",
    "ActionRule",
    "PLAYBOOK_RULES",
    "generate_actions",
    "generate_missing_data_questions",
    "generate_daily_checklist",
    "DEFAULT_MATRIX_RULES",
    "get_matching_rules",
    "build_stage_diagnostics",
]
