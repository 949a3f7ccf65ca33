from __future__ import annotations

from typing import Dict, List, Tuple

from src.schemas.performance import Playbook

# Declaration order is the tie-break order for equally relevant playbooks.
PLAYBOOK_CATALOG: Tuple[Playbook, ...] = (
    Playbook(
        id="pipeline-generation",
        title="Pipeline Generation Sprint",
        metric_keys=["sourced_opps", "pipeline_created", "qualified_leads", "stage2_opps"],
        steps=[
            "Block two focused prospecting blocks daily and prioritize trigger accounts.",
            "Run a refreshed outbound sequence to the top 25-50 target accounts.",
            "Advance qualified opportunities by confirming pain, impact, and next steps.",
        ],
    ),
    Playbook(
        id="connection-to-meetings",
        title="Connection to Meeting Conversion",
        metric_keys=["call_connects", "emails_sent", "social_touches", "meetings"],
        steps=[
            "Use a 3x3 cadence across calls, email, and social in 3 days.",
            "Personalize first-line messaging and include a single clear CTA.",
            "End live conversations with a calendar ask and two proposed slots.",
        ],
    ),
    Playbook(
        id="discovery-quality",
        title="Discovery Quality & Talk Time",
        metric_keys=["talk_time_minutes", "meetings"],
        steps=[
            "Run a structured discovery agenda with open-ended questions.",
            "Summarize back and confirm value before advancing stages.",
            "Stack calls and reduce gaps to increase weekly talk time.",
        ],
    ),
    Playbook(
        id="follow-through",
        title="Follow-through & Responsiveness",
        metric_keys=["follow_ups", "response_time"],
        steps=[
            "Set response SLAs and protect two inbox blocks per day.",
            "Create next steps in CRM before ending every call.",
            "Use task reminders and templates for fast follow-ups.",
        ],
    ),
    Playbook(
        id="demo-to-win",
        title="Demo to Win Momentum",
        metric_keys=["demos_completed", "win_rate"],
        steps=[
            "Qualify right-fit prospects and align on success criteria early.",
            "Finish demos with mutual action plans and timelines.",
            "Run weekly deal reviews to identify risks and unblock decisions.",
        ],
    ),
)

SKILL_CATEGORY_METRICS: Dict[str, List[str]] = {
    "Conversationalist": ["talk_time_minutes", "conversations"],
    "Call Conqueror": ["call_connects", "meetings", "discovery_calls"],
    "Email Warrior": ["emails_sent", "social_touches"],
    "Pipeline Guru": [
        "sourced_opps",
        "stage2_opps",
        "pipeline_created",
        "pipeline_advanced",
        "qualified_leads",
    ],
    "Task Master": ["follow_ups", "demos_completed", "response_time", "sales_cycle_days", "win_rate"],
    "Scorecard Master": [
        "scorecard_100_percent",
        "scorecard_100_percent_streak",
        "key_metric_100_percent",
        "key_metric_100_percent_streak",
        "scorecards_completed",
    ],
}

METRIC_SKILL_CATEGORY: Dict[str, str] = {
    metric_key: category
    for category, metric_keys in SKILL_CATEGORY_METRICS.items()
    for metric_key in metric_keys
}

METRIC_GUIDANCE: Dict[str, Dict[str, object]] = {
    "sourced_opps": {
        "title": "Sourced Opportunities",
        "tips": [
            "Block daily prospecting time and protect it like a meeting.",
            "Refresh target account lists weekly using intent signals and recent activity.",
            "Use multi-threading to uncover champions, referrals, and adjacent teams.",
        ],
    },
    "call_connects": {
        "title": "Call Connects",
        "tips": [
            "Call during higher-connect windows (8-10am and 4-6pm local time).",
            "Run a 3x3 cadence: 3 call attempts, 3 channels, over 3 days.",
            "Pair each call with a short voicemail and a same-day follow-up email.",
        ],
    },
    "meetings": {
        "title": "Meetings",
        "tips": [
            "Lead with a crisp problem statement and invite the right stakeholders.",
            "Qualify for next steps before asking for time.",
            "End every call with a clear calendar ask and two proposed slots.",
        ],
    },
    "talk_time_minutes": {
        "title": "Talk Time Minutes",
        "tips": [
            "Use a structured discovery agenda to keep conversations moving.",
            "Ask open-ended questions and summarize back to confirm value.",
            "Stack calls and avoid long gaps between sessions.",
        ],
    },
    "stage2_opps": {
        "title": "Stage 2 Opportunities",
        "tips": [
            "Confirm the pain, impact, and buying process before advancing stages.",
            "Map stakeholders and secure a mutual action plan.",
            "Review deal health weekly and set specific next milestones.",
        ],
    },
    "pipeline_created": {
        "title": "Pipeline Created",
        "tips": [
            "Target accounts with clear triggers (funding, hiring, new initiatives).",
            "Expand coverage by adding adjacent roles into outreach.",
            "Re-run outbound sequences to the top 50 accounts each week.",
        ],
    },
    "qualified_leads": {
        "title": "Qualified Leads",
        "tips": [
            "Tighten ICP qualification and disqualify early when needed.",
            "Validate budget, authority, need, and timeline quickly.",
            "Use win/loss notes to refine lead quality criteria.",
        ],
    },
    "emails_sent": {
        "title": "Emails Sent",
        "tips": [
            "Personalize the first line and include a clear CTA.",
            "Batch emails in focused blocks to maintain quality.",
            "Mix value nuggets with questions to drive replies.",
        ],
    },
    "social_touches": {
        "title": "Social Touches",
        "tips": [
            "Engage with prospects' posts before sending a connection request.",
            "Use short, relevant comments to build familiarity.",
            "Follow up with insights tied to their recent activity.",
        ],
    },
    "response_time": {
        "title": "Response Time",
        "tips": [
            "Set a response SLA (e.g., under 2 hours during workdays).",
            "Use templates for common replies to respond faster.",
            "Batch inbox time in the morning and late afternoon.",
        ],
    },
    "follow_ups": {
        "title": "Follow Ups",
        "tips": [
            "Build a consistent follow-up cadence for every new lead.",
            "Schedule next steps during the call to reduce drop-offs.",
            "Use task reminders to avoid missed follow-ups.",
        ],
    },
    "demos_completed": {
        "title": "Demos Completed",
        "tips": [
            "Qualify right-fit prospects before demoing.",
            "Set a clear agenda and define success metrics up front.",
            "End with a mutual action plan and timeline.",
        ],
    },
    "win_rate": {
        "title": "Win Rate",
        "tips": [
            "Run weekly deal reviews to identify risk early.",
            "Focus on multi-threading to reduce single-thread risk.",
            "Capture and re-use winning talk tracks.",
        ],
    },
}
