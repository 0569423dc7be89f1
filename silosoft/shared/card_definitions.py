"""
Static card catalog for Silosoft.

Feature requirements are per-role totals of resource value
(entry = 1, junior = 2, senior = 3).
"""
import json
from pathlib import Path

# Format: (id, name, description, (dev, pm, ux), points)
FEATURES = [
    ("feature-01", "Single Sign-On", "Enable SSO for enterprise tenants via OpenID Connect.", (3, 2, 0), 5),
    ("feature-02", "Presence Sync", "Reflect real-time presence status across clients.", (3, 2, 1), 8),
    ("feature-03", "Compose Pane Add-in", "Lightweight panel for drafting assisted replies.", (3, 0, 1), 3),
    ("feature-04", "Document Version Diff", "Side-by-side diff for major document revisions.", (4, 2, 1), 8),
    ("feature-05", "Offline Sync Optimization", "Reduce sync conflicts with smarter chunking.", (4, 1, 0), 5),
    ("feature-06", "Live Reactions", "Animated reaction stream with accessibility labels.", (3, 1, 2), 8),
    ("feature-07", "Cost Anomaly Alerting", "Detect sudden spend spikes and push notifications.", (3, 2, 0), 5),
    ("feature-08", "Dark Theme Polish", "Improve contrast and theming tokens for night mode.", (2, 0, 2), 3),
    ("feature-09", "Unified Search Autosuggest", "Cross-product query suggestions with fuzzy matching.", (4, 2, 1), 8),
    ("feature-10", "Cold Start Reduction", "Warm pooling strategy for premium functions.", (5, 1, 0), 5),
    ("feature-11", "Channel Archive Restore", "Self-service restore flow for archived channels.", (3, 2, 0), 5),
    ("feature-12", "Device Compliance Badge", "Visual indicator of device health in the portal.", (2, 1, 1), 3),
    ("feature-13", "Query Snippet Library", "Reusable query snippets with tagging.", (3, 2, 0), 5),
    ("feature-14", "Focus Time Blocks", "Auto-insert focus events based on meeting load.", (3, 2, 1), 8),
    ("feature-15", "Collections Sharing", "Collaborative sharing of tab collections.", (3, 1, 1), 5),
    ("feature-16", "Sprint Burnup Chart", "Add a burnup visualization to dashboards.", (2, 2, 0), 3),
    ("feature-17", "Adaptive Background Blur", "Dynamic blur based on movement and lighting.", (4, 1, 2), 8),
    ("feature-18", "Inline Image OCR", "Extract text metadata for search indexing.", (4, 2, 0), 5),
    ("feature-19", "Keyboard Shortcuts", "Global navigation shortcuts for power users.", (2, 1, 2), 5),
    ("feature-20", "Poll Template Library", "Pre-built poll templates for quick engagement.", (2, 2, 0), 3),
]

# Format: (role, level, copies)
RESOURCES = [
    ("dev", "entry", 4),
    ("dev", "junior", 4),
    ("dev", "senior", 3),
    ("pm", "entry", 3),
    ("pm", "junior", 3),
    ("pm", "senior", 2),
    ("ux", "entry", 3),
    ("ux", "junior", 3),
    ("ux", "senior", 2),
]

# Format: (id, type, name, description, effect)
EVENTS = [
    ("event-layoff-1", "layoff", "Layoffs", "Budget cuts hit the team.",
     {"action": "random_discard", "count": 1}),
    ("event-layoff-2", "layoff", "Department Downsizing", "A deeper round of cuts.",
     {"action": "random_discard", "count": 2}),
    ("event-pto-1", "pto", "Vacation Season", "A teammate takes a well-earned break.",
     {"action": "resource_lock", "duration": 1, "count": 1}),
    ("event-pto-2", "pto", "Team Offsite", "Two teammates are away for a round.",
     {"action": "resource_lock", "duration": 1, "count": 2}),
    ("event-plm-1", "plm", "Parental Leave", "A teammate goes on parental leave.",
     {"action": "resource_lock", "duration": 2, "count": 1}),
    ("event-competition-1", "competition", "Competitor Launch", "Ship before the competition does.",
     {"action": "deadline_pressure", "rounds": 2, "failure_penalty": 2, "success_bonus": 0}),
    ("event-competition-2", "competition", "Scope Creep", "Every open feature needs more engineering.",
     {"action": "role_escalation", "role": "dev", "additional": 1}),
    ("event-bonus-1", "bonus", "Hiring Spree", "New hires join the team.",
     {"action": "draw_resources", "count": 2}),
    ("event-bonus-2", "bonus", "Intern Cohort", "Summer interns arrive.",
     {"action": "draw_resources", "count": 1}),
    ("event-reorg-1", "reorg", "Reorganization", "Teams are reshuffled across the org.",
     {"action": "reassign_resources"}),
    ("event-contractor-1", "contractor", "Contract Developer", "A senior contractor onboards.",
     {"action": "add_wildcard", "role": "dev", "level": "senior", "duration": 1}),
    ("event-contractor-2", "contractor", "Design Agency", "An agency designer helps out.",
     {"action": "add_wildcard", "role": "ux", "level": "junior", "duration": 1}),
]


def _build_definitions() -> dict:
    """Expand the compact tables into the catalog dictionary format."""
    features = [
        {
            "id": card_id,
            "name": name,
            "description": description,
            "requirements": {"dev": dev, "pm": pm, "ux": ux},
            "points": points,
        }
        for card_id, name, description, (dev, pm, ux), points in FEATURES
    ]

    resources = []
    for role, level, copies in RESOURCES:
        for copy in range(1, copies + 1):
            resources.append({
                "id": f"resource-{role}-{level}-{copy}",
                "role": role,
                "level": level,
            })

    events = [
        {
            "id": card_id,
            "type": event_type,
            "name": name,
            "description": description,
            "effect": dict(effect),
        }
        for card_id, event_type, name, description, effect in EVENTS
    ]

    return {
        "version": "1.0",
        "cards": {
            "features": features,
            "resources": resources,
            "events": events,
        },
    }


CARD_DEFINITIONS = _build_definitions()


def load_card_definitions(path: str | Path | None = None) -> dict:
    """
    Load card definitions.

    Args:
        path: Optional JSON file in the catalog format; the built-in catalog
            is used when omitted.

    Returns:
        Catalog dictionary with "cards" -> "features"/"resources"/"events" lists
    """
    if path is None:
        return _build_definitions()

    with open(path, "r", encoding="utf-8") as fh:
        return json.load(fh)
