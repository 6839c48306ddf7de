"""{{placeholder}} substitution for job template subjects and descriptions."""

import re
from datetime import date
from typing import Any, Dict, Optional

_TOKEN = re.compile(r"\{\{\s*([A-Za-z][A-Za-z0-9_]*)\s*\}\}")
_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def _normalize(name: str) -> str:
    # siteName -> site_name
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def _format(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def render_placeholders(text: Optional[str], context: Dict[str, Any]) -> str:
    """
    Replace {{token}} occurrences with values from `context`.

    Tokens may be snake_case or camelCase and may have whitespace inside
    the braces. Tokens not present in `context` are left verbatim.

    Example:
        >>> render_placeholders("Service {{ siteName }}", {"site_name": "Plant A"})
        'Service Plant A'
    """
    if not text:
        return ""

    def replace(match: "re.Match[str]") -> str:
        key = _normalize(match.group(1))
        if key not in context:
            return match.group(0)
        return _format(context[key])

    return _TOKEN.sub(replace, text)


def build_placeholder_context(
    template,
    schedule,
    due_date: date,
    target_completion_date: date,
) -> Dict[str, Any]:
    """Collect placeholder values for one firing of `schedule`."""
    return {
        "site_name": template.site.name if template.site else None,
        "site_owner_company_name": (
            template.site_owner_company.name if template.site_owner_company else None
        ),
        "assigned_company_name": (
            template.assigned_company.name if template.assigned_company else None
        ),
        "assigned_contact_name": (
            template.assigned_contact.name if template.assigned_contact else None
        ),
        "template_name": template.name,
        "schedule_name": schedule.name,
        "due_date": due_date,
        "target_completion_date": target_completion_date,
        "priority": template.priority,
    }
