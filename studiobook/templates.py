# studiobook/templates.py
"""
Reminder/status message templates: built-in defaults, stored overrides and
the fallback chain that picks one for a (kind, category) pair.
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, List, NamedTuple, Optional

from .db import LocalStore
from .models import TemplateContent, TemplateKind
from .remote import RemoteNotConfigured, RemoteStore

log = logging.getLogger("uvicorn.error")

GLOBAL = "GLOBAL"
STATUS_SET_KINDS = (TemplateKind.JOB_STATUS, TemplateKind.PAYMENT_STATUS)

# ──────────────────────────────────────────────────────────────────────────────
# Built-in defaults
# ──────────────────────────────────────────────────────────────────────────────
DEFAULT_SINGLE_REMINDER = """Hi {customer_name},

This is a friendly reminder from *Aura Knot Photography* regarding your pending payment.

{service_icon} Service: {service_type}
📅 Date: {date}
💰 Total Amount: Rs.{total_amount}
✅ Amount Paid: Rs.{amount_paid}
⏳ *Balance Due: Rs.{balance}*

Please complete the payment at your earliest convenience.

Thank you for choosing us! 🙏

- Aura Knot Photography"""

DEFAULT_CONSOLIDATED_REMINDER = """Hi {customer_name},

This is a friendly reminder from *Aura Knot Photography* regarding your pending payments.

📝 *Pending Services ({count}):*
{jobs_list}
━━━━━━━━━━━━━━━
💵 *TOTAL BALANCE DUE: Rs.{total_balance}*

Please complete the payment at your earliest convenience.

Thank you for choosing us! 🙏

- Aura Knot Photography"""

DEFAULT_JOB_STATUS_TEMPLATES: Dict[str, str] = {
    "PENDING": """Hi {customer_name},

Your {service_type} job has been *received* and is currently *PENDING*.

📋 *Job Details:*
{service_icon} Service: {service_type}
📅 Date: {date}

We will start working on it soon and keep you updated.

Thank you for choosing *Aura Knot Photography*! 🙏""",
    "IN_PROGRESS": """Hi {customer_name},

Great news! Your {service_type} is now *IN PROGRESS*.

📋 *Job Details:*
{service_icon} Service: {service_type}
📅 Date: {date}

Our team is working on it. We'll notify you once completed.

Thank you for your patience! 🙏

- Aura Knot Photography""",
    "COMPLETED": """Hi {customer_name},

🎉 Your {service_type} is now *COMPLETED*!

📋 *Job Details:*
{service_icon} Service: {service_type}
📅 Date: {date}

{balance_message}

Thank you for choosing *Aura Knot Photography*! 🙏

We hope you love the results! ❤️""",
}

DEFAULT_PAYMENT_STATUS_TEMPLATES: Dict[str, str] = {
    "PENDING": """Hi {customer_name},

This is a reminder about your *PENDING PAYMENT*.

📋 *Payment Details:*
{service_icon} Service: {service_type}
📅 Date: {date}
💰 Total Amount: Rs.{total_amount}
⏳ *Balance Due: Rs.{balance}*

Please complete the payment at your earliest convenience.

Thank you! 🙏

- Aura Knot Photography""",
    "PARTIAL": """Hi {customer_name},

Thank you for your partial payment! 🙏

📋 *Payment Details:*
{service_icon} Service: {service_type}
📅 Date: {date}
💰 Total Amount: Rs.{total_amount}
✅ Amount Paid: Rs.{amount_paid}
⏳ *Remaining Balance: Rs.{balance}*

Please clear the remaining balance when convenient.

Thank you for choosing *Aura Knot Photography*!""",
    "COMPLETED": """Hi {customer_name},

✅ *PAYMENT RECEIVED*

Thank you for completing your payment!

📋 *Payment Details:*
{service_icon} Service: {service_type}
📅 Date: {date}
💰 Total Amount: Rs.{total_amount}
✅ *Fully Paid*

We appreciate your trust in *Aura Knot Photography*! 🙏

Thank you for choosing us! ❤️""",
}

BUILTIN_DEFAULTS: Dict[TemplateKind, TemplateContent] = {
    TemplateKind.SINGLE: DEFAULT_SINGLE_REMINDER,
    TemplateKind.CONSOLIDATED: DEFAULT_CONSOLIDATED_REMINDER,
    TemplateKind.JOB_STATUS: DEFAULT_JOB_STATUS_TEMPLATES,
    TemplateKind.PAYMENT_STATUS: DEFAULT_PAYMENT_STATUS_TEMPLATES,
}


def _key(kind: TemplateKind, category: Optional[str]) -> str:
    return f"templates/{kind.value}/{category or GLOBAL}"


# ──────────────────────────────────────────────────────────────────────────────
# Override storage (local first, Supabase mirror)
# ──────────────────────────────────────────────────────────────────────────────
class TemplateStore:
    def __init__(self, local: LocalStore, remote: Optional[RemoteStore] = None) -> None:
        self.local = local
        self.remote = remote

    def get_override(self, kind: TemplateKind, category: Optional[str]) -> Optional[TemplateContent]:
        content = self.local.get(_key(kind, category))
        if content is not None or not self.remote:
            return content
        try:
            return self.remote.get_template(kind, category)
        except Exception as e:
            log.warning(f"Supabase template lookup failed ({kind.value}/{category or GLOBAL}): {e}")
            return None

    def set_override(self, kind: TemplateKind, category: Optional[str], content: TemplateContent) -> None:
        self.local.set(_key(kind, category), content)
        if self.remote:
            try:
                self.remote.upsert_template(kind, category, content)
            except Exception as e:
                log.error(f"Supabase template upsert failed ({kind.value}/{category or GLOBAL}): {e}")

    def delete_override(self, kind: TemplateKind, category: Optional[str]) -> bool:
        removed = self.local.remove(_key(kind, category))
        if self.remote:
            try:
                self.remote.delete_template(kind, category)
            except Exception as e:
                log.error(f"Supabase template delete failed ({kind.value}/{category or GLOBAL}): {e}")
        return removed

    def list_overrides(self, kind: TemplateKind) -> Dict[str, TemplateContent]:
        """All overrides of a kind keyed by scope (category or GLOBAL)."""
        out: Dict[str, TemplateContent] = {}
        if self.remote:
            try:
                out.update(self.remote.list_templates(kind))
            except Exception as e:
                log.warning(f"Supabase template list failed ({kind.value}): {e}")
        prefix = f"templates/{kind.value}/"
        for key in self.local.keys(prefix):
            out[key[len(prefix):]] = self.local.get(key)
        return out

    def push(self) -> int:
        """Upsert every local override into Supabase."""
        if not self.remote:
            raise RemoteNotConfigured("Supabase not configured")
        rows = []
        for key in self.local.keys("templates/"):
            _, kind, scope = key.split("/", 2)
            rows.append({
                "kind": kind,
                "category": None if scope == GLOBAL else scope,
                "content": self.local.get(key),
            })
        count = self.remote.upsert_templates(rows)
        log.info(f"pushed {count} templates to Supabase")
        return count


# ──────────────────────────────────────────────────────────────────────────────
# Resolution
# ──────────────────────────────────────────────────────────────────────────────
class Resolved(NamedTuple):
    source: str
    content: TemplateContent


Strategy = Callable[[TemplateKind, Optional[str]], Optional[Resolved]]


class TemplateResolver:
    """
    Picks a template by walking an ordered list of strategies; the first one
    that returns something wins. Default order: per-category override, global
    override, built-in default.
    """

    def __init__(self, store: TemplateStore, strategies: Optional[List[Strategy]] = None) -> None:
        self.store = store
        self.strategies = strategies or [self.category_override, self.global_override, self.builtin_default]

    def category_override(self, kind: TemplateKind, category: Optional[str]) -> Optional[Resolved]:
        if not category:
            return None
        content = self.store.get_override(kind, category)
        return Resolved(category, content) if content is not None else None

    def global_override(self, kind: TemplateKind, category: Optional[str]) -> Optional[Resolved]:
        content = self.store.get_override(kind, None)
        return Resolved(GLOBAL, content) if content is not None else None

    def builtin_default(self, kind: TemplateKind, category: Optional[str]) -> Optional[Resolved]:
        return Resolved("default", BUILTIN_DEFAULTS[kind])

    def resolve(self, kind: TemplateKind, category: Optional[str] = None) -> Resolved:
        for strategy in self.strategies:
            found = strategy(kind, category)
            if found is not None:
                if kind in STATUS_SET_KINDS:
                    found = Resolved(found.source, self._fill_status_set(kind, found.content))
                return found
        return Resolved("default", BUILTIN_DEFAULTS[kind])

    def _fill_status_set(self, kind: TemplateKind, content: TemplateContent) -> Dict[str, str]:
        # missing statuses fall back to the built-in text for that status only
        merged = dict(BUILTIN_DEFAULTS[kind])
        if isinstance(content, dict):
            merged.update({k: v for k, v in content.items() if isinstance(v, str)})
        else:
            log.warning(f"ignoring malformed {kind.value} template (expected a mapping)")
        return merged

    def text(self, kind: TemplateKind, category: Optional[str] = None) -> str:
        content = self.resolve(kind, category).content
        if isinstance(content, str):
            return content
        log.warning(f"ignoring malformed {kind.value} template (expected text)")
        return BUILTIN_DEFAULTS[kind]

    def status_text(self, kind: TemplateKind, status: str, category: Optional[str] = None) -> str:
        return self.resolve(kind, category).content[status]
