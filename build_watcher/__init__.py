"""Email notifications and status badges for Cloud Build builds."""

__all__ = [
    "config",
    "models",
    "metadata",
    "eligibility",
    "email_formatter",
    "badge",
    "events",
    "mailer",
    "storage",
    "orchestrator",
]
