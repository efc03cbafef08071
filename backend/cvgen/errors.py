"""Domain errors raised by the services and translated by the routers."""


class CVGeneratorError(Exception):
    """Base class for all domain errors."""


class NotFoundError(CVGeneratorError):
    """A profile, job posting or CV is missing or not owned by the caller."""


class QuotaExceededError(CVGeneratorError):
    """A FREE user has used up the generations allowed for a CV type."""

    def __init__(self, plan: str, limit_type: str, limit: int, used: int):
        self.plan = plan
        self.limit_type = limit_type
        self.limit = limit
        self.used = used
        self.remaining = max(0, limit - used)
        super().__init__(
            f"{plan} plan limit reached for {limit_type} CVs: "
            f"{used} of {limit} used"
        )

    def to_dict(self) -> dict:
        return {
            "error": "quota_exceeded",
            "message": str(self),
            "subscriptionType": self.plan,
            "limitType": self.limit_type,
            "limit": self.limit,
            "used": self.used,
            "remaining": self.remaining,
        }


class GenerationError(CVGeneratorError):
    """The AI call failed, returned nothing, or returned an invalid document."""

    # Set by the orchestrator once the failed record has been persisted.
    record_id: str | None = None


class RenderError(CVGeneratorError):
    """Template rendering or PDF conversion failed."""


class TemplateNotAvailableError(CVGeneratorError):
    """A premium template was requested without an active PRO plan."""

    def __init__(self, template_name: str):
        self.template_name = template_name
        super().__init__(f"Template '{template_name}' requires a PRO subscription")
