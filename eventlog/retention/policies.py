"""Retention policies and their resolution."""

from typing import Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from eventlog.models.enums import LogCategory, LogLevel

FALLBACK_RETENTION_DAYS = 90


class RetentionPolicy(BaseModel):
    """Maximum age, in days, for logs of a level (and optionally a category)."""

    level: LogLevel
    category: Optional[LogCategory] = None
    retention_days: int = Field(..., gt=0)
    description: str

    model_config = {"frozen": True}


class RetentionPolicyTable:
    """
    Immutable set of level-only and category-scoped policies.

    Category-scoped policies are more specific and always win over the
    level-only ones when resolving a retention period.
    """

    def __init__(
        self,
        level_policies: Sequence[RetentionPolicy],
        category_policies: Sequence[RetentionPolicy] = (),
    ) -> None:
        if any(policy.category is not None for policy in level_policies):
            raise ValueError("Level policies must not be scoped to a category")
        if any(policy.category is None for policy in category_policies):
            raise ValueError("Category policies must name a category")

        self._level_policies: Tuple[RetentionPolicy, ...] = tuple(level_policies)
        self._category_policies: Tuple[RetentionPolicy, ...] = tuple(category_policies)

    @property
    def level_policies(self) -> Tuple[RetentionPolicy, ...]:
        return self._level_policies

    @property
    def category_policies(self) -> Tuple[RetentionPolicy, ...]:
        return self._category_policies

    def all_policies(self) -> Tuple[RetentionPolicy, ...]:
        """Level-only policies followed by category policies."""
        return self._level_policies + self._category_policies

    def resolve(self, level: LogLevel, category: Optional[LogCategory] = None) -> int:
        """
        Retention period in days for a level and optional category.

        Exact (level, category) match first, then the level-only policy,
        then a fixed default.
        """
        if category is not None:
            for policy in self._category_policies:
                if policy.level == level and policy.category == category:
                    return policy.retention_days

        for policy in self._level_policies:
            if policy.level == level:
                return policy.retention_days

        return FALLBACK_RETENTION_DAYS


DEFAULT_LEVEL_POLICIES = (
    RetentionPolicy(
        level=LogLevel.DEBUG,
        retention_days=7,
        description="Debug logs kept for 7 days for development troubleshooting",
    ),
    RetentionPolicy(
        level=LogLevel.INFO,
        retention_days=30,
        description="Info logs kept for 30 days for operational monitoring",
    ),
    RetentionPolicy(
        level=LogLevel.WARN,
        retention_days=90,
        description="Warning logs kept for 90 days for pattern analysis",
    ),
    RetentionPolicy(
        level=LogLevel.ERROR,
        retention_days=180,
        description="Error logs kept for 180 days for incident analysis",
    ),
    RetentionPolicy(
        level=LogLevel.CRITICAL,
        retention_days=365,
        description="Critical logs kept for 1 year for compliance and security",
    ),
)

DEFAULT_CATEGORY_POLICIES = (
    RetentionPolicy(
        level=LogLevel.INFO,
        category=LogCategory.AUDIT_TRAIL,
        retention_days=2555,  # 7 years
        description="Audit trail logs kept for 7 years for regulatory compliance",
    ),
    RetentionPolicy(
        level=LogLevel.INFO,
        category=LogCategory.PAYMENT_PROCESSING,
        retention_days=2555,
        description="Payment logs kept for 7 years for financial compliance",
    ),
    RetentionPolicy(
        level=LogLevel.INFO,
        category=LogCategory.SECURITY_EVENT,
        retention_days=365,
        description="Security events kept for 1 year for incident response",
    ),
    RetentionPolicy(
        level=LogLevel.INFO,
        category=LogCategory.AUTHENTICATION,
        retention_days=90,
        description="Authentication logs kept for 90 days for security monitoring",
    ),
    RetentionPolicy(
        level=LogLevel.INFO,
        category=LogCategory.API_REQUEST,
        retention_days=30,
        description="API request logs kept for 30 days for performance monitoring",
    ),
    RetentionPolicy(
        level=LogLevel.INFO,
        category=LogCategory.PERFORMANCE,
        retention_days=30,
        description="Performance logs kept for 30 days for optimization",
    ),
)

DEFAULT_POLICY_TABLE = RetentionPolicyTable(DEFAULT_LEVEL_POLICIES, DEFAULT_CATEGORY_POLICIES)
