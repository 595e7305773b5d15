"""Retention policies and scheduled maintenance."""

from eventlog.retention.maintenance import LogMaintenanceService
from eventlog.retention.policies import (
    DEFAULT_POLICY_TABLE,
    RetentionPolicy,
    RetentionPolicyTable,
)

__all__ = ["DEFAULT_POLICY_TABLE", "LogMaintenanceService", "RetentionPolicy", "RetentionPolicyTable"]
