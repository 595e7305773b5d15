"""Retention and maintenance workflows over the system log."""

import time
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from eventlog.core.config import Settings, get_settings
from eventlog.core.error_handling import describe_error
from eventlog.core.logging import get_logger
from eventlog.db.store import LogStore
from eventlog.models.base import utc_now
from eventlog.models.enums import LogCategory, LogLevel, Timeframe
from eventlog.monitoring.metrics import get_metrics_collector
from eventlog.retention.policies import DEFAULT_POLICY_TABLE, RetentionPolicyTable
from eventlog.schemas.log_schemas import LogEventCreate, LogStatistics
from eventlog.schemas.maintenance_schemas import (
    GrowthAlert,
    RetentionStats,
    StorageRecommendation,
)
from eventlog.services.event_recorder import EventRecorder
from eventlog.services.query_service import LogQueryService

logger = get_logger(__name__)

TASK_MONITOR_GROWTH = "monitorLogGrowth"
TASK_EXECUTE_RETENTION = "executeRetentionPolicies"
TASK_OPTIMIZE_STORAGE = "optimizeLogStorage"

# Rough horizon reported as the oldest surviving log.
OLDEST_LOG_HORIZON = timedelta(days=365)
AVERAGE_WINDOW_DAYS = 30

DEBUG_SHARE_LIMIT = 0.5
API_REQUEST_SHARE_LIMIT = 0.7


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 3)


class LogMaintenanceService:
    """
    Scheduled housekeeping: retention cleanup, growth monitoring and
    storage analysis.

    Every outcome is itself recorded in the system log under the
    SYSTEM_ERROR, PERFORMANCE or SECURITY_EVENT categories. Deletes always
    spare CRITICAL entries.
    """

    def __init__(
        self,
        store: LogStore,
        recorder: EventRecorder,
        query_service: LogQueryService,
        policies: RetentionPolicyTable = DEFAULT_POLICY_TABLE,
        clock: Callable[[], datetime] = utc_now,
        settings: Optional[Settings] = None,
    ) -> None:
        self.store = store
        self.recorder = recorder
        self.query_service = query_service
        self.policies = policies
        self.clock = clock
        self.settings = settings or get_settings()

    async def _emit(
        self,
        level: LogLevel,
        category: LogCategory,
        event_type: str,
        message: str,
        *,
        metadata: Optional[Dict[str, Any]] = None,
        duration: Optional[float] = None,
        error_message: Optional[str] = None,
    ) -> None:
        await self.recorder.record(
            LogEventCreate(
                level=level,
                category=category,
                event_type=event_type,
                message=message,
                metadata=metadata,
                duration=duration,
                error_message=error_message,
            )
        )

    async def cleanup_old_logs(self, retention_days: int = 90) -> int:
        """
        Delete every non-CRITICAL log older than ``retention_days``.

        Returns:
            Number of rows deleted
        """
        cutoff = self.clock() - timedelta(days=retention_days)
        deleted = await self.store.delete_older_than(cutoff, exclude_level=LogLevel.CRITICAL)

        get_metrics_collector().record_logs_deleted(deleted)
        logger.info(
            "old_logs_cleaned_up",
            retention_days=retention_days,
            cutoff=cutoff.isoformat(),
            deleted=deleted,
        )
        return deleted

    async def execute_retention_policies(self) -> RetentionStats:
        """
        Run every retention policy in order.

        A failing policy is recorded and skipped; the remaining policies
        still run. Failures outside the per-policy loop are recorded as
        CRITICAL and re-raised.
        """
        started = time.perf_counter()
        total_processed = 0
        logs_deleted = 0
        executed = 0
        failed = 0

        try:
            policies = self.policies.all_policies()
            await self._emit(
                LogLevel.INFO,
                LogCategory.SYSTEM_ERROR,
                "log_retention_start",
                "Starting automated log retention process",
                metadata={"policies": [policy.model_dump(mode="json") for policy in policies]},
            )

            for policy in policies:
                try:
                    deleted = await self.cleanup_old_logs(policy.retention_days)
                except Exception as e:
                    failed += 1
                    get_metrics_collector().record_policy_failure()
                    logger.error(
                        "retention_policy_failed",
                        policy_level=policy.level.value,
                        policy_category=policy.category.value if policy.category else None,
                        retention_days=policy.retention_days,
                        error=str(e),
                    )
                    await self._emit(
                        LogLevel.ERROR,
                        LogCategory.SYSTEM_ERROR,
                        "log_retention_policy_error",
                        f"Failed to execute retention policy: {policy.description}",
                        metadata={"policy": policy.model_dump(mode="json")},
                        error_message=describe_error(e),
                    )
                    continue

                executed += 1
                logs_deleted += deleted
                total_processed += deleted
                await self._emit(
                    LogLevel.INFO,
                    LogCategory.SYSTEM_ERROR,
                    "log_retention_policy_executed",
                    f"Executed retention policy: {policy.description}",
                    metadata={
                        "deleted_count": deleted,
                        "policy": policy.model_dump(mode="json"),
                    },
                )

            now = self.clock()
            stats = RetentionStats(
                total_logs_processed=total_processed,
                logs_deleted=logs_deleted,
                policies_executed=executed,
                policies_failed=failed,
                bytes_freed_estimate=logs_deleted * self.settings.bytes_per_log_estimate,
                average_logs_per_day_estimate=round(total_processed / AVERAGE_WINDOW_DAYS),
                oldest_log_date_estimate=now - OLDEST_LOG_HORIZON,
                newest_log_date=now,
                duration_ms=_elapsed_ms(started),
            )

            await self._emit(
                LogLevel.INFO,
                LogCategory.SYSTEM_ERROR,
                "log_retention_completed",
                "Automated log retention process completed successfully",
                metadata=stats.model_dump(mode="json"),
                duration=stats.duration_ms,
            )
            logger.info(
                "retention_completed",
                logs_deleted=logs_deleted,
                policies_executed=executed,
                policies_failed=failed,
            )
            return stats

        except Exception as e:
            logger.error("retention_failed", error=str(e), exc_info=True)
            await self._emit(
                LogLevel.CRITICAL,
                LogCategory.SYSTEM_ERROR,
                "log_retention_failed",
                "Automated log retention process failed critically",
                metadata={
                    "logs_deleted": logs_deleted,
                    "total_logs_processed": total_processed,
                },
                duration=_elapsed_ms(started),
                error_message=describe_error(e),
            )
            raise

    def _growth_checks(self, stats: LogStatistics) -> List[GrowthAlert]:
        settings = self.settings
        alerts = []

        if stats.recent_errors > settings.error_alert_threshold:
            alerts.append(
                GrowthAlert(
                    event_type="high_error_rate_detected",
                    level=LogLevel.WARN,
                    observed=stats.recent_errors,
                    threshold=settings.error_alert_threshold,
                    message=(
                        f"High error rate detected: {stats.recent_errors} errors "
                        "in last 24 hours"
                    ),
                )
            )

        if stats.critical_alerts > settings.critical_alert_threshold:
            alerts.append(
                GrowthAlert(
                    event_type="high_critical_alert_rate",
                    level=LogLevel.CRITICAL,
                    observed=stats.critical_alerts,
                    threshold=settings.critical_alert_threshold,
                    message=(
                        f"High critical alert rate: {stats.critical_alerts} critical logs "
                        "in last 24 hours"
                    ),
                )
            )

        if stats.total_logs > settings.log_volume_threshold:
            alerts.append(
                GrowthAlert(
                    event_type="high_log_volume_detected",
                    level=LogLevel.WARN,
                    observed=stats.total_logs,
                    threshold=settings.log_volume_threshold,
                    message=f"High log volume detected: {stats.total_logs} logs in last 24 hours",
                )
            )

        if stats.average_response_time > settings.slow_response_threshold_ms:
            alerts.append(
                GrowthAlert(
                    event_type="slow_response_time_detected",
                    level=LogLevel.WARN,
                    observed=stats.average_response_time,
                    threshold=settings.slow_response_threshold_ms,
                    message=(
                        "Slow average response time detected: "
                        f"{stats.average_response_time}ms"
                    ),
                )
            )

        return alerts

    async def monitor_log_growth(self) -> List[GrowthAlert]:
        """
        Compare the last day's statistics against growth thresholds.

        Each breached threshold is recorded as its own event. Failures are
        recorded and swallowed.
        """
        try:
            stats = await self.query_service.statistics(Timeframe.DAY)
            snapshot = stats.model_dump(mode="json")
            alerts = self._growth_checks(stats)

            for alert in alerts:
                category = (
                    LogCategory.SECURITY_EVENT
                    if alert.level == LogLevel.CRITICAL
                    else LogCategory.PERFORMANCE
                )
                await self._emit(
                    alert.level,
                    category,
                    alert.event_type,
                    alert.message,
                    metadata={
                        "observed": alert.observed,
                        "threshold": alert.threshold,
                        "stats": snapshot,
                    },
                )
                get_metrics_collector().record_growth_alert(alert.event_type)

            logger.info("log_growth_monitored", alerts=[alert.event_type for alert in alerts])
            return alerts

        except Exception as e:
            logger.error("log_growth_monitoring_failed", error=str(e), exc_info=True)
            await self._emit(
                LogLevel.ERROR,
                LogCategory.SYSTEM_ERROR,
                "log_monitoring_error",
                "Failed to monitor log growth",
                error_message=describe_error(e),
            )
            return []

    @staticmethod
    def _storage_checks(stats: LogStatistics) -> List[StorageRecommendation]:
        recommendations = []

        if stats.by_level.get(LogLevel.DEBUG, 0) > stats.total_logs * DEBUG_SHARE_LIMIT:
            recommendations.append(
                StorageRecommendation(
                    type="debug_optimization",
                    description=(
                        "Excessive DEBUG logs detected. "
                        "Consider reducing log level in production."
                    ),
                    impact="High",
                    recommendation="Set log level to INFO or higher in production environment",
                )
            )

        api_requests = stats.by_category.get(LogCategory.API_REQUEST, 0)
        if api_requests > stats.total_logs * API_REQUEST_SHARE_LIMIT:
            recommendations.append(
                StorageRecommendation(
                    type="api_log_optimization",
                    description="High volume of API request logs. Consider sampling or filtering.",
                    impact="Medium",
                    recommendation="Implement log sampling for successful API requests",
                )
            )

        missing = [
            category.value
            for category in LogCategory
            if stats.by_category.get(category, 0) == 0
        ]
        if missing:
            recommendations.append(
                StorageRecommendation(
                    type="missing_categories",
                    description=(
                        "Some log categories have no entries. Verify logging implementation."
                    ),
                    impact="Low",
                    recommendation=f"Review logging for categories: {', '.join(missing)}",
                )
            )

        return recommendations

    async def optimize_log_storage(self) -> List[StorageRecommendation]:
        """
        Analyze the last week's mix of logs and suggest storage savings.

        The analysis is recorded as one event. Failures are recorded and
        swallowed.
        """
        try:
            stats = await self.query_service.statistics(Timeframe.WEEK)
            recommendations = self._storage_checks(stats)

            await self._emit(
                LogLevel.INFO,
                LogCategory.PERFORMANCE,
                "log_optimization_analysis",
                (
                    "Log storage optimization analysis completed. "
                    f"Found {len(recommendations)} recommendations."
                ),
                metadata={
                    "analysis_date": self.clock().isoformat(),
                    "optimizations": [r.model_dump(mode="json") for r in recommendations],
                    "stats": stats.model_dump(mode="json"),
                },
            )
            logger.info(
                "log_storage_analyzed",
                recommendations=[r.type for r in recommendations],
            )
            return recommendations

        except Exception as e:
            logger.error("log_storage_analysis_failed", error=str(e), exc_info=True)
            await self._emit(
                LogLevel.ERROR,
                LogCategory.SYSTEM_ERROR,
                "log_optimization_error",
                "Failed to perform log storage optimization analysis",
                error_message=describe_error(e),
            )
            return []

    def is_weekly_maintenance_day(self, moment: datetime) -> bool:
        return moment.weekday() == self.settings.maintenance_weekday

    async def run_maintenance(self) -> List[str]:
        """
        Entry point for the scheduler.

        Growth monitoring runs on every invocation; retention and storage
        analysis only on the weekly maintenance day.

        Returns:
            Names of the tasks that were executed
        """
        now = self.clock()
        tasks = [TASK_MONITOR_GROWTH]

        try:
            await self.monitor_log_growth()

            if self.is_weekly_maintenance_day(now):
                await self.execute_retention_policies()
                await self.optimize_log_storage()
                tasks += [TASK_EXECUTE_RETENTION, TASK_OPTIMIZE_STORAGE]

            await self._emit(
                LogLevel.INFO,
                LogCategory.SYSTEM_ERROR,
                "log_maintenance_scheduled",
                "Log maintenance tasks scheduled and executed successfully",
                metadata={"execution_time": now.isoformat(), "tasks_executed": tasks},
            )
            logger.info("maintenance_completed", tasks=tasks)
            return tasks

        except Exception as e:
            logger.error("maintenance_failed", error=str(e), exc_info=True)
            await self._emit(
                LogLevel.CRITICAL,
                LogCategory.SYSTEM_ERROR,
                "log_maintenance_error",
                "Failed to execute scheduled log maintenance tasks",
                error_message=describe_error(e),
            )
            raise
