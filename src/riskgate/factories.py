"""Component factories - build collaborators from configuration.

Each factory reads the global Config unless one is passed in, and returns
the backend selected by the corresponding RISKGATE_* setting.

Environment variables:
- RISKGATE_ACCOUNTS_FILE: YAML account seed (default config/accounts.yaml)
- RISKGATE_VELOCITY_BACKEND: "memory" (default) or "redis"
- RISKGATE_EVENT_LOG_SOURCE: "local" (default) or "s3"
- RISKGATE_WEBHOOK_URL: optional webhook receiving every event
- RISKGATE_RISK_REGISTRY_URL: HTTP risk registry (in-memory registry if unset)
"""

import logging
from typing import List, Optional

from riskgate.accounts.store import AccountStatusStore, load_accounts_file
from riskgate.baseline.calculator import BaselineCalculator
from riskgate.baseline.partitions import (
    LocalPartitionSource,
    PartitionSource,
    S3PartitionSource,
)
from riskgate.common.config.settings import (
    Config,
    EventLogSource,
    VelocityBackend,
    get_config,
)
from riskgate.events.publisher import BackgroundEventPublisher
from riskgate.events.sinks import (
    CompositeEventSink,
    EventSink,
    JsonlPartitionEventSink,
    NullEventSink,
    WebhookEventSink,
)
from riskgate.scoring.registry import HttpRiskRegistry, InMemoryRiskRegistry, RiskRegistry
from riskgate.velocity.counter import (
    InMemoryVelocityCounter,
    RedisVelocityCounter,
    VelocityCounter,
)


logger = logging.getLogger(__name__)


def create_account_store(config: Optional[Config] = None) -> AccountStatusStore:
    """Load the account store from the configured seed file."""
    config = config or get_config()
    return load_accounts_file(config.resolved_accounts_file)


def create_velocity_counter(config: Optional[Config] = None) -> VelocityCounter:
    """Create the velocity counter for the configured backend."""
    config = config or get_config()

    if config.velocity_backend == VelocityBackend.REDIS:
        logger.info("Using Redis velocity counter")
        return RedisVelocityCounter.from_url(
            config.redis_url,
            window_seconds=config.velocity_window_seconds,
            timeout=config.collaborator_timeout_seconds,
        )

    logger.info("Using in-memory velocity counter")
    return InMemoryVelocityCounter(window_seconds=config.velocity_window_seconds)


def create_partition_source(config: Optional[Config] = None) -> PartitionSource:
    """Create the event log reader for the configured history source."""
    config = config or get_config()

    if config.event_log_source == EventLogSource.S3:
        return S3PartitionSource(
            bucket_name=config.event_log_s3_bucket,
            prefix=config.event_log_s3_prefix,
            region=config.aws_region,
        )

    return LocalPartitionSource(log_dir=config.event_log_dir)


def create_baseline_calculator(config: Optional[Config] = None) -> BaselineCalculator:
    config = config or get_config()
    return BaselineCalculator(
        source=create_partition_source(config),
        lookback_days=config.baseline_lookback_days,
    )


def create_event_sink(config: Optional[Config] = None) -> EventSink:
    """Create the event sink.

    The JSONL partition sink feeds the baseline calculator's local history,
    so it is enabled whenever history is read from the local directory and
    RISKGATE_WRITE_EVENT_LOG is true.
    """
    config = config or get_config()
    sinks: List[EventSink] = []

    if config.write_event_log and config.event_log_source == EventLogSource.LOCAL:
        sinks.append(JsonlPartitionEventSink(log_dir=config.event_log_dir))

    if config.webhook_url:
        sinks.append(
            WebhookEventSink(
                url=config.webhook_url,
                timeout=config.collaborator_timeout_seconds,
            )
        )

    if not sinks:
        logger.warning("No event sink configured, events will be discarded")
        return NullEventSink()
    if len(sinks) == 1:
        return sinks[0]
    return CompositeEventSink(sinks)


def create_event_publisher(config: Optional[Config] = None) -> BackgroundEventPublisher:
    return BackgroundEventPublisher(sink=create_event_sink(config))


def create_risk_registry(config: Optional[Config] = None) -> RiskRegistry:
    """Create the risk registry client.

    Without RISKGATE_RISK_REGISTRY_URL an empty in-memory registry is used:
    every user scores 0 and nobody is blocked.
    """
    config = config or get_config()

    if config.risk_registry_url:
        return HttpRiskRegistry(
            base_url=config.risk_registry_url,
            timeout=config.collaborator_timeout_seconds,
        )

    logger.warning("RISKGATE_RISK_REGISTRY_URL not set, using in-memory risk registry")
    return InMemoryRiskRegistry()
