"""Runtime configuration loaded from environment variables."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from datetime import timedelta
from fractions import Fraction

DEFAULT_CONNECTIONS_TASK_INDEX = "task-index"
DEFAULT_SQS_WAIT_TIME_SECONDS = 20
DEFAULT_SQS_VISIBILITY_TIMEOUT = 300
DEFAULT_SQS_MAX_MESSAGES = 10
DEFAULT_RECOVERY_LIMIT = 200
DEFAULT_ARTIFACT_PRESIGN_EXPIRES = timedelta(minutes=15)
DEFAULT_RECOVERY_STALE_FOR = timedelta(minutes=10)
DEFAULT_RECOVERY_EVENT_COMPACTION_WINDOW = timedelta(hours=24)
DEFAULT_EVENT_RETENTION = timedelta(hours=24)
DEFAULT_OTEL_EXPORTER = "none"
DEFAULT_OTEL_SAMPLE_RATIO = 1.0

_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1


class ConfigError(ValueError):
    """Raised when an environment value is missing or invalid."""


class RuntimeMode(str):
    """Normalized runtime mode; ``LOCAL`` and ``AWS`` are the known values."""

    LOCAL: "RuntimeMode"
    AWS: "RuntimeMode"


RuntimeMode.LOCAL = RuntimeMode("local")
RuntimeMode.AWS = RuntimeMode("aws")


def parse_runtime_mode(raw: str) -> RuntimeMode:
    """Map a user-supplied runtime string to a RuntimeMode."""
    mode = raw.strip().lower()
    if mode in ("", "local", "dev", "development"):
        return RuntimeMode.LOCAL
    if mode in ("aws", "prod", "production"):
        return RuntimeMode.AWS
    return RuntimeMode(mode)


def runtime_mode_from_env() -> RuntimeMode:
    """Read AGENTFORGE_RUNTIME and return the normalized mode."""
    return parse_runtime_mode(os.environ.get("AGENTFORGE_RUNTIME", ""))


@dataclass
class AWSStateConfig:
    tasks_table: str
    runs_table: str
    steps_table: str
    connections_table: str
    connection_index: str = DEFAULT_CONNECTIONS_TASK_INDEX


@dataclass
class AWSRuntimeConfig:
    state: AWSStateConfig
    task_queue_url: str
    artifacts_bucket: str
    artifact_sse_kms_key_arn: str = ""
    websocket_endpoint: str = ""
    event_retention: timedelta = DEFAULT_EVENT_RETENTION
    artifact_presign_expires: timedelta = DEFAULT_ARTIFACT_PRESIGN_EXPIRES
    sqs_wait_time_seconds: int = DEFAULT_SQS_WAIT_TIME_SECONDS
    sqs_visibility_timeout_seconds: int = DEFAULT_SQS_VISIBILITY_TIMEOUT
    sqs_max_messages: int = DEFAULT_SQS_MAX_MESSAGES


@dataclass
class RecoveryRuntimeConfig:
    enabled: bool = False
    interval: timedelta = field(default_factory=timedelta)
    stale_for: timedelta = DEFAULT_RECOVERY_STALE_FOR
    limit: int = DEFAULT_RECOVERY_LIMIT
    tenant_id: str = ""
    consistency_check: bool = False
    consistency_repair: bool = False
    event_compaction_enabled: bool = False
    event_compaction_window: timedelta = DEFAULT_RECOVERY_EVENT_COMPACTION_WINDOW


@dataclass
class TelemetryRuntimeConfig:
    enabled: bool = False
    service_name: str = "agentforge"
    exporter: str = DEFAULT_OTEL_EXPORTER
    sample_ratio: float = DEFAULT_OTEL_SAMPLE_RATIO


def load_aws_state_config_from_env() -> AWSStateConfig:
    """Load DynamoDB table and index names for aws mode."""
    return AWSStateConfig(
        tasks_table=required_string("TASKS_TABLE"),
        runs_table=required_string("RUNS_TABLE"),
        steps_table=required_string("STEPS_TABLE"),
        connections_table=required_string("CONNECTIONS_TABLE"),
        connection_index=env_string("CONNECTIONS_TASK_INDEX", DEFAULT_CONNECTIONS_TASK_INDEX),
    )


def load_aws_runtime_config_from_env() -> AWSRuntimeConfig:
    """Load the full backend configuration for aws mode."""
    state = load_aws_state_config_from_env()
    queue_url = required_string("TASK_QUEUE_URL")
    artifacts_bucket = required_string("ARTIFACTS_BUCKET")
    event_retention = event_retention_from_env()
    presign = env_duration("ARTIFACT_PRESIGN_EXPIRES", DEFAULT_ARTIFACT_PRESIGN_EXPIRES)
    wait_time = env_int32("SQS_WAIT_TIME_SECONDS", DEFAULT_SQS_WAIT_TIME_SECONDS)
    visibility = env_int32("SQS_VISIBILITY_TIMEOUT_SECONDS", DEFAULT_SQS_VISIBILITY_TIMEOUT)
    max_messages = env_int32("SQS_MAX_MESSAGES", DEFAULT_SQS_MAX_MESSAGES)
    return AWSRuntimeConfig(
        state=state,
        task_queue_url=queue_url,
        artifacts_bucket=artifacts_bucket,
        artifact_sse_kms_key_arn=env_string("ARTIFACT_SSE_KMS_KEY_ARN", ""),
        websocket_endpoint=normalize_websocket_endpoint(env_string("WEBSOCKET_ENDPOINT", "")),
        event_retention=event_retention,
        artifact_presign_expires=presign,
        sqs_wait_time_seconds=wait_time,
        sqs_visibility_timeout_seconds=visibility,
        sqs_max_messages=max_messages,
    )


def event_retention_from_env() -> timedelta:
    """Load AGENTFORGE_EVENT_RETENTION; zero disables retention."""
    retention = env_duration("AGENTFORGE_EVENT_RETENTION", DEFAULT_EVENT_RETENTION)
    if retention < timedelta(0):
        raise ConfigError("invalid AGENTFORGE_EVENT_RETENTION: must be >= 0")
    return retention


def load_recovery_runtime_config_from_env() -> RecoveryRuntimeConfig:
    """Load stale-run recovery and consistency settings."""
    enabled = env_bool("AGENTFORGE_RECOVERY_ENABLED", False)
    interval = env_duration("AGENTFORGE_RECOVERY_INTERVAL", timedelta(0))
    if interval < timedelta(0):
        raise ConfigError("invalid AGENTFORGE_RECOVERY_INTERVAL: must be >= 0")
    stale_for = env_duration("AGENTFORGE_RECOVERY_STALE_FOR", DEFAULT_RECOVERY_STALE_FOR)
    if stale_for <= timedelta(0):
        raise ConfigError("invalid AGENTFORGE_RECOVERY_STALE_FOR: must be > 0")
    limit = env_int32("AGENTFORGE_RECOVERY_LIMIT", DEFAULT_RECOVERY_LIMIT)
    if limit <= 0:
        raise ConfigError("invalid AGENTFORGE_RECOVERY_LIMIT: must be > 0")
    check = env_bool("AGENTFORGE_RECOVERY_CONSISTENCY_CHECK", False)
    repair = env_bool("AGENTFORGE_RECOVERY_CONSISTENCY_REPAIR", False)
    if repair and not check:
        raise ConfigError(
            "AGENTFORGE_RECOVERY_CONSISTENCY_REPAIR requires "
            "AGENTFORGE_RECOVERY_CONSISTENCY_CHECK=true"
        )
    compaction_enabled = env_bool("AGENTFORGE_RECOVERY_EVENT_COMPACTION_ENABLED", False)
    compaction_window = env_duration(
        "AGENTFORGE_RECOVERY_EVENT_COMPACTION_WINDOW", DEFAULT_RECOVERY_EVENT_COMPACTION_WINDOW
    )
    if compaction_window <= timedelta(0):
        raise ConfigError("invalid AGENTFORGE_RECOVERY_EVENT_COMPACTION_WINDOW: must be > 0")
    return RecoveryRuntimeConfig(
        enabled=enabled,
        interval=interval,
        stale_for=stale_for,
        limit=limit,
        tenant_id=env_string("AGENTFORGE_RECOVERY_TENANT_ID", ""),
        consistency_check=check,
        consistency_repair=repair,
        event_compaction_enabled=compaction_enabled,
        event_compaction_window=compaction_window,
    )


def load_telemetry_runtime_config_from_env(default_service_name: str) -> TelemetryRuntimeConfig:
    """Load tracing settings."""
    enabled = env_bool("AGENTFORGE_OTEL_ENABLED", False)

    service_name = env_string("AGENTFORGE_OTEL_SERVICE_NAME", default_service_name).strip()
    if not service_name:
        service_name = "agentforge"

    exporter = env_string("AGENTFORGE_OTEL_EXPORTER", DEFAULT_OTEL_EXPORTER).strip().lower()
    if exporter == "":
        exporter = DEFAULT_OTEL_EXPORTER
    elif exporter not in ("none", "stdout"):
        raise ConfigError(
            f'invalid AGENTFORGE_OTEL_EXPORTER: "{exporter}" (expected one of: none, stdout)'
        )

    sample_ratio = DEFAULT_OTEL_SAMPLE_RATIO
    raw_ratio = os.environ.get("AGENTFORGE_OTEL_SAMPLE_RATIO", "").strip()
    if raw_ratio:
        try:
            parsed = float(raw_ratio)
        except ValueError as exc:
            raise ConfigError(f"invalid AGENTFORGE_OTEL_SAMPLE_RATIO: {exc}") from exc
        if parsed < 0 or parsed > 1:
            raise ConfigError("invalid AGENTFORGE_OTEL_SAMPLE_RATIO: must be between 0 and 1")
        sample_ratio = parsed

    return TelemetryRuntimeConfig(
        enabled=enabled,
        service_name=service_name,
        exporter=exporter,
        sample_ratio=sample_ratio,
    )


def required_string(key: str) -> str:
    """Return a non-empty trimmed environment value or raise ConfigError."""
    value = os.environ.get(key, "").strip()
    if not value:
        raise ConfigError(f"missing required environment variable {key}")
    return value


def env_string(key: str, default: str) -> str:
    """Return a trimmed environment value, or ``default`` when empty."""
    value = os.environ.get(key, "").strip()
    return value or default


_INT_RE = re.compile(r"[+-]?\d+")


def env_int32(key: str, default: int) -> int:
    """Parse a 32-bit signed integer environment value."""
    raw = os.environ.get(key, "").strip()
    if not raw:
        return default
    if not _INT_RE.fullmatch(raw):
        raise ConfigError(f'invalid {key}: parsing "{raw}": invalid syntax')
    value = int(raw)
    if not _INT32_MIN <= value <= _INT32_MAX:
        raise ConfigError(f'invalid {key}: parsing "{raw}": value out of range')
    return value


_TRUE_WORDS = frozenset({"1", "true", "yes", "y", "on"})
_FALSE_WORDS = frozenset({"0", "false", "no", "n", "off"})


def env_bool(key: str, default: bool) -> bool:
    """Parse a boolean environment value."""
    raw = os.environ.get(key, "").strip()
    if not raw:
        return default
    word = raw.lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise ConfigError(f'invalid {key}: "{raw}"')


def env_duration(key: str, default: timedelta) -> timedelta:
    """Parse a duration environment value such as ``15m`` or ``1h30m``."""
    raw = os.environ.get(key, "").strip()
    if not raw:
        return default
    try:
        return parse_duration(raw)
    except ConfigError as exc:
        raise ConfigError(f"invalid {key}: {exc}") from exc


_UNIT_NANOS = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,
    "μs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}
_COMPONENT_RE = re.compile(r"(\d*)(?:\.(\d*))?([^\d.]*)")
_MAX_NANOS = 2**63 - 1


def parse_duration(raw: str) -> timedelta:
    """Parse a duration string made of number/unit pairs (ns, us, ms, s, m, h)."""
    text = raw
    negative = False
    if text and text[0] in "+-":
        negative = text[0] == "-"
        text = text[1:]
    if text == "0":
        return timedelta(0)
    if not text:
        raise ConfigError(f'time: invalid duration "{raw}"')

    total = Fraction(0)
    pos = 0
    while pos < len(text):
        match = _COMPONENT_RE.match(text, pos)
        whole, frac, unit = match.group(1), match.group(2), match.group(3)
        if not whole and not frac:
            raise ConfigError(f'time: invalid duration "{raw}"')
        if not unit:
            raise ConfigError(f'time: missing unit in duration "{raw}"')
        if unit not in _UNIT_NANOS:
            raise ConfigError(f'time: unknown unit "{unit}" in duration "{raw}"')
        value = Fraction(int(whole or "0"))
        if frac:
            value += Fraction(int(frac), 10 ** len(frac))
        total += value * _UNIT_NANOS[unit]
        limit = _MAX_NANOS + 1 if negative else _MAX_NANOS
        if total > limit:
            raise ConfigError(f'time: invalid duration "{raw}"')
        pos = match.end()

    nanos = int(total)
    delta = timedelta(microseconds=nanos // 1000)
    return -delta if negative else delta


def normalize_websocket_endpoint(endpoint: str) -> str:
    """Turn a ``wss://`` endpoint into the matching ``https://`` management endpoint."""
    trimmed = endpoint.strip()
    if trimmed.startswith("wss://"):
        return "https://" + trimmed[len("wss://"):]
    return trimmed