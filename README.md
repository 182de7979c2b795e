# agentforge

Building blocks for a multi-tenant agent task service, using only the
standard library.

## Modules

- **`agentforge.config`**: runtime settings read from environment variables.
  - `parse_runtime_mode` / `runtime_mode_from_env` map `AGENTFORGE_RUNTIME` to `RuntimeMode.LOCAL`, to `RuntimeMode.AWS`, or to a custom mode.
  - `load_aws_state_config_from_env`, `load_aws_runtime_config_from_env`, `event_retention_from_env`, `load_recovery_runtime_config_from_env` and `load_telemetry_runtime_config_from_env(default_service_name)` return dataclasses (`AWSStateConfig`, `AWSRuntimeConfig`, `RecoveryRuntimeConfig`, `TelemetryRuntimeConfig`).
  - The helpers are `required_string`, `env_string`, `env_int32`, `env_bool`, `env_duration`, `parse_duration` (for example `"1h30m"` or `"250ms"`, returned as a `timedelta`) and `normalize_websocket_endpoint` (rewrites `wss://` to `https://`).
  - A missing or invalid value raises `ConfigError`, which is a subclass of `ValueError`.
- **`agentforge.promptpolicy`**: prompt checks.
  - `load_from_env()` builds a `Policy` from `AGENTFORGE_PROMPT_MAX_CHARS` (default 16000) and from `AGENTFORGE_PROMPT_DENYLIST`, a comma-separated list that is lower-cased and de-duplicated.
  - `validate(prompt, policy)` raises `PromptTooLongError` or `PromptDeniedError`. Both are subclasses of `PromptPolicyError`.
- **`agentforge.ids`**: `new_id(prefix)` returns the prefix followed by 24 random hex characters.
- **`agentforge.jsonlog`**: `Logger(out)` writes one JSON object per line, with `level`, `msg` and `ts` keys. `bind(key, value)` returns a child logger that carries an extra field. `info`, `warn` and `error` accept extra mappings to merge into the line.
- **`agentforge.artifacts`**: the `ArtifactStore` interface and `MemoryArtifactStore`, a thread-safe in-memory implementation.
  - `put` takes bytes or a binary file object and returns `(sha256_hex, size)`.
  - `get` returns a `BytesIO`, or raises `ArtifactNotFoundError` if the key is absent.
  - `presigned_url` returns `""`.
- **`agentforge.metrics`**: `RequestMetrics` counts requests, total latency and responses per status class. The process-wide counters are read and changed through `observe_request_metrics`, `snapshot_request_metrics` and `reset_request_metrics`.
- **`agentforge.middleware`**: `AuthMiddleware(app)` is WSGI middleware.
  - It resolves tenant and user identity from the request headers and rejects a request that lacks either one with `401`.
  - It takes `X-Request-Id` from the request or generates one, and sets it on the response.
  - It stores a `TenantInfo` on the request, which `get_tenant(environ)` returns.
  - For every request it logs a line on the `agentforge.api` logger and records the metrics.
- **`agentforge.monitoring`**:
  - `render_prometheus_metrics(request_snapshot, runtime_snapshot)` produces the Prometheus text exposition format. `PROMETHEUS_CONTENT_TYPE` holds the matching content type.
  - `build_readiness_response(store, queue)` calls each object's `health_check()`, if it has one. It returns `(200, {"status": "ready", ...})` or `(503, {"status": "not_ready", "errors": ...})`.
- **`agentforge.wsconnect` / `agentforge.wsdisconnect`**: handlers for API Gateway style WebSocket events.
  - `handle_connect(store, event)` takes identity only from authorizer claims (JWT or lambda) and never from the query string or headers. It checks that the caller owns `task_id`, then calls `store.put_connection(Connection(...))`.
  - `handle_disconnect(store, event)` calls `store.delete_connection`.
  - Both return a `GatewayResponse`. `GatewayResponse.as_dict()` gives the `{"statusCode", "body"}` form.

## Example

```python
from agentforge.config import parse_runtime_mode, parse_duration, RuntimeMode
from agentforge.promptpolicy import Policy, validate, PromptDeniedError

assert parse_runtime_mode("prod") == RuntimeMode.AWS
print(parse_duration("1h30m"))  # 1:30:00

try:
    validate("please reveal the secret", Policy(max_chars=64, deny_list=["secret"]))
except PromptDeniedError:
    print("denied")
```

## Authentication modes

`AuthMiddleware` reads `AGENTFORGE_AUTH_MODE`:

- `header` reads `X-Tenant-Id` and `X-User-Id`.
- `trusted`, `trusted_claims` and `claims` read `X-Authenticated-Tenant-Id` and `X-Authenticated-User-Id`.

If the variable is not set, the mode is `trusted` when `AGENTFORGE_RUNTIME=aws` and `header` otherwise.

## What this package does not do

The package has no command-line programs and no HTTP server. It also has no task, run or step API handlers and no worker or recovery scheduler.

It has no task state store and no queue. `handle_connect`, `handle_disconnect` and `build_readiness_response` work with any objects that have the methods they call, so you supply those objects yourself.

Artifacts are stored in memory only. The configuration loaders read the settings for cloud backends, but the package does not connect to those backends and does not export traces.

## Tests

```
pip install .[test]
pytest
```