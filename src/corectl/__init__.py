"""corectl public surface."""

from corectl.client import (
    RPCClient,
    TLSConfig,
    TransportSettings,
    bootstrap_client,
    home_dir_from_environment,
    load_tls_config,
    upgrade_scheme,
)
from corectl.errors import (
    ConfigError,
    CorectlError,
    PollTimeoutError,
    RemoteStatusError,
    ResponseDecodeError,
    TransportError,
    UnknownGuardTypeError,
    UsageError,
)
from corectl.guards import (
    AccessTokenGuard,
    GrantRequest,
    GuardSpec,
    X509SubjectGuard,
    build_grant_request,
    parse_guard,
    split_after,
)
from corectl.liveness import LivenessPoller, PollState, wait_for_core
from corectl.schemas import ErrorResponse, decode_error_response

__all__ = [
    "CorectlError",
    "UsageError",
    "UnknownGuardTypeError",
    "ConfigError",
    "TransportError",
    "RemoteStatusError",
    "ResponseDecodeError",
    "PollTimeoutError",
    "ErrorResponse",
    "decode_error_response",
    "AccessTokenGuard",
    "X509SubjectGuard",
    "GuardSpec",
    "GrantRequest",
    "split_after",
    "parse_guard",
    "build_grant_request",
    "RPCClient",
    "TLSConfig",
    "TransportSettings",
    "bootstrap_client",
    "home_dir_from_environment",
    "load_tls_config",
    "upgrade_scheme",
    "LivenessPoller",
    "PollState",
    "wait_for_core",
]
