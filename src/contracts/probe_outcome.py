from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, model_validator


class ProbeStatus(str, Enum):
    SUCCESS = "success"
    TRANSPORT_ERROR = "transport_error"
    HTTP_ERROR = "http_error"


class FailureReason(str, Enum):
    """
    Closed set of reason codes attached to every probe outcome.
    NONE is reserved for successful probes.
    """

    NONE = "none"

    CONTEXT_CANCELED = "context_canceled"
    CONTEXT_DEADLINE = "context_deadline"

    DNS_NOT_FOUND = "dns_not_found"
    DNS_TIMEOUT = "dns_timeout"
    DNS_ERROR = "dns_error"

    TLS_HOSTNAME_MISMATCH = "tls_hostname_mismatch"
    TLS_UNTRUSTED_CA = "tls_untrusted_ca"
    TLS_CERT_INVALID = "tls_cert_invalid"

    TIMEOUT = "timeout"
    CONNECTION_REFUSED = "connection_refused"
    NETWORK_ERROR = "network_error"

    HTTP_4XX = "http_4xx"
    HTTP_5XX = "http_5xx"

    UNKNOWN = "unknown"


HTTP_REASONS = frozenset({FailureReason.HTTP_4XX, FailureReason.HTTP_5XX})

REASONS_BY_STATUS = {
    ProbeStatus.SUCCESS: frozenset({FailureReason.NONE}),
    ProbeStatus.HTTP_ERROR: HTTP_REASONS,
    ProbeStatus.TRANSPORT_ERROR: frozenset(FailureReason)
    - HTTP_REASONS
    - {FailureReason.NONE},
}


class ProbeOutcome(BaseModel):
    """
    Result of one executed probe. Produced by the executor and handed to the
    metrics sink exactly once.
    """

    model_config = ConfigDict(frozen=True)

    target: str
    status: ProbeStatus
    reason: FailureReason
    duration_seconds: float
    # Only set when an HTTP response was received
    status_code: Optional[int] = None
    # Text of the transport error, for the diagnostic log line
    error: Optional[str] = None

    @model_validator(mode="after")
    def _check_reason(self):
        if self.reason not in REASONS_BY_STATUS[self.status]:
            raise ValueError(
                f"reason {self.reason.value!r} is not valid for status {self.status.value!r}"
            )
        return self

    @property
    def is_error(self) -> bool:
        return self.status != ProbeStatus.SUCCESS
