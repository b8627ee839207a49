"""
Maps probe failures onto the closed FailureReason taxonomy.

Transport errors are matched against the whole exception chain (``__cause__``,
``__context__`` and exception-group members). Each rule is checked against the
entire chain before the next rule is tried, so a DNS timeout wrapped in an
``httpx.ConnectError`` is still reported as ``dns_timeout`` and never as the
generic ``timeout``.
"""
import asyncio
import errno
import socket
import ssl
from typing import Iterator, Optional, Tuple, Type

import httpx

from contracts.probe_outcome import FailureReason


class ProbeDeadlineExceeded(Exception):
    """Raised when a probe does not complete within its client-side deadline."""


# OpenSSL X509_V_ERR_* verify codes
X509_HOSTNAME_MISMATCH_CODES = frozenset({62, 64})
X509_UNTRUSTED_CA_CODES = frozenset({2, 18, 19, 20, 21})

_DNS_NOT_FOUND_CODES = frozenset(
    code
    for code in (
        getattr(socket, "EAI_NONAME", None),
        getattr(socket, "EAI_NODATA", None),
    )
    if code is not None
)
_DNS_TIMEOUT_CODES = frozenset(
    code for code in (getattr(socket, "EAI_AGAIN", None),) if code is not None
)


def iter_exception_chain(exc: BaseException) -> Iterator[BaseException]:
    """Yield exc and every exception it wraps, each at most once."""
    seen = set()
    stack = [exc]
    while stack:
        current = stack.pop()
        if current is None or id(current) in seen:
            continue
        seen.add(id(current))
        yield current
        stack.extend(reversed(getattr(current, "exceptions", None) or ()))
        stack.append(current.__context__)
        stack.append(current.__cause__)


def find_in_chain(
    exc: BaseException, types: Tuple[Type[BaseException], ...]
) -> Optional[BaseException]:
    for member in iter_exception_chain(exc):
        if isinstance(member, types):
            return member
    return None


def _classify_dns(err: socket.gaierror) -> FailureReason:
    if err.errno in _DNS_NOT_FOUND_CODES:
        return FailureReason.DNS_NOT_FOUND
    if err.errno in _DNS_TIMEOUT_CODES:
        return FailureReason.DNS_TIMEOUT
    return FailureReason.DNS_ERROR


def _classify_certificate(err: ssl.SSLCertVerificationError) -> FailureReason:
    code = getattr(err, "verify_code", None)
    if code in X509_HOSTNAME_MISMATCH_CODES:
        return FailureReason.TLS_HOSTNAME_MISMATCH
    if code in X509_UNTRUSTED_CA_CODES:
        return FailureReason.TLS_UNTRUSTED_CA
    return FailureReason.TLS_CERT_INVALID


def _is_connection_refused(exc: BaseException) -> bool:
    for member in iter_exception_chain(exc):
        if isinstance(member, ConnectionRefusedError):
            return True
        if isinstance(member, OSError) and member.errno == errno.ECONNREFUSED:
            return True
        if "connection refused" in str(member).lower():
            return True
    return False


def classify_transport_error(exc: BaseException) -> FailureReason:
    """
    Return the reason code for a probe that failed before an HTTP response
    was received. First matching rule wins.
    """
    if find_in_chain(exc, (asyncio.CancelledError,)):
        return FailureReason.CONTEXT_CANCELED

    if find_in_chain(exc, (ProbeDeadlineExceeded,)):
        return FailureReason.CONTEXT_DEADLINE

    dns_err = find_in_chain(exc, (socket.gaierror,))
    if dns_err is not None:
        return _classify_dns(dns_err)

    cert_err = find_in_chain(exc, (ssl.SSLCertVerificationError,))
    if cert_err is not None:
        return _classify_certificate(cert_err)

    if find_in_chain(exc, (httpx.TimeoutException, TimeoutError)):
        return FailureReason.TIMEOUT

    if find_in_chain(exc, (OSError, httpx.NetworkError)):
        if _is_connection_refused(exc):
            return FailureReason.CONNECTION_REFUSED
        return FailureReason.NETWORK_ERROR

    return FailureReason.UNKNOWN


def classify_http_status(status_code: int) -> FailureReason:
    if 400 <= status_code < 500:
        return FailureReason.HTTP_4XX
    if status_code >= 500:
        return FailureReason.HTTP_5XX
    return FailureReason.NONE
