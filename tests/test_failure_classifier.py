import asyncio
import builtins
import errno
import socket
import ssl
import unittest

import httpx

from contracts.probe_outcome import FailureReason
from core.failure_classifier import (
    ProbeDeadlineExceeded,
    classify_http_status,
    classify_transport_error,
    iter_exception_chain,
)


def wrap(inner, outer_cls=httpx.ConnectError, message=None):
    """Raise outer_cls from inner and return the resulting exception."""
    try:
        try:
            raise inner
        except BaseException as e:
            raise outer_cls(message or str(e)) from e
    except BaseException as outer:
        return outer


def cert_error(verify_code=None):
    err = ssl.SSLCertVerificationError(1, "[SSL: CERTIFICATE_VERIFY_FAILED] certificate verify failed")
    if verify_code is not None:
        err.verify_code = verify_code
    return err


class TestTransportClassification(unittest.TestCase):
    def test_cancellation(self):
        self.assertEqual(
            classify_transport_error(asyncio.CancelledError()),
            FailureReason.CONTEXT_CANCELED,
        )

    def test_cancellation_wins_over_deadline(self):
        exc = wrap(asyncio.CancelledError(), ProbeDeadlineExceeded, "deadline")
        self.assertEqual(classify_transport_error(exc), FailureReason.CONTEXT_CANCELED)

    def test_deadline(self):
        self.assertEqual(
            classify_transport_error(ProbeDeadlineExceeded("probe exceeded 5s deadline")),
            FailureReason.CONTEXT_DEADLINE,
        )

    def test_deadline_wins_over_network_timeout(self):
        exc = wrap(httpx.ReadTimeout("read timed out"), ProbeDeadlineExceeded, "deadline")
        self.assertEqual(classify_transport_error(exc), FailureReason.CONTEXT_DEADLINE)

    def test_dns_not_found(self):
        exc = wrap(socket.gaierror(socket.EAI_NONAME, "Name or service not known"))
        self.assertEqual(classify_transport_error(exc), FailureReason.DNS_NOT_FOUND)

    def test_dns_timeout_beats_generic_timeout(self):
        exc = wrap(
            socket.gaierror(socket.EAI_AGAIN, "Temporary failure in name resolution"),
            httpx.ConnectTimeout,
        )
        self.assertEqual(classify_transport_error(exc), FailureReason.DNS_TIMEOUT)

    def test_dns_other_error(self):
        exc = wrap(socket.gaierror(socket.EAI_FAIL, "Non-recoverable failure in name resolution"))
        self.assertEqual(classify_transport_error(exc), FailureReason.DNS_ERROR)

    def test_tls_hostname_mismatch(self):
        self.assertEqual(
            classify_transport_error(wrap(cert_error(62))),
            FailureReason.TLS_HOSTNAME_MISMATCH,
        )

    def test_tls_untrusted_ca(self):
        for code in (19, 20, 21):
            with self.subTest(code=code):
                self.assertEqual(
                    classify_transport_error(wrap(cert_error(code))),
                    FailureReason.TLS_UNTRUSTED_CA,
                )

    def test_tls_expired_certificate(self):
        self.assertEqual(
            classify_transport_error(wrap(cert_error(10))),
            FailureReason.TLS_CERT_INVALID,
        )

    def test_tls_error_without_verify_code(self):
        self.assertEqual(
            classify_transport_error(wrap(cert_error())),
            FailureReason.TLS_CERT_INVALID,
        )

    def test_network_timeouts(self):
        for exc in (httpx.ConnectTimeout("connect"), httpx.ReadTimeout("read"), TimeoutError()):
            with self.subTest(exc=exc):
                self.assertEqual(classify_transport_error(exc), FailureReason.TIMEOUT)

    def test_connection_refused(self):
        exc = wrap(ConnectionRefusedError(errno.ECONNREFUSED, "Connection refused"))
        self.assertEqual(classify_transport_error(exc), FailureReason.CONNECTION_REFUSED)

    def test_connection_refused_behind_aggregate_error(self):
        inner = wrap(
            OSError(errno.ECONNREFUSED, "Connect call failed ('127.0.0.1', 8080)"),
            OSError,
            "All connection attempts failed",
        )
        exc = wrap(inner)
        self.assertEqual(classify_transport_error(exc), FailureReason.CONNECTION_REFUSED)

    def test_generic_network_errors(self):
        for exc in (
            httpx.ReadError("connection reset"),
            wrap(ConnectionResetError(errno.ECONNRESET, "Connection reset by peer")),
            wrap(ssl.SSLError(1, "[SSL: WRONG_VERSION_NUMBER] wrong version number")),
        ):
            with self.subTest(exc=exc):
                self.assertEqual(classify_transport_error(exc), FailureReason.NETWORK_ERROR)

    def test_unknown(self):
        for exc in (
            httpx.UnsupportedProtocol("Request URL has an unsupported protocol 'ftp://'"),
            httpx.RemoteProtocolError("Server disconnected without sending a response."),
            ValueError("boom"),
        ):
            with self.subTest(exc=exc):
                self.assertEqual(classify_transport_error(exc), FailureReason.UNKNOWN)

    @unittest.skipUnless(hasattr(builtins, "ExceptionGroup"), "needs exception groups")
    def test_exception_group_members_are_inspected(self):
        group = builtins.ExceptionGroup(
            "multiple connection attempts failed",
            [socket.gaierror(socket.EAI_NONAME, "Name or service not known")],
        )
        exc = wrap(group, OSError, "All connection attempts failed")
        self.assertEqual(classify_transport_error(exc), FailureReason.DNS_NOT_FOUND)

    def test_chain_walk_handles_cycles(self):
        a = ValueError("a")
        b = ValueError("b")
        a.__context__ = b
        b.__context__ = a
        self.assertEqual(list(iter_exception_chain(a)), [a, b])


class TestHttpClassification(unittest.TestCase):
    def test_boundaries(self):
        cases = {
            200: FailureReason.NONE,
            301: FailureReason.NONE,
            399: FailureReason.NONE,
            400: FailureReason.HTTP_4XX,
            404: FailureReason.HTTP_4XX,
            499: FailureReason.HTTP_4XX,
            500: FailureReason.HTTP_5XX,
            503: FailureReason.HTTP_5XX,
            599: FailureReason.HTTP_5XX,
        }
        for code, expected in cases.items():
            with self.subTest(code=code):
                self.assertEqual(classify_http_status(code), expected)


if __name__ == "__main__":
    unittest.main()
