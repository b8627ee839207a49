import asyncio
import logging
import time
from typing import Optional

import httpx

from abstractions.metrics_sink import MetricsSink
from config.config import Config
from contracts.probe_outcome import FailureReason, ProbeOutcome, ProbeStatus
from contracts.target import Target
from core.failure_classifier import (
    ProbeDeadlineExceeded,
    classify_http_status,
    classify_transport_error,
)

logger = logging.getLogger(__name__)


def build_http_client(**kwargs) -> httpx.AsyncClient:
    """
    Create the client shared by all probes. Per-phase timeouts are disabled:
    the executor's overall deadline is the single bound on a probe.
    """
    kwargs.setdefault("timeout", None)
    kwargs.setdefault("follow_redirects", True)
    return httpx.AsyncClient(**kwargs)


class ProbeExecutor:
    """
    Issues one timed GET per call and turns the result into a ProbeOutcome.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        metrics_sink: MetricsSink,
        timeout: Optional[float] = None,
    ):
        self.client = client
        self.metrics_sink = metrics_sink
        self.timeout = timeout if timeout is not None else Config.PROBE_TIMEOUT_SECONDS

    async def probe(self, target: Target) -> ProbeOutcome:
        """
        Probe the target once and record the result.

        Failures are returned as outcomes, never raised. Cancellation is
        recorded as context_canceled and then propagated.

        Args:
            target (Target): The endpoint to probe.

        Returns:
            ProbeOutcome: Status, reason and measured duration of the probe.
        """
        self.metrics_sink.probe_started(target.url)
        try:
            outcome = await self._execute(target)
            self.metrics_sink.record_outcome(outcome)
            self._log_outcome(outcome)
            return outcome
        finally:
            self.metrics_sink.probe_finished()

    async def _execute(self, target: Target) -> ProbeOutcome:
        start = time.monotonic()
        try:
            status_code = await asyncio.wait_for(
                self._fetch_status(target.url), timeout=self.timeout
            )
        except asyncio.CancelledError as e:
            outcome = self._transport_failure(target, e, time.monotonic() - start)
            self.metrics_sink.record_outcome(outcome)
            self._log_outcome(outcome)
            raise
        except asyncio.TimeoutError:
            error = ProbeDeadlineExceeded(
                f"probe exceeded {self.timeout}s deadline"
            )
            return self._transport_failure(target, error, time.monotonic() - start)
        except Exception as e:
            return self._transport_failure(target, e, time.monotonic() - start)

        duration = time.monotonic() - start
        reason = classify_http_status(status_code)
        status = (
            ProbeStatus.SUCCESS if reason == FailureReason.NONE else ProbeStatus.HTTP_ERROR
        )
        return ProbeOutcome(
            target=target.url,
            status=status,
            reason=reason,
            duration_seconds=duration,
            status_code=status_code,
        )

    async def _fetch_status(self, url: str) -> int:
        # The body is never read; leaving the stream context closes the response
        async with self.client.stream("GET", url) as response:
            return response.status_code

    def _transport_failure(
        self, target: Target, error: BaseException, duration: float
    ) -> ProbeOutcome:
        return ProbeOutcome(
            target=target.url,
            status=ProbeStatus.TRANSPORT_ERROR,
            reason=classify_transport_error(error),
            duration_seconds=duration,
            error=repr(error),
        )

    @staticmethod
    def _log_outcome(outcome: ProbeOutcome):
        code = outcome.status_code if outcome.status_code is not None else "-"
        line = (
            f"Target: {outcome.target} | Status: {outcome.status.value} | "
            f"Code: {code} | Reason: {outcome.reason.value} | "
            f"Latency: {outcome.duration_seconds:.3f}s"
        )
        if outcome.error:
            line += f" | Error: {outcome.error}"
        if outcome.is_error:
            logger.warning(line)
        else:
            logger.info(line)
