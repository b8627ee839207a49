from abc import ABC, abstractmethod

from contracts.probe_outcome import ProbeOutcome


class MetricsSink(ABC):
    """
    Abstract base class for recording probe activity. Implementations only
    receive increment/observe style calls and must be safe to call from any
    probe task.
    """

    @abstractmethod
    def probe_started(self, target: str) -> None:
        """
        Record that a probe for the target is about to execute.

        Called before the outcome is known: counts the attempt and raises the
        in-flight level.

        Args:
            target (str): The target URL being probed.
        """

    @abstractmethod
    def probe_finished(self) -> None:
        """
        Lower the in-flight level. Called once per probe_started, on every exit path.
        """

    @abstractmethod
    def record_outcome(self, outcome: ProbeOutcome) -> None:
        """
        Record the latency and, for failed probes, the failure reason.

        Args:
            outcome (ProbeOutcome): The completed probe result.
        """
