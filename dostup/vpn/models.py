"""Data models for VPN supervision."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class VPNState(Enum):
    """VPN process state, derived from the process table on every poll"""
    STOPPED = "stopped"
    RUNNING = "running"

    @classmethod
    def from_running(cls, running: bool) -> "VPNState":
        return cls.RUNNING if running else cls.STOPPED


class OutcomeKind(Enum):
    SUCCESS = "success"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class CommandOutcome:
    """Result of a privileged command"""
    kind: OutcomeKind
    message: str = ""

    @classmethod
    def success(cls) -> "CommandOutcome":
        return cls(OutcomeKind.SUCCESS)

    @classmethod
    def failed(cls, message: str) -> "CommandOutcome":
        return cls(OutcomeKind.FAILED, message)

    @classmethod
    def cancelled(cls) -> "CommandOutcome":
        return cls(OutcomeKind.CANCELLED)

    @property
    def is_success(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS

    @property
    def is_cancelled(self) -> bool:
        return self.kind is OutcomeKind.CANCELLED


class ProviderKind(Enum):
    """Provider collections exposed by the control plane"""
    PROXY = "proxies"
    RULE = "rules"


@dataclass(frozen=True)
class Provider:
    name: str
    kind: ProviderKind


@dataclass
class ProxyHealthRecord:
    """Health summary of one proxy provider"""
    provider_name: str
    alive_count: int = 0
    total_count: int = 0
    average_delay_ms: int = 0
    error: bool = False
    trigger_failed: bool = False

    @classmethod
    def from_histories(cls, provider_name: str,
                       histories: List[List[Optional[int]]]) -> "ProxyHealthRecord":
        """
        Build a record from the delay histories of every proxy.

        Args:
            provider_name: Provider the proxies belong to
            histories: One list of delay samples per proxy, oldest first

        Returns:
            ProxyHealthRecord
        """
        delays = []
        for history in histories:
            # Only the latest sample counts
            if history and history[-1] is not None and history[-1] > 0:
                delays.append(history[-1])
        average = sum(delays) // len(delays) if delays else 0
        return cls(
            provider_name=provider_name,
            alive_count=len(delays),
            total_count=len(histories),
            average_delay_ms=average,
        )

    @classmethod
    def failed(cls, provider_name: str) -> "ProxyHealthRecord":
        return cls(provider_name=provider_name, error=True)

    @property
    def healthy(self) -> bool:
        return not self.error and not self.trigger_failed and self.alive_count > 0

    def summary_line(self) -> str:
        if self.error:
            return f"{self.provider_name}: error"
        if self.alive_count == 0:
            return f"{self.provider_name}: 0/{self.total_count}"
        return (f"{self.provider_name}: {self.alive_count}/{self.total_count} "
                f"(avg {self.average_delay_ms}ms)")


@dataclass
class HealthReport:
    records: List[ProxyHealthRecord] = field(default_factory=list)
    listing_failed: bool = False

    @property
    def has_errors(self) -> bool:
        return self.listing_failed or any(not r.healthy for r in self.records)

    def summary(self) -> str:
        return "\n".join(record.summary_line() for record in self.records)


@dataclass
class PresentationState:
    """Everything the status presenter shows, owned by the event loop"""
    running: bool = False
    status_text: str = ""
    toggle_title: str = ""
    menu_enabled: Dict[str, bool] = field(default_factory=dict)
    last_result: Optional[bool] = None
    last_message: str = ""
