from __future__ import annotations

from dataclasses import dataclass

from memwatch.core.errors import MetricsUnavailableError


@dataclass(frozen=True)
class MemoryReading:
    total_bytes: int
    free_bytes: int

    @property
    def free_percent(self) -> float:
        return float(self.free_bytes) / float(self.total_bytes) * 100.0


class MemoryProbe:
    """Reads physical memory figures for the current host via psutil."""

    def __init__(self) -> None:
        self._psutil = None
        try:
            import psutil  # type: ignore

            self._psutil = psutil
        except ImportError:
            self._psutil = None

    def has_psutil(self) -> bool:
        return self._psutil is not None

    def read(self) -> MemoryReading:
        psutil = self._psutil
        if psutil is None:
            raise MetricsUnavailableError(reason="psutil not installed")
        try:
            vm = psutil.virtual_memory()
            # `available` is what the OS could hand out without swapping
            total, free = int(vm.total), int(vm.available)
        except Exception as e:  # noqa: BLE001
            raise MetricsUnavailableError(reason="virtual_memory failed", detail=str(e)) from e
        if total <= 0:
            raise MetricsUnavailableError(reason="total memory reported as zero")
        return MemoryReading(total_bytes=total, free_bytes=free)
