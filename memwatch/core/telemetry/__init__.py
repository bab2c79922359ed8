"""
Host memory sampling.

A MemoryProbe reads total/free physical memory through psutil; a MemorySampler turns
one reading every few seconds into a log message.
"""

from memwatch.core.telemetry.resources import MemoryProbe, MemoryReading
from memwatch.core.telemetry.sampler import MemorySampler, format_memory_message

__all__ = ["MemoryProbe", "MemoryReading", "MemorySampler", "format_memory_message"]
