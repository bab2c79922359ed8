from __future__ import annotations

import argparse
import sys
import threading
from dataclasses import dataclass
from typing import Optional

from memwatch.core.config import MemwatchConfig, load_config
from memwatch.core.error_reporter import ErrorReporter, ErrorReporterConfig
from memwatch.core.errors import ConfigError
from memwatch.core.events.bus import EventBus
from memwatch.core.events.logger import EventLogger
from memwatch.core.events.registry import MESSAGE
from memwatch.core.events.subscribers import FileSink
from memwatch.core.logger import setup_logging
from memwatch.core.telemetry.resources import MemoryProbe
from memwatch.core.telemetry.sampler import MemorySampler


@dataclass
class Pipeline:
    bus: EventBus
    event_logger: EventLogger
    file_sink: FileSink
    sampler: MemorySampler
    error_reporter: ErrorReporter


def build_pipeline(cfg: MemwatchConfig, *, logger=None, probe: Optional[MemoryProbe] = None) -> Pipeline:
    """Wire bus, logger, sink and sampler together. Nothing here is process-global."""
    error_reporter = ErrorReporter(
        path=cfg.errors.path,
        cfg=ErrorReporterConfig(include_tracebacks=cfg.errors.include_tracebacks),
        logger=logger,
    )
    bus = EventBus(cfg=cfg.event_bus, logger=logger, error_reporter=error_reporter)
    file_sink = FileSink(cfg=cfg.event_log)
    bus.subscribe(MESSAGE, file_sink.on_message)
    event_logger = EventLogger(bus)
    sampler = MemorySampler(event_logger=event_logger, probe=probe, error_reporter=error_reporter, logger=logger)
    return Pipeline(bus=bus, event_logger=event_logger, file_sink=file_sink, sampler=sampler, error_reporter=error_reporter)


def main(argv: Optional[list[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="memwatch: log host memory usage to an event log")
    ap.add_argument("--config", default=None, help="Path to config JSON (default: config/memwatch.json).")
    ap.add_argument("--once", action="store_true", help="Take a single memory sample and exit.")
    args = ap.parse_args(argv)

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        print(f"ERROR: {e.user_message} {e.context}", file=sys.stderr)
        return 2

    logger = setup_logging(cfg.logging.log_dir, level=cfg.logging.level, max_bytes=cfg.logging.max_bytes, backup_count=cfg.logging.backup_count)
    pipeline = build_pipeline(cfg, logger=logger)
    logger.info(f"Event log: {pipeline.file_sink.path}")

    if args.once:
        return 0 if pipeline.sampler.tick() is not None else 1

    pipeline.event_logger.log("Application started...")
    pipeline.event_logger.log("Application event occurred")

    pipeline.sampler.start()
    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        logger.info("Interrupted; stopping sampler.")
    finally:
        pipeline.sampler.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
