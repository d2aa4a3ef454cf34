"""Worker count selection for the conversion pool."""

from __future__ import annotations

import logging
import time

import psutil

LOG = logging.getLogger(__name__)

# Conversions mostly wait on ffmpeg, but each one still burns a core
DEFAULT_MAX_WORKERS = 4
FALLBACK_WORKERS = 1
MEMORY_THRESHOLD = 80
CPU_BUSY_THRESHOLD = 90


def get_worker_count(configured_workers: int | None) -> int:
    """
    Get the number of concurrent conversions to run.

    Args:
        configured_workers: Worker count from config/CLI, or None for auto-detection

    Returns:
        A positive worker count

    """
    if configured_workers is not None and configured_workers > 0:
        return configured_workers

    try:
        physical_cores = psutil.cpu_count(logical=False) or 1
        workers = min(DEFAULT_MAX_WORKERS, max(1, physical_cores))

        memory = psutil.virtual_memory()
        if memory.percent > MEMORY_THRESHOLD:
            workers = max(1, workers // 2)
            LOG.warning("High memory usage (%.1f%%), reducing workers to %d", memory.percent, workers)

        LOG.info("Using %d workers (%d physical cores)", workers, physical_cores)
    except (OSError, AttributeError, ValueError) as e:
        LOG.warning("Failed to detect system specs with psutil: %s. Using %d worker.", e, FALLBACK_WORKERS)
        return FALLBACK_WORKERS
    else:
        return workers


def check_cpu_pressure() -> None:
    """Pause briefly when the CPU is saturated."""
    try:
        cpu_percent = psutil.cpu_percent(interval=None)
        if cpu_percent > CPU_BUSY_THRESHOLD:
            LOG.debug("High CPU usage during conversion: %.1f%%", cpu_percent)
            time.sleep(0.5)
    except (OSError, AttributeError):
        LOG.debug("Could not check CPU usage")
