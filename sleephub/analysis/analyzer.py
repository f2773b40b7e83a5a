# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Sleep stage summary for one batch of device samples.

The dashboard shows what is happening now, so the reported stage and
movement come from the newest sample in the batch rather than an average.
Stage counts and average movement cover the whole batch and are kept for
diagnostics.
"""

import logging
from typing import Any, Iterable, List, Optional

import numpy as np

from sleephub.analysis.scheduler import CYCLE_MS
from sleephub.models.device import AnalysisSnapshot, SleepSample, SleepStage

logger = logging.getLogger(__name__)


def _as_samples(samples: Optional[Iterable[Any]]) -> List[SleepSample]:
    if not samples:
        return []
    return [
        s if isinstance(s, SleepSample) else SleepSample.from_dict(s)
        for s in samples
    ]


def analyze(samples: Optional[Iterable[Any]], cycle_ms: int = CYCLE_MS) -> AnalysisSnapshot:
    """Summarize a batch of samples.

    Args:
        samples: SleepSample objects or raw wire dicts, oldest first
        cycle_ms: Sleep cycle length used for cycle_position

    Returns:
        AnalysisSnapshot. An empty batch gives the zeroed snapshot.
    """
    batch = _as_samples(samples)
    if not batch:
        return AnalysisSnapshot()

    last = batch[-1]

    stages = np.fromiter((int(s.stage) for s in batch), dtype=np.int64, count=len(batch))
    movement = np.fromiter((s.movement_score for s in batch), dtype=np.float64, count=len(batch))
    counts = np.bincount(stages, minlength=len(SleepStage))

    # Position within the current cycle, measured across this batch
    cycle_position = 0.0
    first_ts = batch[0].timestamp
    last_ts = last.timestamp
    if first_ts is not None and last_ts is not None:
        elapsed = max(0.0, last_ts - first_ts)
        if elapsed > 0:
            cycle_position = (elapsed % cycle_ms) / cycle_ms

    return AnalysisSnapshot(
        stage=last.stage,
        movement_level=last.movement_score,
        cycle_position=float(cycle_position),
        awake_count=int(counts[SleepStage.AWAKE]),
        light_count=int(counts[SleepStage.LIGHT]),
        deep_count=int(counts[SleepStage.DEEP]),
        avg_movement=float(movement.mean()),
    )
