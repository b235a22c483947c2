from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from ..logging.error_log import FaultLogBuffer
from ..models.processing_result import RunResult
from ..models.profile import ProfileKind, TransformProfile
from . import ion_chromatography, voc_nmhc

"""Profile dispatch: Load -> Transform -> Emit for one input workbook.

Each profile kind maps to one processor with the same signature; a new
profile is a new entry in PROCESSORS plus its YAML table.
"""

__all__ = [
    "PROCESSORS",
    "process_file",
]

logger = logging.getLogger(__name__)

Processor = Callable[..., RunResult]

PROCESSORS: dict[ProfileKind, Processor] = {
    ProfileKind.ION_CHROMATOGRAPHY: ion_chromatography.process,
    ProfileKind.VOC_NMHC: voc_nmhc.process,
}


def process_file(
    profile: TransformProfile,
    input_path: Path,
    *,
    workdir: Path | None = None,
    fault_log: FaultLogBuffer | None = None,
) -> RunResult:
    """Run the profile's processor on one workbook.

    IOFault / FormatFault propagate to the caller; nothing has been written
    in that case. Buffered per-cell faults are flushed after a successful run.
    """
    processor = PROCESSORS[profile.kind]
    fault_log = fault_log if fault_log is not None else FaultLogBuffer()
    logger.info(f"profile={profile.name} input={input_path}")
    result = processor(input_path, profile, fault_log=fault_log, workdir=workdir)
    log_path = fault_log.flush()
    if log_path is not None:
        logger.info(f"fault log written: {log_path}")
    return result
