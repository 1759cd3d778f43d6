"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/estimator.py
Rough upper bound on the number of entries a walk will visit.
Only used to turn "entries visited" into a progress fraction.
"""

import os
import logging

logger = logging.getLogger(__name__)

DIRECTORY_WEIGHT = 100    # Assumed entries per immediate subdirectory
MINIMUM_ESTIMATE = 1000   # Floor so shallow trees never look finished early
MAX_PROGRESS = 0.99       # Displayed progress stays below this until completion


def estimate_entry_count(root_dir: str) -> int:
    """
    Lists the root's immediate children once: 100 per subdirectory, 1 per file.
    Never raises; an unreadable root yields the floor.
    """
    count = 0
    try:
        with os.scandir(root_dir) as it:
            for entry in it:
                try:
                    is_dir = entry.is_dir(follow_symlinks=False)
                except OSError:
                    continue
                count += DIRECTORY_WEIGHT if is_dir else 1
    except OSError as e:
        logger.debug(f"Estimate fell back to floor for {root_dir}: {e}")

    return max(count, MINIMUM_ESTIMATE)


def progress_fraction(visited: int, estimate: int) -> float:
    """Clamped progress in [0, MAX_PROGRESS]; 1.0 is reserved for a finished walk."""
    if estimate <= 0 or visited <= 0:
        return 0.0
    return min(visited / estimate, MAX_PROGRESS)
