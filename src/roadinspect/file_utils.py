#!/usr/bin/env python3
"""
Filename utilities for generating report filenames.
"""

import os
import logging

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 180
INPUT_EXTENSIONS = (".gpx", ".json")


def generate_output_filename(input_filename: str) -> str:
    """
    Generates an output JSON report filename and reserves it by creating an empty file.

    Strategy:
    1. If input ends with .gpx or .json (case-insensitive), drop it
    2. Append " report.json"
    3. If file exists, try " report (1).json", " report (2).json", etc.
    4. Stop after 180 numbered attempts
    5. Use exclusive open (`open(path, 'x')`) to avoid race conditions and reserve the name.

    Args:
        input_filename: Path to the first input file

    Returns:
        Safe output filename that has been created as an empty file to reserve its name

    Raises:
        RuntimeError: If no available filename found after 180 attempts
        ValueError: If a filename cannot be created (e.g., due to permissions or an invalid name detected by the OS)
    """
    input_dir = os.path.dirname(input_filename)
    base_name = os.path.basename(input_filename)

    for extension in INPUT_EXTENSIONS:
        if base_name.lower().endswith(extension):
            base_name = base_name[: -len(extension)]
            break

    base_output = base_name + " report"

    candidates = [os.path.join(input_dir, base_output + ".json")]
    candidates.extend(
        os.path.join(input_dir, f"{base_output} ({i}).json")
        for i in range(1, MAX_ATTEMPTS + 1)
    )

    for candidate in candidates:
        try:
            with open(candidate, "x"):
                pass
            return candidate
        except FileExistsError:
            continue
        except (PermissionError, OSError) as e:
            logger.error(f"Cannot create file {candidate}: {e}")
            raise ValueError(f"Cannot create file: {e}")

    logger.error(
        f"Could not find an available filename after {MAX_ATTEMPTS} attempts. "
        f"Please clean up your output directory or specify --output explicitly."
    )
    raise RuntimeError(f"No available filename found after {MAX_ATTEMPTS} attempts")
