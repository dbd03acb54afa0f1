"""
Multi-Frame Detection

Helpers that decide how many stack entries an image expands into.
Multi-frame DICOM instances (NumberOfFrames > 1) contribute one image ID per
frame; everything else contributes a single image ID.

Inputs:
    - pydicom.Dataset objects
    - Raw NumberOfFrames values (int, str, IS, None)

Outputs:
    - Frame counts (always >= 1)
    - Boolean multi-frame flags

Requirements:
    - pydicom library
"""

from typing import Any
from pydicom.dataset import Dataset


def parse_frame_count(value: Any) -> int:
    """
    Normalize a NumberOfFrames value to a frame count.

    Args:
        value: NumberOfFrames as read from a dataset (may be str, IS, int or None)

    Returns:
        The frame count, or 1 when the value is missing, unparsable or below 1
    """
    if value is None:
        return 1
    try:
        count = int(str(value).strip())
    except (ValueError, TypeError):
        return 1
    return count if count > 1 else 1


def get_frame_count(dataset: Dataset) -> int:
    """
    Get the number of frames in a DICOM dataset.

    Args:
        dataset: pydicom Dataset

    Returns:
        Number of frames (1 for single-frame, >1 for multi-frame)
    """
    return parse_frame_count(getattr(dataset, "NumberOfFrames", None))


def is_multiframe(dataset: Dataset) -> bool:
    """
    Check if a DICOM dataset contains multiple frames.

    Args:
        dataset: pydicom Dataset

    Returns:
        True if dataset contains multiple frames, False otherwise
    """
    return get_frame_count(dataset) > 1
