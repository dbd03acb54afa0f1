"""
Image ID Generation

Builds the opaque image ID strings that identify one renderable 2-D image
(one frame of one instance). IDs are deterministic for the same image and
frame so a rebuilt stack addresses the same metadata records.

Locator precedence:
    1. An explicit image_id set on the image
    2. WADO-RS   -> "wadors:<uri>/frames/<frame + 1>"
    3. WADO-URI  -> "dicomweb:<uri>" with a "frame" query parameter
    4. File path -> "dicomfile:<path>" with a "frame" query parameter
    5. SOP UID   -> "sop:<uid>" with a "frame" query parameter

Inputs:
    - StackImage objects
    - Optional 0-based frame index

Outputs:
    - Image ID strings

Requirements:
    - typing for type hints
"""

from typing import Optional
from core.stack_models import StackImage


def _append_frame(base: str, frame: Optional[int]) -> str:
    """Append a frame query parameter, respecting an existing query string."""
    if frame is None:
        return base
    separator = "&" if "?" in base else "?"
    return f"{base}{separator}frame={frame}"


def get_image_id(image: StackImage, frame: Optional[int] = None,
                 prefer_wadouri: bool = False) -> str:
    """
    Get the image ID for an image, or for one frame of a multi-frame image.

    Args:
        image: The image to address
        frame: 0-based frame index, or None for a single-frame image
        prefer_wadouri: Use the WADO-URI locator even when a WADO-RS one exists

    Returns:
        Image ID string

    Raises:
        ValueError: If the image carries no locator at all
    """
    if image.image_id:
        return _append_frame(image.image_id, frame)

    if image.wadorsuri and not (prefer_wadouri and image.wadouri):
        frame_number = (frame if frame is not None else 0) + 1
        return f"wadors:{image.wadorsuri}/frames/{frame_number}"

    if image.wadouri:
        return _append_frame(f"dicomweb:{image.wadouri}", frame)

    if image.file_path:
        return _append_frame(f"dicomfile:{image.file_path}", frame)

    if image.sop_instance_uid:
        return _append_frame(f"sop:{image.sop_instance_uid}", frame)

    raise ValueError(f"Cannot build an image ID for {image!r}: no locator available")
