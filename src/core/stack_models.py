"""
Stack Data Model

This module defines the objects the stack manager works with: the study,
the display set (an ordered group of images shown together as one series),
the images inside a display set, and the metadata record attached to every
image ID of a stack.

Inputs:
    - Study / series / instance attributes (usually read from pydicom datasets)

Outputs:
    - Study, DisplaySet, StackImage and StackImageMetadata objects

Requirements:
    - pydicom for the optional Dataset reference kept on each image
    - typing for type hints
"""

from typing import Any, Dict, List, Optional
from pydicom.dataset import Dataset


class Study:
    """
    A study: its UID plus the fields overlays and metadata consumers read.

    Owned by the caller; the stack manager never modifies it.
    """

    def __init__(self, study_instance_uid: str, patient_name: str = "",
                 patient_id: str = "", study_date: str = "",
                 study_description: str = "",
                 modalities: Optional[List[str]] = None):
        self.study_instance_uid = study_instance_uid
        self.patient_name = patient_name
        self.patient_id = patient_id
        self.study_date = study_date
        self.study_description = study_description
        self.modalities = list(modalities) if modalities else []

    def __repr__(self) -> str:
        return f"Study(study_instance_uid={self.study_instance_uid!r})"


class StackImage:
    """
    One image (SOP instance) of a display set.

    An image with more than one frame is a multi-frame image and expands
    into one stack entry per frame.
    """

    def __init__(self, sop_instance_uid: str = "", num_frames: Optional[int] = 1,
                 instance_number: Optional[int] = None,
                 image_id: Optional[str] = None, wadouri: Optional[str] = None,
                 wadorsuri: Optional[str] = None, file_path: Optional[str] = None,
                 dataset: Optional[Dataset] = None):
        """
        Initialize the image.

        Args:
            sop_instance_uid: SOPInstanceUID of the image
            num_frames: Number of frames (None or values below 1 count as 1)
            instance_number: InstanceNumber, used for ordering
            image_id: Explicit image ID; overrides every other locator
            wadouri: WADO-URI locator
            wadorsuri: WADO-RS instance locator
            file_path: Local file the image was read from
            dataset: Source pydicom Dataset, if one was loaded
        """
        self.sop_instance_uid = sop_instance_uid
        self.num_frames = num_frames
        self.instance_number = instance_number
        self.image_id = image_id
        self.wadouri = wadouri
        self.wadorsuri = wadorsuri
        self.file_path = file_path
        self.dataset = dataset

    @property
    def is_multiframe(self) -> bool:
        """True when the image holds more than one frame."""
        return self.num_frames is not None and self.num_frames > 1

    def __repr__(self) -> str:
        return (f"StackImage(sop_instance_uid={self.sop_instance_uid!r}, "
                f"num_frames={self.num_frames!r})")


class DisplaySet:
    """
    An ordered group of images presented together as one logical series.

    The display_set_instance_uid is the key the stack is stored under.
    """

    def __init__(self, display_set_instance_uid: str,
                 images: Optional[List[StackImage]] = None,
                 series_instance_uid: str = "", series_number: Optional[int] = None,
                 series_description: str = "", modality: str = ""):
        self.display_set_instance_uid = display_set_instance_uid
        self.images: List[StackImage] = list(images) if images else []
        self.series_instance_uid = series_instance_uid
        self.series_number = series_number
        self.series_description = series_description
        self.modality = modality

    def __len__(self) -> int:
        return len(self.images)

    def __repr__(self) -> str:
        return (f"DisplaySet(display_set_instance_uid={self.display_set_instance_uid!r}, "
                f"images={len(self.images)})")


class StackImageMetadata:
    """
    Metadata record emitted for one image ID of a stack.

    image_index is the 1-based position of the source image in its display
    set and is the same for every frame of a multi-frame image. frame is the
    0-based frame number, or None for single-frame images. num_images counts
    source images, not frames.
    """

    def __init__(self, instance: StackImage, series: DisplaySet, study: Study,
                 num_images: int, image_index: int, frame: Optional[int] = None):
        self.instance = instance
        self.series = series
        self.study = study
        self.num_images = num_images
        self.image_index = image_index
        self.frame = frame

    def to_dict(self) -> Dict[str, Any]:
        """
        Return the record as a dictionary; the "frame" key is only present
        for frames of multi-frame images.

        Returns:
            Dictionary with instance, series, study, numImages, imageIndex
            and optionally frame
        """
        record: Dict[str, Any] = {
            "instance": self.instance,
            "series": self.series,
            "study": self.study,
            "numImages": self.num_images,
            "imageIndex": self.image_index,
        }
        if self.frame is not None:
            record["frame"] = self.frame
        return record

    def __repr__(self) -> str:
        return (f"StackImageMetadata(image_index={self.image_index}, "
                f"num_images={self.num_images}, frame={self.frame!r})")
