"""
Stack Metadata Provider

In-memory store for the metadata records emitted while stacks are built.
Records are keyed by image ID; adding a record for an existing image ID
replaces it. Overlay, orientation and reference-line code look records up
by image ID.

Inputs:
    - (image_id, StackImageMetadata) pairs from the stack builder
    - Lookup requests by image ID

Outputs:
    - Stored metadata records
    - Typed views ("instance", "series", "study", "stackImage")

Requirements:
    - typing for type hints
"""

from typing import Any, Dict, Optional
from core.stack_models import StackImageMetadata


class MetadataProvider:
    """
    Holds one StackImageMetadata record per image ID.
    """

    def __init__(self):
        """Initialize an empty provider."""
        self._metadata: Dict[str, StackImageMetadata] = {}

    def add_metadata(self, image_id: str, metadata: StackImageMetadata) -> None:
        """
        Store the metadata record for an image ID, replacing any previous record.

        Args:
            image_id: Image ID the record belongs to
            metadata: Metadata record
        """
        self._metadata[image_id] = metadata

    def get_metadata(self, image_id: str) -> Optional[StackImageMetadata]:
        """
        Get the metadata record for an image ID.

        Args:
            image_id: Image ID to look up

        Returns:
            The record, or None if nothing was stored for the image ID
        """
        return self._metadata.get(image_id)

    def get(self, metadata_type: str, image_id: str) -> Any:
        """
        Get one part of the record stored for an image ID.

        Args:
            metadata_type: "instance", "series", "study" or "stackImage"
            image_id: Image ID to look up

        Returns:
            The requested part, or None for an unknown image ID or type.
            "stackImage" returns a dict with numImages, imageIndex and frame.
        """
        metadata = self._metadata.get(image_id)
        if metadata is None:
            return None
        if metadata_type == "instance":
            return metadata.instance
        if metadata_type == "series":
            return metadata.series
        if metadata_type == "study":
            return metadata.study
        if metadata_type == "stackImage":
            return {
                "numImages": metadata.num_images,
                "imageIndex": metadata.image_index,
                "frame": metadata.frame,
            }
        return None

    def clear(self) -> None:
        """Remove all stored records."""
        self._metadata = {}

    def __len__(self) -> int:
        return len(self._metadata)

    def __contains__(self, image_id: str) -> bool:
        return image_id in self._metadata
