"""
Display Set Factory

This module groups loaded DICOM datasets into studies and display sets so
they can be handed to the stack manager. Datasets are grouped by
StudyInstanceUID and by a composite series key (SeriesInstanceUID +
SeriesNumber); images inside a display set are ordered by InstanceNumber.
Multi-frame instances stay one image each; the stack builder expands their
frames.

Inputs:
    - List of pydicom.Dataset objects (optionally with file paths)

Outputs:
    - Study objects keyed by StudyInstanceUID
    - Ordered DisplaySet lists per study

Requirements:
    - pydicom library
    - typing for type hints
"""

from collections import OrderedDict
from typing import Any, Dict, List, Optional, Tuple
from pydicom.dataset import Dataset
from core.multiframe_handler import get_frame_count
from core.stack_models import DisplaySet, StackImage, Study
from utils.config_manager import ConfigManager

# SOP Classes that carry no pixel data for a stack
GRAYSCALE_PRESENTATION_STATE_UID = '1.2.840.10008.5.1.4.1.1.11.1'
COLOR_PRESENTATION_STATE_UID = '1.2.840.10008.5.1.4.1.1.11.2'
KEY_OBJECT_SELECTION_UID = '1.2.840.10008.5.1.4.1.1.88.59'
NON_IMAGE_SOP_CLASS_UIDS = frozenset((
    GRAYSCALE_PRESENTATION_STATE_UID,
    COLOR_PRESENTATION_STATE_UID,
    KEY_OBJECT_SELECTION_UID,
))


def get_composite_series_key(dataset: Dataset) -> str:
    """
    Get the key a dataset's series is grouped under.

    The same SeriesInstanceUID appearing with different SeriesNumber values
    is treated as separate series.

    Args:
        dataset: pydicom Dataset

    Returns:
        "SeriesInstanceUID_SeriesNumber", or "SeriesInstanceUID" when the
        dataset has no SeriesNumber
    """
    series_uid = str(getattr(dataset, "SeriesInstanceUID", "") or "")
    series_number = getattr(dataset, "SeriesNumber", None)
    if series_number is None or str(series_number) == "":
        return series_uid
    return f"{series_uid}_{series_number}"


def _get_tag_value(dataset: Dataset, tag_name: str, default: Any = None) -> Any:
    """Return a tag value by keyword, or default when absent or empty."""
    value = getattr(dataset, tag_name, None)
    if value is None or value == "":
        return default
    return value


def _to_int(value: Any) -> Optional[int]:
    """Convert IS / str / int values to int, or None when not numeric."""
    if value is None:
        return None
    try:
        return int(str(value).strip())
    except (ValueError, TypeError):
        return None


class DisplaySetFactory:
    """
    Builds Study and DisplaySet objects from pydicom datasets.

    Studies and display sets keep first-seen order; call create() again to
    rebuild from a new list of datasets.
    """

    def __init__(self, config_manager: Optional[ConfigManager] = None):
        """
        Initialize the factory.

        Args:
            config_manager: Optional configuration; its
                sort_images_by_instance_number key controls image ordering
        """
        self.config_manager = config_manager
        self.studies: Dict[str, Study] = OrderedDict()
        self.display_sets: Dict[str, List[DisplaySet]] = OrderedDict()

    def create(self, datasets: List[Dataset],
               file_paths: Optional[List[str]] = None) -> Dict[str, List[DisplaySet]]:
        """
        Group datasets into studies and display sets.

        Presentation State and Key Object Selection datasets, and datasets
        without a StudyInstanceUID, SeriesInstanceUID or SOPInstanceUID,
        are skipped.

        Args:
            datasets: List of pydicom.Dataset objects
            file_paths: Optional list of file paths corresponding to datasets

        Returns:
            Dictionary {StudyInstanceUID: [DisplaySet, ...]}
        """
        self.studies = OrderedDict()
        self.display_sets = OrderedDict()

        grouped: Dict[str, Dict[str, List[Tuple[Dataset, Optional[str]]]]] = OrderedDict()
        for idx, dataset in enumerate(datasets):
            path = file_paths[idx] if file_paths and idx < len(file_paths) else None

            sop_class_uid = str(_get_tag_value(dataset, "SOPClassUID", ""))
            if sop_class_uid in NON_IMAGE_SOP_CLASS_UIDS:
                continue

            study_uid = str(_get_tag_value(dataset, "StudyInstanceUID", ""))
            series_uid = str(_get_tag_value(dataset, "SeriesInstanceUID", ""))
            sop_instance_uid = str(_get_tag_value(dataset, "SOPInstanceUID", ""))
            if not study_uid or not series_uid or not sop_instance_uid:
                continue

            if study_uid not in self.studies:
                self.studies[study_uid] = self._create_study(dataset)
            else:
                self._add_modality(self.studies[study_uid], dataset)

            series_key = get_composite_series_key(dataset)
            grouped.setdefault(study_uid, OrderedDict()).setdefault(series_key, []).append((dataset, path))

        for study_uid, series_map in grouped.items():
            self.display_sets[study_uid] = [
                self._create_display_set(series_key, items)
                for series_key, items in series_map.items()
            ]

        return self.display_sets

    def get_study(self, study_instance_uid: str) -> Optional[Study]:
        """Return the Study created for a StudyInstanceUID, or None."""
        return self.studies.get(study_instance_uid)

    def get_display_sets(self, study_instance_uid: str) -> List[DisplaySet]:
        """Return the display sets of a study (empty list if unknown)."""
        return self.display_sets.get(study_instance_uid, [])

    def _create_study(self, dataset: Dataset) -> Study:
        study = Study(
            study_instance_uid=str(_get_tag_value(dataset, "StudyInstanceUID", "")),
            patient_name=str(_get_tag_value(dataset, "PatientName", "")),
            patient_id=str(_get_tag_value(dataset, "PatientID", "")),
            study_date=str(_get_tag_value(dataset, "StudyDate", "")),
            study_description=str(_get_tag_value(dataset, "StudyDescription", "")),
        )
        self._add_modality(study, dataset)
        return study

    def _add_modality(self, study: Study, dataset: Dataset) -> None:
        modality = str(_get_tag_value(dataset, "Modality", ""))
        if modality and modality not in study.modalities:
            study.modalities.append(modality)

    def _create_display_set(self, series_key: str,
                            items: List[Tuple[Dataset, Optional[str]]]) -> DisplaySet:
        first = items[0][0]
        images = [self._create_image(ds, path) for ds, path in items]
        if self._sort_by_instance_number():
            images = self._sort_images(images)
        return DisplaySet(
            display_set_instance_uid=series_key,
            images=images,
            series_instance_uid=str(_get_tag_value(first, "SeriesInstanceUID", "")),
            series_number=_to_int(_get_tag_value(first, "SeriesNumber")),
            series_description=str(_get_tag_value(first, "SeriesDescription", "")),
            modality=str(_get_tag_value(first, "Modality", "")),
        )

    def _create_image(self, dataset: Dataset, path: Optional[str]) -> StackImage:
        return StackImage(
            sop_instance_uid=str(_get_tag_value(dataset, "SOPInstanceUID", "")),
            num_frames=get_frame_count(dataset),
            instance_number=_to_int(_get_tag_value(dataset, "InstanceNumber")),
            file_path=path,
            dataset=dataset,
        )

    @staticmethod
    def _sort_images(images: List[StackImage]) -> List[StackImage]:
        """Sort by InstanceNumber; images without one keep their order at the end."""
        def get_sort_key(image: StackImage) -> Tuple[int, int]:
            if image.instance_number is None:
                return (1, 0)
            return (0, image.instance_number)
        return sorted(images, key=get_sort_key)

    def _sort_by_instance_number(self) -> bool:
        if self.config_manager is None:
            return True
        return self.config_manager.get_sort_images_by_instance_number()
