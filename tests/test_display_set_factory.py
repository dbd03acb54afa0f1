"""
Unit tests for DisplaySetFactory (core.display_set_factory) and the
multi-frame helpers it relies on (core.multiframe_handler).

Builds minimal pydicom Datasets in memory; no DICOM files required.
"""

import os
import sys
import tempfile
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from pydicom.dataset import Dataset

from core.display_set_factory import (
    DisplaySetFactory,
    GRAYSCALE_PRESENTATION_STATE_UID,
    get_composite_series_key,
)
from core.multiframe_handler import get_frame_count, is_multiframe, parse_frame_count
from core.stack_manager import StackManager
from utils.config_manager import ConfigManager

CT_IMAGE_STORAGE = "1.2.840.10008.5.1.4.1.1.2"


def _make_dataset(sop_uid, instance_number=None, series_uid="1.2.3.100",
                  series_number=1, study_uid="1.2.3", num_frames=None, modality="CT"):
    ds = Dataset()
    ds.SOPClassUID = CT_IMAGE_STORAGE
    ds.SOPInstanceUID = sop_uid
    ds.StudyInstanceUID = study_uid
    ds.SeriesInstanceUID = series_uid
    if series_number is not None:
        ds.SeriesNumber = series_number
    if instance_number is not None:
        ds.InstanceNumber = instance_number
    if num_frames is not None:
        ds.NumberOfFrames = num_frames
    ds.Modality = modality
    ds.PatientName = "Test^Patient"
    ds.PatientID = "PID1"
    ds.StudyDate = "20240101"
    return ds


class TestMultiframeHandler(unittest.TestCase):
    """Tests for frame counting."""

    def test_missing_tag_is_single_frame(self):
        ds = Dataset()
        self.assertEqual(get_frame_count(ds), 1)
        self.assertFalse(is_multiframe(ds))

    def test_numeric_and_string_values(self):
        ds = Dataset()
        ds.NumberOfFrames = 5
        self.assertEqual(get_frame_count(ds), 5)
        self.assertTrue(is_multiframe(ds))
        self.assertEqual(parse_frame_count(" 3 "), 3)

    def test_invalid_values_count_as_one(self):
        self.assertEqual(parse_frame_count("abc"), 1)
        self.assertEqual(parse_frame_count(0), 1)
        self.assertEqual(parse_frame_count(None), 1)


class TestCompositeSeriesKey(unittest.TestCase):
    """Tests for get_composite_series_key."""

    def test_with_series_number(self):
        ds = _make_dataset("1", series_uid="9.9", series_number=4)
        self.assertEqual(get_composite_series_key(ds), "9.9_4")

    def test_without_series_number(self):
        ds = _make_dataset("1", series_uid="9.9", series_number=None)
        self.assertEqual(get_composite_series_key(ds), "9.9")


class TestDisplaySetFactory(unittest.TestCase):
    """Tests for DisplaySetFactory.create."""

    def setUp(self):
        self.factory = DisplaySetFactory()

    def test_groups_by_study_and_series(self):
        datasets = [
            _make_dataset("1", 1, series_uid="1.2.3.100", series_number=1),
            _make_dataset("2", 1, series_uid="1.2.3.200", series_number=2),
            _make_dataset("3", 2, series_uid="1.2.3.100", series_number=1),
            _make_dataset("4", 1, study_uid="7.7", series_uid="7.7.1"),
        ]
        result = self.factory.create(datasets)
        self.assertEqual(list(result), ["1.2.3", "7.7"])
        uids = [d.display_set_instance_uid for d in result["1.2.3"]]
        self.assertEqual(uids, ["1.2.3.100_1", "1.2.3.200_2"])
        self.assertEqual([i.sop_instance_uid for i in result["1.2.3"][0].images], ["1", "3"])

    def test_same_series_uid_different_series_number_split(self):
        datasets = [
            _make_dataset("1", 1, series_number=1),
            _make_dataset("2", 1, series_number=2),
        ]
        result = self.factory.create(datasets)
        self.assertEqual(len(result["1.2.3"]), 2)

    def test_sorted_by_instance_number_missing_last(self):
        datasets = [
            _make_dataset("c", None),
            _make_dataset("b", 2),
            _make_dataset("a", 1),
        ]
        display_set = self.factory.create(datasets)["1.2.3"][0]
        self.assertEqual([i.sop_instance_uid for i in display_set.images], ["a", "b", "c"])

    def test_keeps_input_order_when_sorting_disabled(self):
        with tempfile.TemporaryDirectory() as tmp:
            config = ConfigManager(config_dir=tmp)
            config.set_sort_images_by_instance_number(False)
            factory = DisplaySetFactory(config_manager=config)
            datasets = [_make_dataset("b", 2), _make_dataset("a", 1)]
            display_set = factory.create(datasets)["1.2.3"][0]
            self.assertEqual([i.sop_instance_uid for i in display_set.images], ["b", "a"])

    def test_skips_presentation_states_and_incomplete_datasets(self):
        ps = _make_dataset("ps", 1)
        ps.SOPClassUID = GRAYSCALE_PRESENTATION_STATE_UID
        no_series = Dataset()
        no_series.StudyInstanceUID = "1.2.3"
        result = self.factory.create([ps, no_series, _make_dataset("1", 1)])
        self.assertEqual(len(result["1.2.3"]), 1)
        self.assertEqual(len(result["1.2.3"][0].images), 1)

    def test_skips_datasets_without_sop_instance_uid(self):
        no_sop = Dataset()
        no_sop.StudyInstanceUID = "1.2.3"
        no_sop.SeriesInstanceUID = "1.2.3.100"
        result = self.factory.create([no_sop, _make_dataset("1", 1)])
        display_set = result["1.2.3"][0]
        self.assertEqual([i.sop_instance_uid for i in display_set.images], ["1"])
        stack = StackManager().make_and_add_stack(self.factory.get_study("1.2.3"), display_set)
        self.assertEqual(stack, ("sop:1",))

    def test_only_incomplete_datasets_yield_no_display_sets(self):
        no_sop = Dataset()
        no_sop.StudyInstanceUID = "1.2.3"
        no_sop.SeriesInstanceUID = "1.2.3.100"
        self.assertEqual(self.factory.create([no_sop]), {})
        self.assertIsNone(self.factory.get_study("1.2.3"))

    def test_image_fields(self):
        result = self.factory.create([_make_dataset("1", 3, num_frames="4")], file_paths=["/data/1.dcm"])
        image = result["1.2.3"][0].images[0]
        self.assertEqual(image.num_frames, 4)
        self.assertTrue(image.is_multiframe)
        self.assertEqual(image.instance_number, 3)
        self.assertEqual(image.file_path, "/data/1.dcm")
        self.assertIsNotNone(image.dataset)

    def test_study_fields(self):
        datasets = [_make_dataset("1", 1, modality="CT"),
                    _make_dataset("2", 1, series_uid="1.2.3.300", modality="PT")]
        self.factory.create(datasets)
        study = self.factory.get_study("1.2.3")
        self.assertEqual(study.patient_id, "PID1")
        self.assertEqual(study.patient_name, "Test^Patient")
        self.assertEqual(study.study_date, "20240101")
        self.assertEqual(study.modalities, ["CT", "PT"])
        self.assertIsNone(self.factory.get_study("unknown"))
        self.assertEqual(self.factory.get_display_sets("unknown"), [])

    def test_display_sets_feed_stack_manager(self):
        datasets = [_make_dataset("1", 1), _make_dataset("2", 2, num_frames=2)]
        self.factory.create(datasets, file_paths=["/d/1.dcm", "/d/2.dcm"])
        study = self.factory.get_study("1.2.3")
        display_set = self.factory.get_display_sets("1.2.3")[0]
        manager = StackManager()
        stack = manager.make_and_add_stack(study, display_set)
        self.assertEqual(stack, ("dicomfile:/d/1.dcm", "dicomfile:/d/2.dcm?frame=0",
                                 "dicomfile:/d/2.dcm?frame=1"))
        self.assertEqual(manager.find_stack("1.2.3.100_1"), stack)


if __name__ == '__main__':
    unittest.main()
