"""Tests for the OpenCV + dlib face capability without model files."""

import sys
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from face_locker.constants import ModelConfig


@pytest.fixture
def model_config(tmp_path):
    return ModelConfig(model_dir=str(tmp_path))


def touch_models(config):
    for filename in (
        config.detector_model,
        config.detector_config,
        config.shape_predictor,
        config.descriptor_model,
    ):
        config.path(filename).write_bytes(b"not a model")


class TestDlibFaceCapability:
    """Test cases for DlibFaceCapability loading."""

    def test_not_loaded_initially(self, model_config):
        from face_locker.detection import DlibFaceCapability

        capability = DlibFaceCapability(model_config)

        assert capability.name == "opencv_dnn+dlib"
        assert capability.is_loaded is False

    def test_missing_model_files(self, model_config):
        from face_locker.detection import DlibFaceCapability
        from face_locker.errors import ModelLoadError

        capability = DlibFaceCapability(model_config)

        with patch.dict(sys.modules, {"dlib": MagicMock()}):
            with pytest.raises(ModelLoadError) as excinfo:
                capability.load()

        assert "Model file not found" in str(excinfo.value)
        assert capability.is_loaded is False

    def test_missing_dlib_module(self, model_config):
        from face_locker.detection import DlibFaceCapability
        from face_locker.errors import ModelLoadError

        # A None entry makes the import raise ImportError
        with patch.dict(sys.modules, {"dlib": None}):
            with pytest.raises(ModelLoadError) as excinfo:
                DlibFaceCapability(model_config).load()

        assert "dlib is required" in str(excinfo.value)

    def test_corrupt_model_files(self, model_config):
        from face_locker.detection import DlibFaceCapability
        from face_locker.errors import ModelLoadError

        touch_models(model_config)
        capability = DlibFaceCapability(model_config)

        with patch.dict(sys.modules, {"dlib": MagicMock()}):
            with pytest.raises(ModelLoadError):
                capability.load()

        assert capability.is_loaded is False

    def test_detect_before_load(self, model_config):
        from face_locker.detection import DlibFaceCapability
        from face_locker.errors import ModelLoadError

        capability = DlibFaceCapability(model_config)
        image = np.zeros((300, 300, 3), dtype=np.uint8)

        with pytest.raises(ModelLoadError):
            capability.detect(image, min_score=0.5)
