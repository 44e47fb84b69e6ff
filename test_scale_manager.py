#!/usr/bin/env python3
"""
Test scale calibration from a reference line and its real length
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

import pytest

from calculations.errors import InvalidLengthError, ScaleNotSetError
from drawing.scale_manager import (
    RECALIBRATION_WARNING, CalibrationPhase, ScaleManager, parse_real_length,
)
from models.design_state import ScaleInfo


def calibrate(manager, start=(0, 0), end=(100, 0), length="5"):
    manager.begin_reference_line(start)
    manager.complete_reference_line(end)
    manager.request_real_length()
    return manager.submit_real_length(length)


def test_scale_calculations():
    """100 px reference line measured as 5 m gives 0.05 m/px"""
    manager = ScaleManager()
    assert not manager.is_calibrated
    assert manager.phase == CalibrationPhase.AWAITING_REFERENCE_LINE

    info = calibrate(manager)

    assert info == ScaleInfo(pixel_distance=100.0, real_distance_m=5.0, ratio=0.05)
    assert manager.phase == CalibrationPhase.CALIBRATED
    assert manager.pixels_to_real(200) == pytest.approx(10.0)
    assert manager.real_to_pixels(1.0) == pytest.approx(20.0)
    assert manager.calculate_distance((0, 0), (30, 40)) == pytest.approx(2.5)
    assert manager.calculate_area(400) == pytest.approx(1.0)


def test_conversions_need_calibration():
    manager = ScaleManager()
    with pytest.raises(ScaleNotSetError):
        manager.pixels_to_real(10)


@pytest.mark.parametrize("value", ["abc", "", 0, -1, "-2.5", float('nan'), float('inf'), True, None])
def test_invalid_real_length_keeps_prompt_open(value):
    manager = ScaleManager()
    manager.begin_reference_line((0, 0))
    manager.complete_reference_line((0, 50))
    manager.request_real_length()

    with pytest.raises(InvalidLengthError):
        manager.submit_real_length(value)

    assert manager.phase == CalibrationPhase.AWAITING_REAL_LENGTH
    assert not manager.is_calibrated
    # a valid retry still completes
    assert manager.submit_real_length("2.5").ratio == pytest.approx(0.05)


def test_parse_real_length_accepts_numeric_strings():
    assert parse_real_length(" 2.5 ") == 2.5
    assert parse_real_length(3) == 3.0


def test_zero_length_reference_line_is_rejected():
    manager = ScaleManager()
    manager.begin_reference_line((10, 10))
    with pytest.raises(InvalidLengthError):
        manager.complete_reference_line((10, 10))
    assert manager.line_in_progress


def test_recalibration_keeps_old_ratio_until_accepted():
    manager = ScaleManager()
    calibrate(manager)
    warnings = []
    manager.recalibration_warning.connect(warnings.append)

    manager.begin_reference_line((0, 0))
    manager.complete_reference_line((0, 200))

    assert warnings == [RECALIBRATION_WARNING]
    assert manager.ratio == pytest.approx(0.05)

    manager.cancel()
    assert manager.phase == CalibrationPhase.CALIBRATED
    assert manager.ratio == pytest.approx(0.05)

    info = calibrate(manager, end=(0, 200), length=5)
    assert info.ratio == pytest.approx(0.025)


def test_sync_adopts_state_scale():
    manager = ScaleManager()
    manager.sync(ScaleInfo(pixel_distance=10.0, real_distance_m=1.0, ratio=0.1))
    assert manager.phase == CalibrationPhase.CALIBRATED
    manager.sync(ScaleInfo())
    assert manager.phase == CalibrationPhase.AWAITING_REFERENCE_LINE
    assert manager.ratio is None


def test_format_helpers():
    manager = ScaleManager()
    assert manager.format_distance(2.5) == "2.50 m"
    assert manager.format_distance(0.25) == "25.0 cm"
    assert manager.format_area(12.346) == "12.35 m²"
