from vision.classifier import DetectionState, classify


def test_warming_up_until_window_full() -> None:
    assert classify(0.0, 50.0, is_window_full=False) is DetectionState.WARMING_UP
    assert classify(255.0, 50.0, is_window_full=False) is DetectionState.WARMING_UP


def test_below_threshold_is_approaching() -> None:
    for epsilon in (1e-9, 0.5, 50.0):
        assert classify(50.0 - epsilon, 50.0, is_window_full=True) is DetectionState.APPROACHING


def test_threshold_boundary_is_normal() -> None:
    assert classify(50.0, 50.0, is_window_full=True) is DetectionState.NORMAL


def test_above_threshold_is_normal() -> None:
    assert classify(50.0 + 1e-9, 50.0, is_window_full=True) is DetectionState.NORMAL
    assert classify(200.0, 50.0, is_window_full=True) is DetectionState.NORMAL


def test_no_hysteresis_near_threshold() -> None:
    states = [classify(value, 50.0, True) for value in (49.9, 50.1, 49.9, 50.1)]

    assert states == [
        DetectionState.APPROACHING,
        DetectionState.NORMAL,
        DetectionState.APPROACHING,
        DetectionState.NORMAL,
    ]
