import pytest

pytest.importorskip("PySide6.QtWidgets")

from loudcheckgui.chart import DB_CEIL, DB_FLOOR, db_to_y, time_to_x, x_to_time  # noqa: E402


def test_time_mapping_round_trip():
    x = time_to_x(2.5, 10.0, 40, 400)
    assert x == pytest.approx(140.0)
    assert x_to_time(x, 10.0, 40, 400) == pytest.approx(2.5)


def test_click_outside_plot_is_clamped():
    assert x_to_time(0, 10.0, 40, 400) == 0.0
    assert x_to_time(1000, 10.0, 40, 400) == 10.0
    assert x_to_time(100, 0.0, 40, 400) == 0.0


def test_db_to_y():
    assert db_to_y(DB_CEIL, 200) == 0.0
    assert db_to_y(DB_FLOOR, 200) == 200.0
    assert db_to_y(-30.0, 200) == pytest.approx(100.0)
    assert db_to_y(-240.0, 200) == 200.0
    assert db_to_y(6.0, 200) == 0.0
    assert db_to_y(float("-inf"), 200) == 200.0
