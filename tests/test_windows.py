from __future__ import annotations

from datetime import date, datetime, timezone

from deadline.pipeline.windows import EARLY, MIDDLE, OLDEST, RECENT, months_before, plan_windows


def test_plan_windows_are_contiguous_and_oldest_first():
    windows = plan_windows(date(2025, 6, 15))

    assert [w.label for w in windows] == [OLDEST, EARLY, MIDDLE, RECENT]
    assert windows[0].start == date(2023, 6, 15)
    assert windows[-1].end == date(2025, 6, 15)
    for earlier, later in zip(windows, windows[1:]):
        assert earlier.end == later.start
        assert earlier.start < earlier.end


def test_plan_windows_accepts_aware_datetime():
    windows = plan_windows(datetime(2025, 1, 10, 23, 30, tzinfo=timezone.utc))
    assert windows[-1].end == date(2025, 1, 10)
    assert windows[-1].start == date(2024, 10, 10)


def test_months_before_clamps_to_month_length():
    assert months_before(date(2025, 5, 31), 3) == date(2025, 2, 28)
    assert months_before(date(2024, 5, 31), 3) == date(2024, 2, 29)
    assert months_before(date(2024, 2, 29), 12) == date(2023, 2, 28)
    assert months_before(date(2025, 1, 15), 6) == date(2024, 7, 15)


def test_date_restrict_formats_window_range():
    window = plan_windows(date(2025, 6, 15))[0]
    assert window.date_restrict == "date:r:20230615:20240615"
