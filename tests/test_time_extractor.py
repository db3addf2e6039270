import pytest

from utils.time_extractor import (
    ValidationReport,
    build_validation_report,
    extract_time,
    is_in_range,
    looks_like_flight_card,
    to_minutes,
)


@pytest.mark.yaml_data(file="time_extraction.yaml", group="extraction")
def test_extract_time(text, expected):
    assert extract_time(text) == expected


@pytest.mark.yaml_data(file="time_extraction.yaml", group="in_range")
def test_is_in_range(value, start, end, expected):
    assert is_in_range(value, start, end) is expected


@pytest.mark.parametrize("text", ["24:00", "23:60", "99:99", "7:5"])
def test_extract_rejects_out_of_range_tokens(text):
    assert extract_time(text) is None


@pytest.mark.parametrize("text", [None, "", "   "])
def test_extract_empty(text):
    assert extract_time(text) is None


def test_extract_pads_single_digit_hour():
    assert extract_time("7:05") == "07:05"


def test_to_minutes():
    assert to_minutes("00:00") == 0
    assert to_minutes("10:00") == 600
    assert to_minutes("23:59") == 1439


@pytest.mark.parametrize("value", ["", "10", "10-00", "25:00", "10:60", "ab:cd"])
def test_to_minutes_rejects_malformed(value):
    with pytest.raises(ValueError):
        to_minutes(value)


@pytest.mark.parametrize("text, expected", [
    ("08:15 SAW → ESB", True),
    ("1.249 TL", True),
    ("₺ 999", True),
    ("İstanbul → Ankara", True),
    ("Kampanya: yaz fırsatları", False),
    ("", False),
])
def test_looks_like_flight_card(text, expected):
    assert looks_like_flight_card(text) is expected


class TestValidationReport:
    def test_counts(self):
        report = build_validation_report(
            ["10:00 SAW", "Kalkış 17:00", "09:59 ESB", "Reklam", "13:30"], "10:00", "17:00"
        )
        assert report.valid_times == ["10:00", "17:00", "13:30"]
        assert report.invalid_times == ["09:59"]
        assert report.unparseable_count == 1
        assert report.total == 5
        assert report.valid_ratio == pytest.approx(0.6)
        assert not report.all_valid

    def test_all_valid_needs_one_valid(self):
        assert not ValidationReport("10:00", "17:00").all_valid
        assert build_validation_report(["12:00"], "10:00", "17:00").all_valid

    def test_unparseable_counts_against_threshold(self):
        report = build_validation_report(["11:00", "12:00", "13:00", "?", "?"], "10:00", "17:00")
        assert not report.meets_threshold(0.7)
        assert report.meets_threshold(0.6)

    def test_threshold_against_explicit_sample_size(self):
        report = build_validation_report(["11:00", "12:00", "13:00"], "10:00", "17:00")
        assert report.meets_threshold(0.7)
        assert not report.meets_threshold(0.7, sample_size=5)

    def test_empty_report_never_meets_threshold(self):
        assert not ValidationReport("10:00", "17:00").meets_threshold(0.1)

    def test_summary_lists_out_of_range_times(self):
        report = build_validation_report(["08:00", "12:00"], "10:00", "17:00")
        assert "1 valid / 1 invalid" in report.summary()
        assert "08:00" in report.summary()

    def test_malformed_window_fails_fast(self):
        with pytest.raises(ValueError):
            build_validation_report(["12:00"], "10", "17:00")
