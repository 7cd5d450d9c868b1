import logging
import math

import pytest

from core.stats import InsufficientSample, InvalidParameter, describe_sample, generate_histogram_data
from core.stats.descriptive import (
    bin_index,
    equal_width_edges,
    sample_std,
    skewness_kurtosis,
    to_float_list,
    validate_num_bins,
)


def test_describe_sample_basic_statistics():
    summary = describe_sample([5, 1, 4, 2, 3])

    assert summary["n"] == 5
    assert summary["mean"] == pytest.approx(3.0)
    assert summary["std"] == pytest.approx(math.sqrt(2.5))
    assert summary["population_variance"] == pytest.approx(2.0)
    assert summary["median"] == 3.0
    assert (summary["q1"], summary["q3"]) == (2.0, 4.0)
    assert summary["skewness"] == pytest.approx(0.0)
    assert summary["kurtosis"] == pytest.approx(1.7)


def test_describe_sample_constant_values_does_not_divide_by_zero():
    summary = describe_sample([2.0, 2.0, 2.0])
    assert summary["std"] == 0.0
    assert (summary["skewness"], summary["kurtosis"]) == (0.0, 3.0)


def test_describe_sample_huge_magnitude_values_do_not_overflow():
    summary = describe_sample([1e200, -1e200, 1e200, -1e200, 0.0, 5e199])

    assert math.isfinite(summary["std"])
    assert summary["std"] > 1e199
    # 方差本身超出浮点范围
    assert summary["variance"] == math.inf
    assert math.isfinite(summary["skewness"])
    assert math.isfinite(summary["kurtosis"])


def test_skewness_kurtosis_nan_when_deviations_overflow(caplog):
    caplog.set_level(logging.WARNING)
    data = [1.7e308] * 4 + [-1.7e308]

    skewness, kurtosis = skewness_kurtosis(data)
    assert math.isnan(skewness) and math.isnan(kurtosis)
    assert "超出浮点范围" in caplog.text
    assert sample_std(data) == math.inf


def test_histogram_counts_sum_to_sample_size(normal_sample):
    bins = generate_histogram_data(normal_sample, num_bins=12)

    assert len(bins) == 12
    assert sum(b["count"] for b in bins) == len(normal_sample)
    assert sum(b["frequency"] for b in bins) == pytest.approx(1.0)
    assert bins[0]["lower"] == pytest.approx(min(normal_sample))
    assert bins[-1]["upper"] == pytest.approx(max(normal_sample))


def test_histogram_labels_and_closed_last_bin():
    bins = generate_histogram_data([0, 1, 2, 3, 4, 5, 6, 7, 8, 9, 10], num_bins=5)

    assert bins[0]["name"] == "0.00-2.00"
    assert [b["count"] for b in bins] == [2, 2, 2, 2, 3]


def test_histogram_with_explicit_range():
    bins = generate_histogram_data([1.0, 2.0, 3.0], num_bins=5, value_range=(0.0, 10.0))
    assert bins[0]["count"] == 1
    assert bins[1]["count"] == 2
    with pytest.raises(InvalidParameter):
        generate_histogram_data([1.0, 2.0], value_range=(5.0, 1.0))


def test_constant_sample_gets_non_zero_width_bins():
    edges = equal_width_edges(3.0, 3.0, 5)
    assert edges[0] == pytest.approx(2.5)
    assert edges[-1] == pytest.approx(3.5)
    bins = generate_histogram_data([3.0] * 8, num_bins=5)
    assert sum(b["count"] for b in bins) == 8


def test_bin_index_clamps_out_of_range_values():
    edges = equal_width_edges(0.0, 1.0, 5)
    assert bin_index(-3.0, edges) == 0
    assert bin_index(1.0, edges) == 4
    assert bin_index(7.0, edges) == 4
    assert bin_index(0.4, edges) == 2


@pytest.mark.parametrize("num_bins", [4, 51, 10.5, True, "10", None])
def test_num_bins_validation(num_bins):
    with pytest.raises(InvalidParameter):
        validate_num_bins(num_bins)


def test_num_bins_accepts_bounds():
    assert validate_num_bins(5) == 5
    assert validate_num_bins(50) == 50
    assert validate_num_bins(10.0) == 10


def test_to_float_list_rejects_bad_input():
    with pytest.raises(InsufficientSample):
        to_float_list([], "values")
    with pytest.raises(InvalidParameter):
        to_float_list([1.0, float("nan")], "values")
    with pytest.raises(InvalidParameter):
        to_float_list(["abc"], "values")
    with pytest.raises(InvalidParameter):
        to_float_list(3.0, "values")
