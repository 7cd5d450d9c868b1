import logging
import math

import pytest

from core.stats import InsufficientSample, InvalidParameter, estimate_parameters


def test_normal_uses_sample_standard_deviation():
    params = estimate_parameters([1, 2, 3, 4, 5], "normal")
    assert params["mean"] == pytest.approx(3.0)
    assert params["std"] == pytest.approx(math.sqrt(2.5))


def test_normal_constant_sample_is_finite():
    params = estimate_parameters([2.0, 2.0, 2.0], "normal")
    assert params == {"mean": 2.0, "std": 0.0}
    assert estimate_parameters([5.0], "normal")["std"] == 0.0


def test_normal_huge_magnitude_sample_stays_finite():
    params = estimate_parameters([1e200, -1e200, 1e200, -1e200, 0.0, 5e199], "normal")
    assert all(math.isfinite(v) for v in params.values())
    assert params["std"] > 1e199


def test_normal_overflowing_spread_falls_back_to_unit_std(caplog):
    caplog.set_level(logging.WARNING)
    params = estimate_parameters([1.7e308] * 4 + [-1.7e308], "normal")
    assert params["std"] == 1.0
    assert math.isfinite(params["mean"])
    assert "std 退回默认值 1" in caplog.text


def test_uniform_minmax():
    assert estimate_parameters([3.0, 1.0, 5.0], "uniform") == {"a": 1.0, "b": 5.0}


def test_uniform_robust_trims_outliers():
    data = [float(v) for v in range(20)] + [1000.0]
    params = estimate_parameters(data, "uniform", uniform_method="robust")
    # q1 = 5, q3 = 15, IQR = 10
    assert params["a"] == 0.0
    assert params["b"] == pytest.approx(45.0)


def test_uniform_robust_never_exceeds_sample_range(uniform_sample):
    params = estimate_parameters(uniform_sample, "uniform", uniform_method="robust")
    assert params["a"] >= min(uniform_sample)
    assert params["b"] <= max(uniform_sample)


def test_rate_estimates():
    assert estimate_parameters([1.0, 2.0, 3.0], "exponential") == {"lambda": pytest.approx(0.5)}
    assert estimate_parameters([1.0, 2.0, 3.0], "poisson") == {"lambda": pytest.approx(2.0)}


@pytest.mark.parametrize("distribution", ["exponential", "poisson"])
def test_rate_falls_back_when_mean_not_positive(distribution, caplog):
    caplog.set_level(logging.WARNING)
    params = estimate_parameters([-1.0, 0.0, -2.0], distribution)
    assert params == {"lambda": 1.0}
    assert "lambda" in caplog.text


@pytest.mark.parametrize("distribution", ["normal", "uniform", "exponential", "poisson"])
def test_estimates_never_contain_nan(distribution, exponential_sample):
    params = estimate_parameters(exponential_sample, distribution)
    assert all(math.isfinite(v) for v in params.values())


def test_invalid_arguments():
    with pytest.raises(InvalidParameter):
        estimate_parameters([1.0, 2.0], "gamma")
    with pytest.raises(InvalidParameter):
        estimate_parameters([1.0, 2.0], "uniform", uniform_method="median")
    with pytest.raises(InsufficientSample):
        estimate_parameters([], "normal")
