import math

import pytest

from core.stats.distributions import (
    chi2_cdf,
    chi2_ppf,
    chi2_sf,
    distribution_cdf,
    exponential_cdf,
    kolmogorov_cdf,
    kolmogorov_isf,
    kolmogorov_sf,
    normal_cdf,
    normal_ppf,
    normal_sf,
    poisson_cdf,
    poisson_pmf,
    regularized_beta,
    regularized_gamma_p,
    solve_increasing,
    t_cdf,
    t_ppf,
    uniform_cdf,
)
from core.stats.schema import DistributionType


def test_normal_reference_values():
    assert normal_cdf(0.0) == pytest.approx(0.5)
    assert normal_cdf(1.96) == pytest.approx(0.9750, abs=1e-4)
    assert normal_sf(1.96) == pytest.approx(0.0250, abs=1e-4)
    assert normal_cdf(12.0, mean=10.0, std=2.0) == pytest.approx(normal_cdf(1.0))


def test_normal_ppf_inverts_cdf():
    assert normal_ppf(0.975) == pytest.approx(1.959964, abs=1e-5)
    assert normal_ppf(0.8) == pytest.approx(0.841621, abs=1e-5)
    for p in (0.001, 0.1, 0.5, 0.9, 0.999):
        assert normal_cdf(normal_ppf(p)) == pytest.approx(p, abs=1e-9)


def test_t_distribution_reference_values():
    assert t_cdf(0.0, 5) == pytest.approx(0.5)
    assert t_ppf(0.975, 10) == pytest.approx(2.228139, abs=1e-4)
    assert t_ppf(0.95, 30) == pytest.approx(1.697261, abs=1e-4)
    # 自由度很大时接近标准正态
    assert t_cdf(1.96, 10000) == pytest.approx(normal_cdf(1.96), abs=1e-4)


def test_chi_square_reference_values():
    assert chi2_ppf(0.95, 1) == pytest.approx(3.841459, abs=1e-4)
    assert chi2_ppf(0.95, 2) == pytest.approx(5.991465, abs=1e-4)
    assert chi2_ppf(0.95, 7) == pytest.approx(14.06714, abs=1e-3)
    for x in (0.5, 2.0, 9.0):
        assert chi2_sf(x, 2) == pytest.approx(math.exp(-x / 2.0), rel=1e-9)
        assert chi2_cdf(x, 4) + chi2_sf(x, 4) == pytest.approx(1.0)


def test_special_functions():
    # P(1, x) = 1 - e^{-x}
    assert regularized_gamma_p(1.0, 2.0) == pytest.approx(1.0 - math.exp(-2.0))
    # I_x(1, 1) = x
    assert regularized_beta(1.0, 1.0, 0.3) == pytest.approx(0.3)


def test_kolmogorov_distribution():
    assert kolmogorov_isf(0.05) == pytest.approx(1.3581, abs=1e-3)
    assert kolmogorov_isf(0.01) == pytest.approx(1.6276, abs=1e-3)
    assert kolmogorov_cdf(0.0) == 0.0
    # 两种级数在切换点附近应连续
    assert kolmogorov_cdf(1.1799) == pytest.approx(kolmogorov_cdf(1.1801), abs=1e-3)
    assert kolmogorov_sf(1.0) == pytest.approx(1.0 - kolmogorov_cdf(1.0))


def test_discrete_and_simple_families():
    assert uniform_cdf(3.0, 2.0, 6.0) == pytest.approx(0.25)
    assert uniform_cdf(1.0, 2.0, 6.0) == 0.0
    assert uniform_cdf(7.0, 2.0, 6.0) == 1.0
    assert exponential_cdf(1.0, 2.0) == pytest.approx(1.0 - math.exp(-2.0))
    assert exponential_cdf(-1.0, 2.0) == 0.0
    assert poisson_pmf(2, 3.0) == pytest.approx(4.5 * math.exp(-3.0))
    assert poisson_cdf(2, 3.0) == pytest.approx(8.5 * math.exp(-3.0))
    assert poisson_cdf(2.7, 3.0) == pytest.approx(poisson_cdf(2, 3.0))
    assert poisson_cdf(-0.5, 3.0) == 0.0


def test_distribution_cdf_dispatch():
    assert distribution_cdf(DistributionType.NORMAL, 0.0, {"mean": 0.0, "std": 1.0}) == pytest.approx(0.5)
    assert distribution_cdf(DistributionType.UNIFORM, 1.5, {"a": 1.0, "b": 2.0}) == pytest.approx(0.5)
    assert distribution_cdf(DistributionType.EXPONENTIAL, 1.0, {"lambda": 1.0}) == pytest.approx(
        1.0 - math.exp(-1.0)
    )
    assert distribution_cdf(DistributionType.POISSON, 0.0, {"lambda": 1.0}) == pytest.approx(
        math.exp(-1.0)
    )


@pytest.mark.parametrize(
    "value",
    [
        normal_cdf(0.0, std=0.0),
        normal_ppf(0.0),
        normal_ppf(1.0),
        t_cdf(1.0, 0.0),
        chi2_cdf(1.0, 0.0),
        chi2_ppf(1.5, 3),
        uniform_cdf(0.5, 1.0, 1.0),
        exponential_cdf(1.0, -1.0),
        poisson_cdf(1.0, 0.0),
        kolmogorov_isf(0.0),
        normal_cdf(float("nan")),
    ],
)
def test_degenerate_inputs_return_nan(value):
    assert math.isnan(value)


def test_solve_increasing_expands_bracket():
    root = solve_increasing(lambda x: x ** 3, 1000.0, 0.0, 1.0)
    assert root == pytest.approx(10.0, abs=1e-9)
