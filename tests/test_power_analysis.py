import math

import pytest

from core.stats import InsufficientSample, InvalidEffectSize, InvalidParameter, PowerAnalysis, TailType

TAILS = ["two-tailed", "left-tailed", "right-tailed"]


@pytest.mark.parametrize("tail", TAILS)
@pytest.mark.parametrize("variance_known", [True, False])
def test_power_at_null_mean_equals_alpha(tail, variance_known):
    power = PowerAnalysis.power_at(
        mu=0.0, mu0=0.0, sigma=1.0, n=30, alpha=0.05, tail_type=tail, variance_known=variance_known
    )
    assert power == pytest.approx(0.05, abs=1e-3)


@pytest.mark.parametrize("tail", TAILS)
def test_power_at_null_mean_with_tiny_alpha(tail):
    power = PowerAnalysis.power_at(mu=0.0, mu0=0.0, sigma=1.0, n=30, alpha=1e-20, tail_type=tail)
    assert power == pytest.approx(1e-20, rel=1e-6)


@pytest.mark.parametrize("variance_known", [True, False])
def test_curve_with_tiny_alpha_stays_finite(variance_known):
    curve = PowerAnalysis.generate_power_curve(
        mu0=0.0, sigma=1.0, n=30, alpha=1e-18, variance_known=variance_known
    )
    assert all(math.isfinite(p.power) and 0.0 <= p.power <= 1.0 for p in curve)
    assert curve[-1].power > curve[30].power


def test_required_sample_size_with_tiny_alpha():
    n = PowerAnalysis.required_sample_size(mu1=1.0, mu0=0.0, sigma=1.0, alpha=1e-20, beta=0.2)
    # z = 9.33（alpha / 2 = 5e-21）+ 0.84
    assert 95 <= n <= 110


def test_alpha_underflowing_to_zero_is_rejected():
    with pytest.raises(InvalidParameter):
        PowerAnalysis.power_at(mu=0.0, mu0=0.0, sigma=1.0, n=30, alpha=5e-324)
    with pytest.raises(InvalidParameter):
        PowerAnalysis.required_sample_size(mu1=1.0, mu0=0.0, sigma=1.0, alpha=5e-324)


@pytest.mark.parametrize("variance_known", [True, False])
def test_curve_has_61_points_centered_on_mu0(variance_known):
    curve = PowerAnalysis.generate_power_curve(
        mu0=5.0, sigma=2.0, n=16, alpha=0.05, variance_known=variance_known
    )

    assert len(curve) == 61
    assert curve[30].mu == 5.0
    assert curve[30].power == pytest.approx(0.05, abs=1e-3)
    # 覆盖 mu0 ± 3 个标准误，标准误 = 2 / 4
    assert curve[0].mu == pytest.approx(3.5)
    assert curve[-1].mu == pytest.approx(6.5)
    assert all(0.0 <= p.power <= 1.0 for p in curve)
    assert [p.mu for p in curve] == sorted(p.mu for p in curve)


def test_power_grows_away_from_mu0():
    two = PowerAnalysis.generate_power_curve(mu0=0.0, sigma=1.0, n=20, tail_type="two-tailed")
    right = PowerAnalysis.generate_power_curve(mu0=0.0, sigma=1.0, n=20, tail_type="right-tailed")
    left = PowerAnalysis.generate_power_curve(mu0=0.0, sigma=1.0, n=20, tail_type="left-tailed")

    for i in range(30, 60):
        assert two[i + 1].power >= two[i].power
    for i in range(0, 30):
        assert two[i].power >= two[i + 1].power
    for i in range(60):
        assert right[i + 1].power >= right[i].power
        assert left[i + 1].power <= left[i].power


def test_two_tailed_curve_is_symmetric():
    curve = PowerAnalysis.generate_power_curve(mu0=0.0, sigma=1.0, n=10)
    for i in range(30):
        assert curve[i].power == pytest.approx(curve[60 - i].power, abs=1e-9)


def test_unknown_variance_has_lower_power_than_z_test():
    z_power = PowerAnalysis.power_at(2.0, 0.0, 2.0, 4, tail_type="right-tailed", variance_known=True)
    t_power = PowerAnalysis.power_at(2.0, 0.0, 2.0, 4, tail_type="right-tailed", variance_known=False)
    assert t_power < z_power


def test_required_sample_size_reference_scenario():
    assert PowerAnalysis.required_sample_size(mu1=1.0, mu0=0.0, sigma=1.0) == 8
    assert PowerAnalysis.required_sample_size(
        mu1=1.0, mu0=0.0, sigma=1.0, tail_type="right-tailed"
    ) == 7


def test_required_sample_size_for_effect_size():
    assert PowerAnalysis.required_sample_size_for_effect(0.5) == 32
    assert PowerAnalysis.required_sample_size_for_effect(-0.5) == 32
    with pytest.raises(InvalidEffectSize):
        PowerAnalysis.required_sample_size_for_effect(0.0)


@pytest.mark.parametrize(
    "mu1, sigma, tail",
    [
        (1.0, 1.0, "two-tailed"),
        (0.3, 1.5, "two-tailed"),
        (-0.4, 1.0, "two-tailed"),
        (0.25, 1.0, "right-tailed"),
        (-0.6, 2.0, "left-tailed"),
    ],
)
def test_required_sample_size_reaches_target_power(mu1, sigma, tail):
    n = PowerAnalysis.required_sample_size(mu1=mu1, mu0=0.0, sigma=sigma, beta=0.2, tail_type=tail)
    power = PowerAnalysis.power_at(mu=mu1, mu0=0.0, sigma=sigma, n=n, tail_type=tail)
    assert power >= 0.8 - 1e-9
    if n > 1:
        smaller = PowerAnalysis.power_at(mu=mu1, mu0=0.0, sigma=sigma, n=n - 1, tail_type=tail)
        assert smaller < 0.8 + 0.01


def test_equal_means_raise_invalid_effect_size():
    with pytest.raises(InvalidEffectSize):
        PowerAnalysis.required_sample_size(mu1=2.0, mu0=2.0, sigma=1.0)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"sigma": 0.0},
        {"sigma": -1.0},
        {"sigma": float("inf")},
        {"alpha": 0.0},
        {"alpha": 1.0},
        {"n": 0},
        {"n": 2.5},
        {"n": 1, "variance_known": False},
        {"tail_type": "sideways"},
    ],
)
def test_curve_rejects_invalid_parameters(kwargs):
    params = {"mu0": 0.0, "sigma": 1.0, "n": 10, "alpha": 0.05}
    params.update(kwargs)
    with pytest.raises(InvalidParameter):
        PowerAnalysis.generate_power_curve(**params)


def test_required_sample_size_rejects_invalid_beta():
    with pytest.raises(InvalidParameter):
        PowerAnalysis.required_sample_size(mu1=1.0, mu0=0.0, sigma=1.0, beta=1.5)


def test_tail_aliases_are_accepted():
    assert TailType("two") is TailType.TWO
    assert TailType("larger") is TailType.RIGHT
    assert TailType("smaller") is TailType.LEFT
    a = PowerAnalysis.power_at(0.5, 0.0, 1.0, 10, tail_type="right")
    b = PowerAnalysis.power_at(0.5, 0.0, 1.0, 10, tail_type=TailType.RIGHT)
    assert a == b


def test_power_curve_from_sample_uses_sample_std():
    sample = [1.0, 2.0, 3.0, 4.0, 5.0]
    curve = PowerAnalysis.power_curve_from_sample(sample, mu0=3.0)
    se = math.sqrt(2.5) / math.sqrt(5)
    assert curve[30].mu == 3.0
    assert curve[-1].mu == pytest.approx(3.0 + 3 * se)

    with pytest.raises(InvalidParameter):
        PowerAnalysis.power_curve_from_sample([4.0, 4.0, 4.0], mu0=0.0)
    with pytest.raises(InsufficientSample):
        PowerAnalysis.power_curve_from_sample([], mu0=0.0)
    explicit = PowerAnalysis.power_curve_from_sample([4.0, 4.0, 4.0], mu0=0.0, sigma=1.0)
    assert len(explicit) == 61


def test_summarize_includes_sample_size_plan():
    summary = PowerAnalysis.summarize(mu0=0.0, sigma=1.0, n=30, mu1=0.5, beta=0.2)

    assert summary["alpha_point"].power == pytest.approx(0.05, abs=1e-3)
    assert summary["target_power"] == pytest.approx(0.8)
    assert summary["tail_type"] == "two-tailed"
    assert summary["required_n"] == 32
    assert 0.7 < summary["power_at_mu1"] < 0.8

    without_mu1 = PowerAnalysis.summarize(mu0=0.0, sigma=1.0, n=30)
    assert "required_n" not in without_mu1
