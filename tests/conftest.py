"""Pytest configuration for repository-relative imports and shared samples."""

import math
import os
import random
import sys

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)


def _poisson_draw(rng, lam):
    # Knuth 乘积法，lam 较小时足够
    limit = math.exp(-lam)
    k, prod = 0, rng.random()
    while prod > limit:
        k += 1
        prod *= rng.random()
    return k


@pytest.fixture
def normal_sample():
    rng = random.Random(20240611)
    return [rng.gauss(0.0, 1.0) for _ in range(100)]


@pytest.fixture
def shifted_normal_sample():
    rng = random.Random(7)
    return [rng.gauss(10.0, 2.0) for _ in range(200)]


@pytest.fixture
def exponential_sample():
    rng = random.Random(99)
    return [rng.expovariate(2.0) for _ in range(200)]


@pytest.fixture
def uniform_sample():
    rng = random.Random(3)
    return [rng.uniform(2.0, 5.0) for _ in range(150)]


@pytest.fixture
def poisson_sample():
    rng = random.Random(11)
    return [float(_poisson_draw(rng, 4.0)) for _ in range(150)]
