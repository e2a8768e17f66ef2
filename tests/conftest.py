"""Shared fixtures for the quilter test suite."""

import matplotlib
matplotlib.use("Agg")

import numpy as np
import pytest


class FirstCandidate:
    """Random source that always picks the first option."""

    def integers(self, low, high=None):
        return 0 if high is None else low


class LastCandidate:
    """Random source that always picks the last option."""

    def integers(self, low, high=None):
        return (low if high is None else high) - 1


@pytest.fixture
def first_candidate():
    return FirstCandidate()


@pytest.fixture
def last_candidate():
    return LastCandidate()


@pytest.fixture
def solid_texture():
    texture = np.zeros((40, 40, 3), dtype=np.uint8)
    texture[:] = (120, 60, 30)
    return texture


@pytest.fixture
def random_texture():
    rng = np.random.default_rng(1234)
    return rng.integers(0, 256, (48, 48, 3), dtype=np.uint8)


@pytest.fixture
def bright_texture():
    """Texture with no zero pixels, so it never matches an empty canvas."""
    rng = np.random.default_rng(99)
    return rng.integers(1, 256, (32, 32, 3), dtype=np.uint8)
