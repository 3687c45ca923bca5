import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pytest


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close("all")


@pytest.fixture
def central_difference():
    """Numerical derivative of a scalar or vector function by central differences."""

    def derivative(f, x, h=1e-5):
        x = np.asarray(x, dtype=float)
        columns = []
        for i in range(x.size):
            step = np.zeros_like(x)
            step[i] = h
            columns.append((np.asarray(f(x + step)) - np.asarray(f(x - step))) / (2 * h))
        return np.stack(columns, axis=-1)

    return derivative
