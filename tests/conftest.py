import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from dyeflow import api
from dyeflow.config import SimulationParams


@pytest.fixture
def params():
    return SimulationParams()


@pytest.fixture
def state(params):
    return api.create(40, 40, params)


@pytest.fixture
def stirred_state():
    """40x40 state with a dye blob and some motion already in it"""
    s = api.create(40, 40)
    dye = np.zeros((40, 40, 3))
    dye[15:25, 15:25] = (5.0, 3.0, 2.0)
    s.load_dye(dye)
    api.apply_force(s, (20.0, 20.0), 4.0, (1.0, 0.5), 10.0)
    return s
