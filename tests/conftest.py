# -*- coding: utf-8 -*-
import matplotlib
matplotlib.use("Agg")

import numpy as np
import pytest

from zipper_merge.road import Road


@pytest.fixture(autouse=True)
def seeded_random():
    np.random.seed(12345)


@pytest.fixture
def road():
    """Default layout: 2 lanes, lane 1 blocked from cell 40, 15 ft cells."""
    return Road(2, 1, 15.0)
