import os
import sys

# Ensure project root is in path
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, PROJECT_ROOT)

import numpy as np
import pytest
from fastapi.testclient import TestClient
from app.main import app


@pytest.fixture
def client():
    """
    Test client for the FastAPI app.
    """
    return TestClient(app)


@pytest.fixture
def wound_tensor():
    """
    2x2x3 model output (W, H, C):
    (0,0) clear class 0, (0,1) clear class 2, (1,0) tie between 0 and 1, (1,1) empty.
    """
    return np.array([
        [[0.9, 0.05, 0.05], [0.1, 0.1, 0.8]],
        [[0.4, 0.4, 0.2], [0.0, 0.0, 0.0]],
    ], dtype=np.float32)
