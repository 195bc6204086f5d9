import pytest
from pathlib import Path

from pipeline_inventory.models import InventoryModel


@pytest.fixture
def model() -> InventoryModel:
    """Return an empty inventory."""
    return InventoryModel()


@pytest.fixture
def populated_model() -> InventoryModel:
    """Return an inventory with three pipes and three stations."""
    model = InventoryModel()
    model.add_pipe("Main", 12.5, 500)
    model.add_pipe("North branch", 3.2, 300)
    model.add_pipe("South MAIN loop", 40.0, 1000)
    model.toggle_repair(2)

    model.add_station("CS1", 5, 3, 2)
    model.add_station("Northern CS", 4, 4, 1)
    model.add_station("Reserve", 2, 0, 3)
    return model


@pytest.fixture
def data_dir(tmp_path) -> Path:
    """Return a temporary directory for inventory files."""
    path = tmp_path / 'data'
    path.mkdir()
    return path
