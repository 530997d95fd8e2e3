"""pytest configuration for AdminHub tests."""

import pytest

from tests.samples import DF_OUTPUT, FREE_OUTPUT, UPTIME_OUTPUT, VMSTAT_OUTPUT


@pytest.fixture()
def summary_blocks():
    return {
        "cpu": VMSTAT_OUTPUT,
        "memory": FREE_OUTPUT,
        "disk": DF_OUTPUT,
        "load_average": UPTIME_OUTPUT,
    }
