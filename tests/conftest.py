import pytest

from src.storage import ProjectStore


@pytest.fixture
def survey_components():
    """The two-component rig used across the aggregation and export tests."""
    return [
        {
            "id": "c1",
            "type": "Cap Shroud",
            "quantity": 2,
            "length": "12m",
            "diameter": "8mm",
            "material": "1x19 SS",
            "upper_termination": "Swage Stud",
            "pin_size_upper": "10mm",
            "lower_termination": "Toggle Fork",
            "pin_size_lower": "10mm",
        },
        {
            "id": "c2",
            "type": "Forestay",
            "quantity": 1,
            "length": "40ft",
            "diameter": "8mm",
            "material": "1x19 SS",
            "upper_termination": "Toggle Fork",
            "pin_size_upper": "10mm",
        },
    ]


@pytest.fixture
def store(tmp_path):
    """A ProjectStore rooted in a per-test temporary directory."""
    return ProjectStore(str(tmp_path), "tester")


class FakeGenerationService:
    """Records prompts and returns a canned structured output."""

    def __init__(self, output):
        self.output = output
        self.calls = []

    def generate(self, schema, prompt):
        self.calls.append((schema, prompt))
        return self.output


@pytest.fixture
def fake_service_factory():
    return FakeGenerationService
