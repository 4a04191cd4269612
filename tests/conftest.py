"""
pytest configuration and fixtures for the bitfield decoder tests.

Provides:
- tools/ on sys.path so tests import the modules directly
- Layout fixtures for both PropertyDetails versions
- Hypothesis property-based testing configuration
"""

import pytest
import sys
from pathlib import Path

# Add project paths
sys.path.insert(0, str(Path(__file__).parent.parent / "tools"))

# Configure Hypothesis profiles
try:
    from hypothesis import settings, Verbosity, Phase

    # Default profile: balanced speed and coverage
    settings.register_profile(
        "default",
        max_examples=100,
        deadline=None,
    )

    # CI profile: more thorough testing
    settings.register_profile(
        "ci",
        max_examples=500,
        deadline=None,
        suppress_health_check=[],
        phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    )

    # Dev profile: fast iteration
    settings.register_profile(
        "dev",
        max_examples=10,
        deadline=None,
    )

    # Debug profile: verbose output
    settings.register_profile(
        "debug",
        max_examples=10,
        verbosity=Verbosity.verbose,
        deadline=None,
    )

    # Load profile from environment
    import os
    profile = os.environ.get("HYPOTHESIS_PROFILE", "default")
    settings.load_profile(profile)

except ImportError:
    pass  # Hypothesis not installed


@pytest.fixture
def layout_v012():
    from property_details import get_layout
    return get_layout('v0.12')


@pytest.fixture
def layout_v010():
    from property_details import get_layout
    return get_layout('v0.10')


@pytest.fixture
def simple_layout_dict():
    """Small three-mode layout used by the schema and decoder tests."""
    return {
        'name': 'TestWord',
        'fields': [
            {'name': 'kind', 'mode': 'enum', 'offset': 0, 'width': 2,
             'values': [{'A': 0}, {'B': 1}, {'C': 2}]},
            {'name': 'attrs', 'mode': 'flags', 'offset': 2, 'width': 3,
             'values': [{'NONE': 0}, {'X': 1}, {'Y': 2}, {'Z': 4}]},
            {'name': 'payload', 'mode': 'raw', 'offset': 5, 'width': 8},
        ]
    }


# Markers for test categorization
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests that run the tool as a subprocess"
    )
