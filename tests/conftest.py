"""Shared pytest configuration."""


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "slow: long randomized agreement checks (deselect with -m 'not slow')"
    )
