"""
Pytest configuration for claude-admin tests.

This module registers markers shared by all tests.
"""


def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line(
        "markers", "slow: mark test as slow (real sockets, threads or subprocesses)"
    )
