"""Root conftest: enables the fixture_resource plugin for the test suite."""

pytest_plugins = ["src.plugin"]
