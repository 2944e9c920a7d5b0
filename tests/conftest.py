import pytest


def pytest_configure(config):
    config.addinivalue_line("markers", "cli: tests of the assetlog command line")
    config.addinivalue_line("markers", "logging: end-to-end logging tests")


@pytest.fixture
def write_config(tmp_path):
    def write(content: str, name: str = "logger.yml") -> str:
        config_file = tmp_path / name
        config_file.write_text(content, encoding="utf-8")
        return str(config_file)

    yield write
