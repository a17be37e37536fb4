import pytest


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--runintegration",
        action="store_true",
        default=False,
        help="run tests that fetch dependency graphs over the network",
    )


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "integration: test needs network access to a real package registry")


def pytest_runtest_setup(item: pytest.Item) -> None:
    if "integration" in item.keywords and not item.config.getoption("--runintegration"):
        pytest.skip("need --runintegration option to run")
