import pytest

from safequery.version import version_at_least


@pytest.mark.parametrize(
    "actual, minimum, expected",
    [
        ("16.2", "8.4", True),
        ("8.4", "8.4", True),
        ("8.3.23", "8.4", False),
        ("12", "12.0.1", False),
        ("12.1", "12", True),
        ("16.2 (Debian 16.2-1.pgdg120+1)", "8.4", True),
        ("15beta1", "15", True),
        ("10.0", "9.6", True),
        ("3.45.1", "3.45", True),
    ],
)
def test_version_at_least(actual, minimum, expected):
    assert version_at_least(actual, minimum) is expected
