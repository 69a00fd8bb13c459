import io
from collections import namedtuple

import pytest

from shimmer import Shimmer

Result = namedtuple("Result", ["success", "output", "errors"])


def run_with(driver, stdout, stderr, source):
    start_out, start_err = stdout.tell(), stderr.tell()
    success = driver.run(source)
    output = stdout.getvalue()[start_out:].splitlines()
    errors = stderr.getvalue()[start_err:].splitlines()
    return Result(success, output, errors)


@pytest.fixture
def run():
    """Run a program on a fresh driver and capture both streams."""
    def run_source(source):
        stdout, stderr = io.StringIO(), io.StringIO()
        return run_with(Shimmer(stdout, stderr), stdout, stderr, source)
    return run_source


@pytest.fixture
def session():
    """Run several programs against one driver, as the prompt does."""
    stdout, stderr = io.StringIO(), io.StringIO()
    driver = Shimmer(stdout, stderr)
    return lambda source: run_with(driver, stdout, stderr, source)
