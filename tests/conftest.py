import pytest

from fakes import SAMPLE_SRT


@pytest.fixture
def sample_srt() -> str:
    return SAMPLE_SRT
