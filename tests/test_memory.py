import pytest

from ubuntu_automation.core.errors import PreconditionError, ValidationError
from ubuntu_automation.core.memory import check_buffer_pool, parse_size_to_gb


@pytest.mark.parametrize("size, expected", [("4G", 4), ("4g", 4), ("2048M", 2), ("512M", 0)])
def test_parse_size(size, expected):
    assert parse_size_to_gb(size) == expected


def test_parse_size_rejects_garbage():
    with pytest.raises(ValidationError):
        parse_size_to_gb("4T")


def test_sufficient_memory_does_not_ask():
    def confirm(question):
        raise AssertionError("should not ask")

    assert check_buffer_pool("4G", confirm=confirm, total_gb=6)


def test_low_memory_continues_when_confirmed():
    questions = []

    def confirm(question):
        questions.append(question)
        return True

    assert not check_buffer_pool("4G", confirm=confirm, total_gb=5)
    assert questions == ["Continue anyway?"]


def test_low_memory_declined():
    with pytest.raises(PreconditionError, match="cancelled"):
        check_buffer_pool("8G", confirm=lambda q: False, total_gb=4)


def test_low_memory_without_prompt_continues():
    assert not check_buffer_pool("8G", total_gb=4)
