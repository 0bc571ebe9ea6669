import pytest

from markwright.errors import MarkwrightConfigError, MarkwrightError, MarkwrightInputError


def test_all_errors_are_subclasses_of_markwright_error() -> None:
    assert issubclass(MarkwrightConfigError, MarkwrightError)
    assert issubclass(MarkwrightInputError, MarkwrightError)


def test_error_message_is_preserved() -> None:
    msg = "boom"
    err = MarkwrightInputError(msg)
    assert str(err) == msg


def test_can_catch_any_markwright_error() -> None:
    def raise_one() -> None:
        raise MarkwrightConfigError("nope")

    with pytest.raises(MarkwrightError):
        raise_one()
