"""Tests for crumb.errors: exception hierarchy."""

import pytest

from crumb.errors import ConfigurationError, CrumbError, InvalidArgument, UnsupportedAlgorithm


class TestHierarchy:
    @pytest.mark.parametrize("error", [ConfigurationError, InvalidArgument, UnsupportedAlgorithm])
    def test_is_crumb_error(self, error: type[Exception]) -> None:
        assert issubclass(error, CrumbError)

    def test_invalid_argument_is_type_error(self) -> None:
        assert issubclass(InvalidArgument, TypeError)

    def test_unsupported_algorithm_is_value_error(self) -> None:
        assert issubclass(UnsupportedAlgorithm, ValueError)

    def test_configuration_error_is_not_type_error(self) -> None:
        assert not issubclass(ConfigurationError, TypeError)


class TestMessages:
    def test_message_preserved(self) -> None:
        err = InvalidArgument("option path is invalid")
        assert str(err) == "option path is invalid"
