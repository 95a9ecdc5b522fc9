"""Tests for centralized constants module."""

import pytest

from pagesettle import constants
from pagesettle.constants import CONSTANTS, AppConstants


class TestAppConstants:
    """Test centralized application constants."""

    def test_constants_instance_exists(self):
        """Test that global CONSTANTS instance exists."""
        assert CONSTANTS is not None
        assert isinstance(CONSTANTS, AppConstants)

    def test_attribute_access_redirects_to_module(self):
        assert CONSTANTS.SERIALIZE_SCRIPT == constants.SERIALIZE_SCRIPT
        assert CONSTANTS.BROWSER_LAUNCH_ARGS == constants.BROWSER_LAUNCH_ARGS

    def test_unknown_constant_raises(self):
        with pytest.raises(AttributeError):
            CONSTANTS.NOT_A_CONSTANT  # noqa: B018

    def test_scripts(self):
        """The early signal posts the serialized document on its channel."""
        assert CONSTANTS.DONE_LOADING_CHANNEL == "doneLoading"
        assert CONSTANTS.SERIALIZE_SCRIPT == "document.documentElement.outerHTML"
        assert CONSTANTS.DONE_LOADING_SCRIPT.startswith("window.doneLoading(")
        assert CONSTANTS.SERIALIZE_SCRIPT in CONSTANTS.DONE_LOADING_SCRIPT
        assert CONSTANTS.STOP_LOADING_SCRIPT == "window.stop()"

    def test_http_status_range(self):
        """Test HTTP status code constants."""
        assert CONSTANTS.HTTP_STATUS_OK == 200
        assert CONSTANTS.HTTP_SUCCESS_MIN == 200
        assert CONSTANTS.HTTP_SUCCESS_MAX == 299

    def test_browser_choices(self):
        assert CONSTANTS.DEFAULT_BROWSER_TYPE in CONSTANTS.ALLOWED_BROWSER_TYPES
        assert CONSTANTS.DEFAULT_WAIT_UNTIL in CONSTANTS.ALLOWED_WAIT_UNTIL

    def test_validate_poll_interval_positive(self):
        assert CONSTANTS.VALIDATE_POLL_INTERVAL > 0
