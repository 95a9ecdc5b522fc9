"""Tests for post actions, request options and results."""

import pytest
from pydantic import ValidationError

from pagesettle.core.exceptions import NavigationFailedError
from pagesettle.rendering.models import (
    RenderOptions,
    RenderResult,
    ResponseMetadata,
    ScriptOptions,
    ScriptResult,
    ValidateAction,
    WaitAction,
    parse_post_action,
)


class TestPostActions:
    """Test post action parsing and validation."""

    def test_parse_wait_mapping(self):
        action = parse_post_action({"kind": "wait", "seconds": 1.5})
        assert action == WaitAction(seconds=1.5)

    def test_parse_validate_mapping(self):
        action = parse_post_action({"kind": "validate", "script": "window.ready === true"})
        assert isinstance(action, ValidateAction)
        assert action.script == "window.ready === true"

    def test_parse_passes_models_and_none_through(self):
        wait = WaitAction(seconds=0)
        assert parse_post_action(wait) is wait
        assert parse_post_action(None) is None

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValidationError):
            parse_post_action({"kind": "scroll", "pixels": 100})

    def test_negative_wait_rejected(self):
        with pytest.raises(ValidationError):
            WaitAction(seconds=-1)

    def test_empty_validate_script_rejected(self):
        with pytest.raises(ValidationError):
            ValidateAction(script="")

    def test_actions_are_immutable(self):
        action = WaitAction(seconds=1)
        with pytest.raises(ValidationError):
            action.seconds = 2


class TestOptions:
    """Test per-request options."""

    def test_render_options_defaults(self):
        options = RenderOptions()
        assert options.include_media_content is None
        assert options.post_action is None

    def test_render_options_from_mapping(self):
        options = RenderOptions.model_validate(
            {"include_media_content": False, "post_action": {"kind": "wait", "seconds": 2}}
        )
        assert options.include_media_content is False
        assert options.post_action == WaitAction(seconds=2)

    def test_script_options_navigation_flag(self):
        assert ScriptOptions().navigates_first is False
        options = ScriptOptions(
            navigates_first=True, post_action=ValidateAction(script="document.forms.length === 0")
        )
        assert options.navigates_first is True
        assert options.post_action.kind == "validate"


class TestResults:
    """Test response metadata and result helpers."""

    @pytest.mark.parametrize(
        "status,ok",
        [(200, True), (204, True), (299, True), (199, False), (302, False), (404, False), (500, False)],
    )
    def test_response_ok_range(self, status, ok):
        assert ResponseMetadata(url="https://example.com", status=status).ok is ok

    def test_render_result_success(self):
        result = RenderResult(
            html="<p>café</p>".encode("utf-8"),
            response=ResponseMetadata(url="https://example.com", status=200),
        )
        assert result.ok is True
        assert result.text == "<p>café</p>"
        result.raise_for_error()

    def test_render_result_failure(self):
        error = NavigationFailedError("Navigation failed", url="https://example.com", status_code=404)
        result = RenderResult(error=error)

        assert result.ok is False
        assert result.text is None
        with pytest.raises(NavigationFailedError):
            result.raise_for_error()

    def test_script_result_ok(self):
        assert ScriptResult(value=None).ok is True
        assert ScriptResult(error=NavigationFailedError("boom")).ok is False
