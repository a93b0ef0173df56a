"""Tests for token estimation."""

from unittest.mock import patch

from prompt_blueprint.tokens import estimate_tokens, estimate_tokens_heuristic


class TestEstimateTokens:

    @patch("prompt_blueprint.tokens.litellm.token_counter", return_value=42)
    def test_uses_litellm(self, mock_counter):
        assert estimate_tokens("hello world", "gpt-4o") == 42
        mock_counter.assert_called_once_with(model="gpt-4o", text="hello world")

    @patch("prompt_blueprint.tokens.litellm.token_counter", side_effect=ValueError("unknown model"))
    def test_falls_back_to_heuristic(self, mock_counter):
        assert estimate_tokens("x" * 40, "mystery-model") == 10

    @patch("prompt_blueprint.tokens.litellm.token_counter")
    def test_empty_text_is_zero(self, mock_counter):
        assert estimate_tokens("") == 0
        mock_counter.assert_not_called()

    def test_heuristic(self):
        assert estimate_tokens_heuristic("abcdefgh") == 2
