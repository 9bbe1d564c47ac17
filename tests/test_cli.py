"""
End-to-end tests for the command-line entry point (LLM mocked).
"""

import pytest

from answer_review.__main__ import main
from answer_review.llm.client_factory import LLMClientFactory

from conftest import StaticLLMClient


@pytest.fixture
def cli_env(monkeypatch, tmp_path):
    monkeypatch.setenv("ANSWER_REVIEW_LOG_DIR", str(tmp_path / "logs"))
    return tmp_path


def patch_llm(monkeypatch, *contents):
    llm = StaticLLMClient(*contents)
    monkeypatch.setattr(LLMClientFactory, "create_client", lambda **kwargs: llm)
    return llm


def cli_args(tmp_path, *extra):
    return [
        "--question", "What is a hash map?",
        "--reference", "A key-value structure with O(1) lookups.",
        "--answer", "It stores pairs. Lookups are fast.",
        "--database-url", f"sqlite:///{tmp_path / 'answers.db'}",
        "--quiet",
        *extra,
    ]


class TestCli:
    """Tests for answer_review.__main__.main."""

    def test_evaluate_only(self, cli_env, monkeypatch, capsys):
        llm = patch_llm(monkeypatch, '{"ratings": 8, "feedback": "Mention collisions."}')

        exit_code = main(cli_args(cli_env))

        out = capsys.readouterr().out
        assert exit_code == 0
        assert "Your answer: It stores pairs. Lookups are fast." in out
        assert "Rating: 8/10 (good)" in out
        assert "Feedback: Mention collisions." in out
        assert "It stores pairs. Lookups are fast." in llm.received[0][-1]["content"]

    def test_save_twice(self, cli_env, monkeypatch, capsys):
        patch_llm(monkeypatch, '```json\n{"ratings": 3, "feedback": "Too short."}\n```')

        assert main(cli_args(cli_env, "--save")) == 0
        first = capsys.readouterr().out
        assert main(cli_args(cli_env, "--save")) == 0
        second = capsys.readouterr().out

        assert "Rating: 3/10 (poor)" in first
        assert "already answered" not in first
        assert "already answered" in second

    def test_events_are_printed(self, cli_env, monkeypatch, capsys):
        patch_llm(monkeypatch, '{"ratings": 5, "feedback": "OK"}')
        args = [arg for arg in cli_args(cli_env) if arg != "--quiet"]

        assert main(args) == 0

        out = capsys.readouterr().out
        assert "Recording started: Speak clearly into your microphone" in out
        assert "Feedback ready: Rating: 5/10" in out

    def test_unparseable_response(self, cli_env, monkeypatch, capsys):
        patch_llm(monkeypatch, "not json at all")

        exit_code = main(cli_args(cli_env))

        assert exit_code == 1
        assert "ParseError" in capsys.readouterr().err

    def test_missing_api_key(self, cli_env, monkeypatch, capsys):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        monkeypatch.setattr("answer_review.__main__.load_dotenv", lambda: False)

        exit_code = main(cli_args(cli_env))

        assert exit_code == 1
        assert "Configuration Error" in capsys.readouterr().err
