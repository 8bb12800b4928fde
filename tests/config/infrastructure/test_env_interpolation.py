"""Tests for ${ENV_VAR} substitution in raw settings data."""

import pytest

from deep_research.config.infrastructure.env_interpolation import resolve_env_vars
from deep_research.config.infrastructure.errors import MissingEnvVarsError


class TestResolveEnvVars:
    def test_substitutes_inside_strings(self) -> None:
        data = {"fetch_proxy_url": "http://${HOST}:${PORT}/"}

        resolved = resolve_env_vars(data, environ={"HOST": "proxy", "PORT": "3000"})

        assert resolved == {"fetch_proxy_url": "http://proxy:3000/"}

    def test_walks_lists_and_nested_mappings(self) -> None:
        data = {"tools": ["${TOOL}", "run_code"], "nested": {"key": "${TOOL}"}}

        resolved = resolve_env_vars(data, environ={"TOOL": "web_search"})

        assert resolved == {
            "tools": ["web_search", "run_code"],
            "nested": {"key": "web_search"},
        }

    def test_non_string_values_are_untouched(self) -> None:
        data = {"max_continuations": 4, "model": None, "flag": True}
        assert resolve_env_vars(data, environ={}) == data

    def test_fallback_used_when_unset(self) -> None:
        data = {"model": "${RESEARCH_MODEL:-gpt-5}", "suffix": "x${EMPTY:-}y"}

        assert resolve_env_vars(data, environ={}) == {"model": "gpt-5", "suffix": "xy"}

    def test_environment_wins_over_fallback(self) -> None:
        data = {"model": "${RESEARCH_MODEL:-gpt-5}"}

        resolved = resolve_env_vars(data, environ={"RESEARCH_MODEL": "o3"})

        assert resolved == {"model": "o3"}

    def test_all_missing_vars_reported_once_in_order(self) -> None:
        data = {"a": "${ZETA}", "b": ["${ALPHA}", "${ZETA}"], "c": "${SET}"}

        with pytest.raises(MissingEnvVarsError) as exc_info:
            resolve_env_vars(data, environ={"SET": "1"})

        assert exc_info.value.missing_vars == ["ZETA", "ALPHA"]

    def test_reads_process_environment_by_default(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("RESEARCH_MODEL", "o4-mini")
        assert resolve_env_vars("${RESEARCH_MODEL}") == "o4-mini"
