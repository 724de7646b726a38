"""
Tests for the target repository resolver.
"""

from unittest.mock import patch

import httpx
import pytest

from mirror_bridge.errors import ConfigurationError, TargetRepositoryError
from mirror_bridge.target import SourceRepoResolver, repo_resource_name, target_remote_url


class TestNaming:

    def test_resource_name(self):
        assert repo_resource_name("proj1", "demo") == "projects/proj1/repos/demo"

    def test_remote_url(self):
        assert (
            target_remote_url("https://source.example", "proj1", "demo")
            == "https://source.example/p/proj1/r/demo"
        )

    def test_remote_url_trailing_slash(self):
        assert (
            target_remote_url("https://source.example/", "proj1", "demo")
            == "https://source.example/p/proj1/r/demo"
        )


class TestEnsureExists:

    def test_found(self):
        resolver = SourceRepoResolver("proj1", api_url="https://api.example/v1/", timeout=7)
        resp = httpx.Response(200, json={"name": "projects/proj1/repos/demo"})
        with patch("mirror_bridge.target.httpx.get", return_value=resp) as mock_get:
            name = resolver.ensure_exists("demo", "ya29.abc")

        assert name == "projects/proj1/repos/demo"
        mock_get.assert_called_once()
        assert mock_get.call_args.args[0] == "https://api.example/v1/projects/proj1/repos/demo"
        assert mock_get.call_args.kwargs["headers"]["Authorization"] == "Bearer ya29.abc"
        assert mock_get.call_args.kwargs["timeout"] == 7

    @pytest.mark.parametrize("status", [403, 404, 500])
    def test_lookup_failure(self, status):
        resolver = SourceRepoResolver("proj1")
        with patch("mirror_bridge.target.httpx.get", return_value=httpx.Response(status, text="err")):
            with pytest.raises(TargetRepositoryError) as exc_info:
                resolver.ensure_exists("demo", "ya29.abc")

        assert exc_info.value.repository == "demo"
        assert f"HTTP {status}" in str(exc_info.value)
        assert "projects/proj1/repos/demo" in str(exc_info.value)

    def test_network_error(self):
        resolver = SourceRepoResolver("proj1")
        with patch("mirror_bridge.target.httpx.get", side_effect=httpx.ConnectTimeout("timed out")):
            with pytest.raises(TargetRepositoryError) as exc_info:
                resolver.ensure_exists("demo", "ya29.abc")
        assert isinstance(exc_info.value.__cause__, httpx.ConnectTimeout)

    def test_missing_project(self):
        resolver = SourceRepoResolver("")
        with patch("mirror_bridge.target.httpx.get") as mock_get:
            with pytest.raises(ConfigurationError):
                resolver.ensure_exists("demo", "ya29.abc")
        mock_get.assert_not_called()
