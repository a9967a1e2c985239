"""Tests for image provisioning."""

import logging

import pytest
import requests
from docker.errors import NotFound

from quarantine.errors import TransportError
from quarantine.images import ImageProvisioner


class TestEnsure:
    """Test pulling the session image."""

    @pytest.mark.asyncio
    async def test_pulls_requested_image(self, docker_client):
        await ImageProvisioner(docker_client).ensure("alpine:3.19")
        docker_client.api.pull.assert_called_once_with(
            "alpine:3.19", stream=True, decode=True
        )

    @pytest.mark.asyncio
    async def test_layer_errors_are_tolerated(self, docker_client, caplog):
        """Error events are logged but the pull still succeeds."""
        docker_client.api.pull.return_value = iter([
            {"status": "Pulling from library/alpine", "id": "3.19"},
            {"error": "layer a failed", "errorDetail": {"code": 500, "message": "boom"}},
            {"error": "layer b failed"},
            {"status": "Download complete", "id": "f1e2", "progress": "[====>]"},
        ])

        with caplog.at_level(logging.INFO):
            await ImageProvisioner(docker_client).ensure("alpine:3.19")

        errors = [r.getMessage() for r in caplog.records if r.levelno == logging.ERROR]
        assert errors == ["layer a failed", "500 :: boom", "layer b failed"]
        assert any("f1e2 Download complete [====>]" in r.getMessage() for r in caplog.records)

    @pytest.mark.asyncio
    async def test_broken_stream_raises(self, docker_client):
        """A transport failure mid-stream aborts provisioning."""
        def events():
            yield {"status": "Pulling fs layer", "id": "f1e2"}
            raise requests.exceptions.ConnectionError("connection lost")

        docker_client.api.pull.return_value = events()
        with pytest.raises(TransportError, match="connection lost"):
            await ImageProvisioner(docker_client).ensure("alpine:3.19")

    @pytest.mark.asyncio
    async def test_rejected_pull_raises(self, docker_client):
        docker_client.api.pull.side_effect = NotFound("pull access denied")
        with pytest.raises(TransportError, match="pull access denied"):
            await ImageProvisioner(docker_client).ensure("nope:latest")
