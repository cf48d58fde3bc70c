"""Tests for the process entry point."""

from unittest.mock import AsyncMock, patch

import pytest

import main
from ads_mqtt.orchestration import EXIT_CONFIG_ERROR, EXIT_CONTROLLER_CONNECT_ERROR


class TestAsyncMain:

    @pytest.mark.asyncio
    async def test_missing_config_exits_1(self, tmp_path):
        with patch.object(main.settings, "CONFIG_PATH", str(tmp_path / "missing.json")):
            assert await main.async_main() == EXIT_CONFIG_ERROR

    @pytest.mark.asyncio
    async def test_runs_orchestrator_with_loaded_config(self, config_file):
        with patch.object(main.settings, "CONFIG_PATH", str(config_file)), \
                patch.object(main, "BridgeOrchestrator") as orchestrator_cls:
            orchestrator_cls.return_value.run = AsyncMock(return_value=EXIT_CONTROLLER_CONNECT_ERROR)

            assert await main.async_main() == EXIT_CONTROLLER_CONNECT_ERROR

        config = orchestrator_cls.call_args.args[0]
        assert list(config.plc.tags) == ["Line1"]
        orchestrator_cls.return_value.install_signal_handlers.assert_called_once()
