#!/usr/bin/env python3
import asyncio, logging, sys
from config.logging_config import configure
from config.app_config import settings
from ads_mqtt.core.exceptions import ConfigurationError
from ads_mqtt.models import load_config
from ads_mqtt.orchestration import BridgeOrchestrator, EXIT_CONFIG_ERROR

log = logging.getLogger("main")

async def async_main() -> int:
    configure()
    log.info("Loading Configurations...")
    try:
        config = load_config(settings.CONFIG_PATH)
    except ConfigurationError as e:
        log.error(f"Failed to load {settings.CONFIG_PATH}: {e}. Application Aborted.")
        return EXIT_CONFIG_ERROR
    log.info("Configurations Successfully Loaded.")

    orchestrator = BridgeOrchestrator(config)
    orchestrator.install_signal_handlers()
    return await orchestrator.run()

def cli():
    sys.exit(asyncio.run(async_main()))

if __name__ == "__main__":
    cli()
