"""
HARSI Journal Application Runner

Main entry point: loads settings, configures logging, migrates the
database, starts the providers and shuts them down on SIGINT/SIGTERM.
"""

import asyncio
import signal
import sys
from typing import List

import requests
from loguru import logger

from Configure import ConfigLogger
from Configure.settings.Settings import Settings
from Database import DoMigrations
from Providers.loader import get_providers
from Providers.provider import Provider

TELEGRAM_API_URL = "https://api.telegram.org"


class ApplicationRunner:
    """Main application runner for the HARSI journal"""

    def __init__(self):
        self.settings = None
        self.database_manager = None
        self.providers: List[Provider] = []
        self.shutdown_event = asyncio.Event()
        self._stopped = False

    async def run(self) -> None:
        try:
            self._display_startup_banner()
            await self._initialize_application()
            await self._start_services()
        except KeyboardInterrupt:
            logger.info("Received shutdown signal")
            await self._shutdown()
        except Exception as e:
            logger.critical(f"Critical error during application startup: {e}")
            await self._shutdown()
            sys.exit(1)

    def _display_startup_banner(self) -> None:
        banner = """
    ╔══════════════════════════════════════╗
    ║          HARSI Journal Bot           ║
    ║      Trade log & risk statistics     ║
    ╚══════════════════════════════════════╝
        """
        print(banner)
        logger.info("Initializing HARSI journal...")

    async def _initialize_application(self) -> None:
        """Initialize all application components in proper order"""
        self._load_configuration()
        await self._check_telegram_connectivity()
        self._initialize_components()
        self._setup_signal_handlers()
        logger.success("Application initialization completed")

    def _load_configuration(self) -> None:
        try:
            self.settings = Settings.get_instance()
        except Exception as e:
            logger.critical(f"Failed to load configuration: {e}")
            raise

    async def _check_telegram_connectivity(self, max_retries: int = 5, retry_delay: float = 3) -> None:
        """Check the Telegram API is reachable before starting polling"""
        for attempt in range(max_retries):
            try:
                logger.info(f"Checking Telegram API connectivity (attempt {attempt + 1}/{max_retries})...")
                response = await asyncio.to_thread(requests.head, TELEGRAM_API_URL, timeout=5)
                if response.status_code in (200, 301, 302):
                    logger.success("Telegram API connectivity confirmed")
                    return
                logger.warning(f"Telegram API returned status {response.status_code}")
            except requests.exceptions.Timeout:
                logger.warning(f"Telegram API timeout (attempt {attempt + 1}/{max_retries})")
            except requests.exceptions.ConnectionError:
                logger.warning(f"Telegram API connection failed (attempt {attempt + 1}/{max_retries})")

            if attempt < max_retries - 1:
                await asyncio.sleep(retry_delay)

        error_msg = "Unable to access Telegram API. Please check your internet connection."
        logger.critical(error_msg)
        raise ConnectionError(error_msg)

    def _initialize_components(self) -> None:
        ConfigLogger(
            level=self.settings.log_level,
            log_file=self.settings.log_file,
            rotation=self.settings.log_rotation,
            retention=self.settings.log_retention,
        )
        self.database_manager = DoMigrations(self.settings)
        logger.success("Component initialization completed")

    def _setup_signal_handlers(self) -> None:
        def signal_handler(signum, frame):
            logger.info(f"Received signal {signum}")
            self.shutdown_event.set()

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

    async def _start_services(self) -> None:
        self.providers = get_providers(self.settings, self.database_manager)
        if not self.providers:
            logger.error("Nothing to run, exiting")
            return

        results = await asyncio.gather(
            *(prov.start_monitoring() for prov in self.providers), return_exceptions=True
        )
        for prov, result in zip(self.providers, results):
            if isinstance(result, Exception):
                logger.error(f"Failed to start provider {prov.name}: {result}")

        logger.success("All services started. HARSI journal is now active.")
        logger.info("Press Ctrl+C to stop")
        try:
            await self.shutdown_event.wait()
        finally:
            await self._shutdown()

    async def _shutdown(self) -> None:
        if self._stopped:
            return
        self._stopped = True
        logger.info("Initiating graceful shutdown...")
        for prov in self.providers:
            try:
                await prov.stop()
            except Exception as e:
                logger.warning(f"Provider {prov.name} stop encountered an issue: {e}")
        logger.success("Application shutdown completed")


async def main() -> None:
    runner = ApplicationRunner()
    await runner.run()


def cli() -> None:
    """Console script entry point"""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Application terminated by user")
    except Exception as e:
        logger.critical(f"Unhandled exception: {e}")
        sys.exit(1)


if __name__ == "__main__":
    cli()
