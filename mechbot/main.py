#!/usr/bin/env python3
"""
Main entry point for mechbot
"""

import asyncio
import logging
import signal
import sys
from contextlib import suppress

from .application import BotApplication
from .config import load_settings
from .errors.handling import log_error
from .errors.internal import ConfigError

# Configure logging after imports to prevent other modules from configuring it
from .logging_config import LoggerConfigurator

configurator = LoggerConfigurator()
configurator.configure()


def _install_signal_handlers(app: BotApplication) -> None:  # pragma: no cover - system interaction
    loop = asyncio.get_running_loop()
    shutdown_started = False

    def handler(signum: int) -> None:
        nonlocal shutdown_started
        # Idempotent: only the first signal starts the shutdown
        if shutdown_started:
            return
        shutdown_started = True
        logging.warning(f"🛑 Signal received - initiating shutdown (signal={signum})")
        _ = asyncio.create_task(app.shutdown())

    for signum in (signal.SIGINT, signal.SIGTERM):
        with suppress(NotImplementedError):
            loop.add_signal_handler(signum, handler, signum)


async def main() -> None:
    """Load settings, build the bot and run it until a signal stops it.

    Raises:
        SystemExit: If settings are invalid or a critical error occurs.
    """
    app: BotApplication | None = None
    try:
        print("🚀 Starting mechbot")
        settings = load_settings()
        app = await BotApplication.create(settings)
        _install_signal_handlers(app)
        await app.run()
    except asyncio.CancelledError:
        raise
    except ConfigError as e:
        logging.error(f"⚠️ {str(e)}")
        sys.exit(1)
    except Exception as e:
        log_error("Main application error", e)
        sys.exit(1)
    finally:
        if app is not None:
            await app.shutdown()
        logging.info("✅ Application shutdown complete")


def run() -> None:
    """Synchronous entry point for the application.

    Raises:
        SystemExit: If a critical error occurs during execution.
    """
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        sys.exit(0)
    except asyncio.CancelledError:
        sys.exit(0)
    except Exception as e:
        log_error("Top-level error", e)
        sys.exit(1)


if __name__ == "__main__":
    run()
