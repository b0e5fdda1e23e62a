"""
Core module for the DIP check-in bot.

This package contains the configuration, logging, credential store, cycle
scheduling and console presentation components.

Submodules:
    config: Application settings (``BotSettings``) via Pydantic.
    credentials: Token-file parsing into ``Account`` objects; JWT expiry decode.
    orchestrator: ``CycleScheduler`` 24-hour loop with cooperative shutdown.
    display: Rich banner, live countdown and cycle summary table.
    logging_setup: ``SUCCESS`` level, compressed rotating file + safe console logging.
    utils: Cancellable sleep and duration formatting helpers.
"""
