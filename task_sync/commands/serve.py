"""Serve command - HTTP trigger plus the interval scheduler."""

from typing import Optional
import logging

import uvicorn

from ..core.config import SyncConfig
from ..sync.scheduler import IntervalScheduler
from ..web.api import create_app
from .sync import build_runner


class ServeCommand:
    """Run the long-lived service: one runner shared by the API and the scheduler."""

    def __init__(self, config: SyncConfig, verbose: bool = False):
        self.config = config
        self.verbose = verbose
        self.logger = logging.getLogger(__name__)

    def run(self, host: Optional[str] = None, port: Optional[int] = None,
            scheduler: bool = True) -> bool:
        host = host or self.config.server_host
        port = port or self.config.server_port

        runner = build_runner(self.config)
        app = create_app(runner)

        interval = None
        if scheduler:
            interval = IntervalScheduler(
                runner,
                interval_seconds=self.config.sync_interval_minutes * 60,
                initial_delay_seconds=self.config.initial_sync_delay_seconds,
            )
            interval.start()

        self.logger.info(f"Serving sync API on http://{host}:{port}")
        try:
            uvicorn.run(
                app,
                host=host,
                port=port,
                log_level="debug" if self.verbose else "info",
                log_config=None,
            )
        finally:
            if interval is not None:
                interval.stop()
        return True
