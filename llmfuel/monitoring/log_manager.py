import json
import logging
from pathlib import Path
from datetime import datetime
from typing import Dict, Any, Optional


class LogManager:
    """Logging setup for command-line runs plus JSON metric exports"""

    def __init__(self, log_dir: str = "crawl_data/logs", log_level: str = "INFO", console: bool = True):
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)

        self.setup_logging(log_level, console)

    def setup_logging(self, log_level: str, console: bool = True):
        """Set up root logging with console and dated file handlers"""
        detailed_formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
        )
        simple_formatter = logging.Formatter(
            '%(asctime)s - %(levelname)s - %(message)s'
        )

        root_logger = logging.getLogger()
        root_logger.setLevel(getattr(logging, log_level.upper()))
        root_logger.handlers.clear()

        if console:
            console_handler = logging.StreamHandler()
            console_handler.setLevel(logging.INFO)
            console_handler.setFormatter(simple_formatter)
            root_logger.addHandler(console_handler)

        # All levels, detailed format
        all_logs_file = self.log_dir / f"llmfuel_{datetime.now().strftime('%Y%m%d')}.log"
        file_handler = logging.FileHandler(all_logs_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(detailed_formatter)
        root_logger.addHandler(file_handler)

        # Warnings and errors only: 404s, rejected pages, failed fetches
        error_file = self.log_dir / f"errors_{datetime.now().strftime('%Y%m%d')}.log"
        error_handler = logging.FileHandler(error_file)
        error_handler.setLevel(logging.WARNING)
        error_handler.setFormatter(detailed_formatter)
        root_logger.addHandler(error_handler)

        # Chatty third-party loggers
        for name in ('trafilatura', 'htmldate', 'charset_normalizer'):
            logging.getLogger(name).setLevel(logging.WARNING)

    def export_metrics_json(self, metrics_data: Dict[str, Any], filename: Optional[str] = None) -> Path:
        """Export metrics to JSON file"""
        if filename is None:
            filename = f"metrics_export_{datetime.now().strftime('%Y%m%d_%H%M%S')}.json"

        export_path = self.log_dir / filename
        with open(export_path, 'w') as f:
            json.dump(metrics_data, f, indent=2, default=str)

        logging.info(f"Metrics exported to {export_path}")
        return export_path
