"""
Main entry point for the Image Diff command line tool.

This module handles:
- Command line argument parsing
- Logging configuration
- Settings loading
- Running the comparison and saving the diff image
- Exception handling
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, List


# =============================================================================
# Constants
# =============================================================================

APP_NAME = "imagediff"
APP_DISPLAY_NAME = "Image Diff"
APP_VERSION = "1.0.0"

EXIT_OK = 0
EXIT_FAILURE = 1


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class CommandLineArgs:
    """Parsed command line arguments."""
    left_path: str = ""
    right_path: str = ""
    output_path: Optional[str] = None
    config_file: Optional[str] = None
    log_level: Optional[str] = None
    show_stats: bool = False


# =============================================================================
# Logging Setup
# =============================================================================

class LogFormatter(logging.Formatter):
    """Custom log formatter with colors for console."""

    COLORS = {
        logging.INFO: '\033[32m',      # Green
        logging.WARNING: '\033[33m',   # Yellow
        logging.ERROR: '\033[31m',     # Red
        logging.CRITICAL: '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def __init__(self, use_colors: bool = True):
        super().__init__(
            fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)

        if self.use_colors:
            color = self.COLORS.get(record.levelno, '')
            return f"{color}{formatted}{self.RESET}"

        return formatted


def setup_logging(level: str = "INFO", log_file: Optional[Path] = None) -> logging.Logger:
    """
    Configure application logging.

    Args:
        level: Log level string
        log_file: Optional file path for logging

    Returns:
        Root logger instance
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    # Console handler; stdout is left for --stats output
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(LogFormatter(use_colors=True))
    root_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(
            log_file,
            encoding='utf-8'
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(LogFormatter(use_colors=False))
        root_logger.addHandler(file_handler)

    # Reduce noise from third-party libraries
    logging.getLogger('PIL').setLevel(logging.WARNING)

    return root_logger


# =============================================================================
# Exception Handling
# =============================================================================

class ExceptionHandler:
    """
    Global exception handler for unhandled exceptions.

    Logs the exception with its traceback.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def handle_exception(
        self,
        exc_type: type,
        exc_value: BaseException,
        exc_tb
    ) -> None:
        """Handle an unhandled exception."""
        # Don't handle keyboard interrupt
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_tb)
            return

        self.logger.critical(
            "Unhandled exception",
            exc_info=(exc_type, exc_value, exc_tb)
        )


# =============================================================================
# Command Line Parsing
# =============================================================================

def parse_arguments(args: Optional[List[str]] = None) -> CommandLineArgs:
    """
    Parse command line arguments.

    Args:
        args: Arguments to parse (defaults to sys.argv)

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Row-by-row visual diff of two images",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Removed rows are tinted red, added rows green. The diff image is as
wide as the wider input and has one row per diff entry.

Examples:
  %(prog)s before.png after.png              Write diff.png
  %(prog)s -o changes.png a.png b.png        Choose the output file
  %(prog)s --stats a.png b.png               Also print row statistics
        """
    )

    parser.add_argument('left', help='Original image')
    parser.add_argument('right', help='Modified image')

    parser.add_argument(
        '-o', '--output',
        help='Output file for the diff image (default: diff.png)'
    )
    parser.add_argument(
        '-c', '--config',
        help='Configuration file path'
    )
    parser.add_argument(
        '--stats',
        action='store_true',
        help='Print added/removed/unchanged row counts'
    )

    # Logging
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose output'
    )
    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        default=None,
        help='Log level'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'{APP_NAME} {APP_VERSION}'
    )

    parsed = parser.parse_args(args)

    result = CommandLineArgs(
        left_path=parsed.left,
        right_path=parsed.right,
        output_path=parsed.output,
        config_file=parsed.config,
        show_stats=parsed.stats,
    )

    if parsed.verbose:
        result.log_level = 'DEBUG'
    else:
        result.log_level = parsed.log_level

    return result


# =============================================================================
# Comparison
# =============================================================================

def run_comparison(args: CommandLineArgs, settings_manager) -> int:
    """
    Diff the two images and write the diff image.

    Args:
        args: Parsed command line arguments
        settings_manager: Loaded settings

    Returns:
        Exit code
    """
    from imagediff.core.diff import ImageDiffEngine
    from imagediff.core.exceptions import ImageDiffError
    from imagediff.services.file_io import ImageIOService

    logger = logging.getLogger(APP_NAME)
    output_settings = settings_manager.settings.output
    output_path = Path(args.output_path or output_settings.default_output)

    io_service = ImageIOService(default_format=output_settings.image_format)
    engine = ImageDiffEngine(io_service=io_service)

    try:
        result = engine.compare(args.left_path, args.right_path)
        io_service.save_image(
            result.visualization_image,
            output_path,
            overwrite=output_settings.overwrite
        )
    except ImageDiffError as e:
        logger.error(str(e))
        return EXIT_FAILURE

    if args.show_stats:
        stats = result.statistics
        width, height = result.dimensions
        print(f"added:     {stats.added_rows}")
        print(f"removed:   {stats.removed_rows}")
        print(f"unchanged: {stats.unchanged_rows}")
        print(f"size:      {width}x{height}")

    settings_manager.add_recent_comparison(
        str(Path(args.left_path).resolve()),
        str(Path(args.right_path).resolve())
    )
    return EXIT_OK


# =============================================================================
# Main Function
# =============================================================================

def main(argv: Optional[List[str]] = None) -> int:
    """
    Application main entry point.

    Returns:
        Exit code (0 for success)
    """
    from imagediff.services.settings import SettingsManager

    args = parse_arguments(argv)

    settings_manager = SettingsManager(args.config_file)
    log_settings = settings_manager.settings.logging

    log_file = None
    if log_settings.log_to_file:
        log_dir = Path(log_settings.log_dir) if log_settings.log_dir else settings_manager.settings_path.parent / "logs"
        log_file = log_dir / f"{APP_NAME}_{datetime.now():%Y%m%d}.log"

    logger = setup_logging(args.log_level or log_settings.level, log_file)
    logger.debug(f"Starting {APP_DISPLAY_NAME} v{APP_VERSION}")

    exception_handler = ExceptionHandler(logger)
    sys.excepthook = exception_handler.handle_exception

    return run_comparison(args, settings_manager)


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == '__main__':
    sys.exit(main())
