"""
Main entry point for the JobFlow web UI.
"""

import argparse
import sys

from jobflow.config.settings import Settings
from jobflow.utils.logger import setup_logging, get_logger
from jobflow.web import create_app


def main():
    """Run the JobFlow web UI."""
    parser = argparse.ArgumentParser(description="JobFlow job application tracker")
    parser.add_argument(
        "--config",
        default="config.json",
        help="Optional JSON settings file (default: config.json)"
    )
    parser.add_argument("--host", help="Interface to bind (default from settings)")
    parser.add_argument("--port", type=int, help="Port to listen on (default from settings)")
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Run Flask in debug mode"
    )

    args = parser.parse_args()

    try:
        settings = Settings.from_json(args.config)
    except ValueError as e:
        print(str(e))
        sys.exit(1)

    setup_logging(level=settings.log_level, log_file=settings.log_file)
    logger = get_logger(__name__)

    host = args.host or settings.host
    port = args.port or settings.port
    debug = args.debug or settings.debug

    app = create_app(settings)

    logger.info("=" * 70)
    logger.info("💼 JOBFLOW - WEB UI")
    logger.info("=" * 70)
    logger.info(f"🌐 Opening web UI at http://{host}:{port}")
    logger.info(f"📁 Data directory: {settings.data_dir}")
    logger.info("   Press Ctrl+C to stop")

    app.run(debug=debug, host=host, port=port, use_reloader=False)


if __name__ == "__main__":
    main()
