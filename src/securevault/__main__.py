# SecureVault - Main Entry Point
#
# Runs the API server. Configuration comes from SECUREVAULT_* environment
# variables (a .env file in the working directory is read first).

import argparse

from . import __version__
from .core import EventSeverity, EventType, Settings, configure_audit_logger


def main(argv=None):
    """Main entry point for the `securevault` command."""
    parser = argparse.ArgumentParser(
        description="SecureVault - zero-knowledge password vault API server",
        epilog="Settings are read from SECUREVAULT_* environment variables",
    )

    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)",
    )

    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to listen on (default: 8000)",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"SecureVault v{__version__}",
    )

    args = parser.parse_args(argv)

    settings = Settings.from_env()

    # Log startup
    configure_audit_logger(settings.audit_dir).log_event(
        event_type=EventType.SYSTEM_START,
        severity=EventSeverity.INFO,
        message="SecureVault starting",
        details={"version": __version__, "host": args.host, "port": args.port},
    )

    print(f"Starting SecureVault API on {args.host}:{args.port}...")
    print("Press Ctrl+C to stop")

    from .api.main import start_api_server
    start_api_server(host=args.host, port=args.port, settings=settings)


if __name__ == "__main__":
    main()
