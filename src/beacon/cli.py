"""CLI entry point for Beacon."""

import argparse
import logging
import signal
import sys
import threading

from .callback import start_callback_server
from .config import AgentConfig, config_to_yaml, load_config, merge_cli_args, validate_config
from .controller import RegistrationController
from .errors import ConfigError
from .registry import RegistryClient


logger = logging.getLogger(__name__)


def _add_common_args(parser: argparse.ArgumentParser) -> None:
    """Add config flags shared by every subcommand."""
    parser.add_argument("--config", type=str, help="Path to YAML config file")
    parser.add_argument(
        "--app-name", type=str, dest="app_name",
        help="Application alias advertised to the registry",
    )
    parser.add_argument(
        "--http-port", type=int, dest="http_port",
        help="Local HTTP port used in the callback URL (default: 8080)",
    )
    parser.add_argument("--jmx-host", type=str, dest="jmx_host", help="Advertised management host")
    parser.add_argument(
        "--jmx-port", type=int, dest="jmx_port",
        help="Advertised management port (BEACON_JMX_PORT overrides it)",
    )
    parser.add_argument("--registry-url", type=str, dest="registry_url", help="Registry base URL")
    parser.add_argument(
        "--authorization", type=str,
        help="Authorization header value sent on every registry call",
    )
    parser.add_argument(
        "--callback-host", type=str, dest="callback_host",
        help="Hostname the registry uses to reach this process",
    )
    parser.add_argument(
        "--callback-path", type=str, dest="callback_path",
        help="Path of the callback endpoint (default: /cryostat-discovery)",
    )
    parser.add_argument(
        "--retry-interval", type=float, dest="retry_interval",
        help="Seconds between registration attempts (default: 30)",
    )
    parser.add_argument(
        "--request-timeout", type=float, dest="request_timeout",
        help="Per-request timeout in seconds (default: 10)",
    )


def _build_config(args) -> AgentConfig:
    """Build a validated AgentConfig from a config file + CLI overrides."""
    if args.config:
        config = load_config(args.config)
    else:
        config = AgentConfig()
    merge_cli_args(config, args)
    return validate_config(config)


def _build_client(config: AgentConfig) -> RegistryClient:
    return RegistryClient(config.registry_url, config.authorization,
                          timeout=config.request_timeout)


def cmd_run(args) -> None:
    """Register with the registry and stay registered until signalled."""
    config = _build_config(args)
    controller = RegistrationController(config, _build_client(config))

    server = start_callback_server(
        config.callback_path,
        lambda: controller.is_registered,
        host=config.callback_bind,
        port=config.http_port,
    )
    logger.info("callback listener on %s:%d%s", config.callback_bind,
                config.http_port, config.callback_path)

    shutdown = threading.Event()

    def _on_signal(signum, frame):
        logger.info("received signal %d, shutting down", signum)
        shutdown.set()

    signal.signal(signal.SIGINT, _on_signal)
    signal.signal(signal.SIGTERM, _on_signal)

    controller.start()
    try:
        while not shutdown.wait(1.0):
            pass
    finally:
        controller.stop()
        server.shutdown()
        server.server_close()


def cmd_show_config(args) -> None:
    """Print the resolved configuration."""
    config = _build_config(args)
    print(config_to_yaml(config), end="")


def cmd_ping(args) -> None:
    """Check that the registry is reachable."""
    config = _build_config(args)
    result = _build_client(config).ping()
    if not result.ok:
        print(f"Registry at {config.registry_url} unreachable: {result.error}", file=sys.stderr)
        sys.exit(1)
    print(f"Registry at {config.registry_url} is reachable")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="beacon",
        description="Register this process with a discovery registry and keep it registered",
    )
    parser.add_argument(
        "--log-level", type=str, default="INFO", dest="log_level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser(
        "run", help="Register and hold the registration until SIGINT/SIGTERM",
    )
    _add_common_args(run_parser)
    run_parser.add_argument(
        "--callback-bind", type=str, dest="callback_bind",
        help="Bind address of the callback listener (default: 0.0.0.0)",
    )
    run_parser.set_defaults(func=cmd_run)

    show_parser = subparsers.add_parser("show-config", help="Print the resolved configuration")
    _add_common_args(show_parser)
    show_parser.set_defaults(func=cmd_show_config)

    ping_parser = subparsers.add_parser("ping", help="Check that the registry is reachable")
    _add_common_args(ping_parser)
    ping_parser.set_defaults(func=cmd_ping)

    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        args.func(args)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
