# mypy: disable-error-code = attr-defined
"""Flask application factory and command-line entry point."""

from dataclasses import replace
from typing import List, Optional
import argparse
import logging
import sys

from flask import Flask, request

from robotarm import __version__
from robotarm.config import Config, ConfigManager, ConfigSchema, LogLevel
from robotarm.core.servo_controller import ServoController
from robotarm.core.simulator import SimulatedArm
from robotarm.core.supervisor import ConnectionSupervisor, TransportFactory
from robotarm.core.transport import SerialTransport
from robotarm.logging import CommunicationLogger, configure_logging
from robotarm.server.api import arm_api

logger = logging.getLogger(__name__)

ENDPOINTS = [
    "GET  /api/health",
    "POST /api/serial/start",
    "POST /api/serial/stop",
    "POST /api/servo/<id>/angle",
    "POST /api/servo/<id>/pwm",
    "GET  /api/servo/<id>",
    "GET  /api/servos",
    "POST /api/pose",
    "POST /api/move",
]


def create_app(controller: ServoController, cors_origin: str = "*") -> Flask:
    """Create a Flask app serving the arm API for the given controller."""
    app = Flask(__name__)
    app.controller = controller
    app.config["CORS_ORIGIN"] = cors_origin
    app.register_blueprint(arm_api)

    @app.before_request
    def answer_preflight():
        if request.method == "OPTIONS":
            return "", 204
        return None

    @app.after_request
    def add_cors_headers(response):
        response.headers["Access-Control-Allow-Origin"] = app.config["CORS_ORIGIN"]
        response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        return response

    return app


def build_transport_factory(config: Config,
                            comm_logger: Optional[CommunicationLogger] = None) -> TransportFactory:
    """Transport factory for the configured device.

    The simulated arm is a single instance so servo state survives
    reconnects, like a real arm does.
    """
    if config.serial.simulate:
        arm = SimulatedArm()
        return lambda: arm

    serial_config = config.serial

    def factory() -> SerialTransport:
        return SerialTransport(
            port=serial_config.port,
            baud_rate=serial_config.baud_rate,
            timeout=serial_config.timeout,
            open_settle_delay=serial_config.open_settle_delay,
            flush_settle_delay=serial_config.flush_settle_delay,
            logger=comm_logger
        )

    return factory


def build_supervisor(config: Config,
                     comm_logger: Optional[CommunicationLogger] = None) -> ConnectionSupervisor:
    return ConnectionSupervisor(
        build_transport_factory(config, comm_logger),
        settle_delay=config.serial.command_settle_delay,
        max_response_bytes=config.serial.max_response_bytes,
        reconnect_interval=config.supervisor.reconnect_interval,
        comm_logger=comm_logger
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="robotarm-backend",
        description="HTTP control service for a six-servo robot arm"
    )
    parser.add_argument("--port", help="serial device path (env SERIAL_PORT)")
    parser.add_argument("--baud", type=int, help="serial baud rate (env SERIAL_BAUD)")
    parser.add_argument("--bind", help="HTTP listen address host:port (env BIND_ADDR)")
    parser.add_argument("--config", help="path to a YAML config file")
    parser.add_argument("--log-level", choices=[level.value for level in LogLevel],
                        help="log level (env LOG_LEVEL)")
    parser.add_argument("--simulate", action="store_true",
                        help="drive a simulated arm instead of a serial device")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def apply_cli_overrides(config: Config, args: argparse.Namespace) -> Config:
    """Return config with command-line values taking precedence."""
    serial_config = config.serial
    if args.port is not None:
        serial_config = replace(serial_config, port=args.port)
    if args.baud is not None:
        serial_config = replace(serial_config, baud_rate=args.baud)
    if args.simulate:
        serial_config = replace(serial_config, simulate=True)

    server_config = config.server
    if args.bind is not None:
        server_config = replace(server_config, bind_addr=args.bind)

    logging_config = config.logging
    if args.log_level is not None:
        logging_config = replace(logging_config, level=LogLevel(args.log_level))

    config = replace(config, serial=serial_config, server=server_config, logging=logging_config)
    is_valid, errors = ConfigSchema.validate_config(config.to_dict())
    if not is_valid:
        raise ValueError("Invalid command-line options:\n" + "\n".join(
            f"  - {error}" for error in errors
        ))
    return config


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    try:
        config = ConfigManager(config_path=args.config).load()
        config = apply_cli_overrides(config, args)
        host, port = config.server.host, config.server.port
    except (FileNotFoundError, ValueError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    comm_logger = configure_logging(config.logging)
    supervisor = build_supervisor(config, comm_logger)
    device = "simulated arm" if config.serial.simulate else config.serial.port

    logger.info("Robot arm backend %s starting", __version__)
    if supervisor.connect():
        logger.info("Connected to %s at %d baud", device, config.serial.baud_rate)
    else:
        logger.warning("Could not connect to %s, retrying every %.1f s",
                       device, config.supervisor.reconnect_interval)
    supervisor.start()

    app = create_app(ServoController(supervisor), cors_origin=config.server.cors_origin)
    logger.info("Listening on http://%s", config.server.bind_addr)
    for endpoint in ENDPOINTS:
        logger.info("  %s", endpoint)

    try:
        app.run(host=host, port=port, threaded=True)
    finally:
        supervisor.stop()
        if comm_logger is not None:
            comm_logger.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
