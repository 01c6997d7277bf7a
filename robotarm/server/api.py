# mypy: disable-error-code = attr-defined
"""JSON HTTP API for the robot arm.

Every route runs one controller operation on the request thread. The
controller is attached to the app as ``app.controller`` by ``create_app``.
"""

from typing import Any, Dict, Tuple
import logging

from flask import Blueprint, Response, current_app, jsonify, request

from robotarm.core.error_classifier import is_link_fault
from robotarm.core.exceptions import (
    NotConnectedError,
    ParseError,
    ProtocolError,
    RobotArmError,
    ValidationError
)

logger = logging.getLogger(__name__)

arm_api = Blueprint("arm_api", __name__, url_prefix="/api")


class BadRequest(Exception):
    """Request body missing, not a JSON object, or lacking a key."""


def error_status(error: BaseException) -> int:
    """HTTP status code for an exception raised by a controller operation."""
    if isinstance(error, (ValidationError, BadRequest)):
        return 400
    if isinstance(error, (ProtocolError, ParseError)):
        return 502
    if isinstance(error, NotConnectedError) or is_link_fault(error):
        return 503
    return 500


def _error_response(error: BaseException) -> Tuple[Response, int]:
    status = error_status(error)
    if status == 503:
        logger.warning("Device unavailable: %s", error)
    elif status >= 500:
        logger.error("Request failed: %s", error)
    return jsonify({"error": str(error)}), status


@arm_api.errorhandler(BadRequest)
@arm_api.errorhandler(RobotArmError)
def handle_arm_error(error: Exception):
    return _error_response(error)


@arm_api.errorhandler(OSError)
def handle_os_error(error: OSError):
    return _error_response(error)


def _json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise BadRequest("json data must be a dict")
    return data


def _require(data: Dict[str, Any], key: str) -> Any:
    if key not in data:
        raise BadRequest(f"missing key in json data: {key}")
    return data[key]


def _ok():
    return jsonify({"status": "ok"})


@arm_api.route("/health", methods=["GET"])
def health():
    return jsonify({
        "status": "ok",
        "serial": current_app.controller.health_status().value
    })


@arm_api.route("/serial/start", methods=["POST"])
def start_serial():
    current_app.controller.enter_serial_mode()
    return jsonify({"status": "serial_mode"})


@arm_api.route("/serial/stop", methods=["POST"])
def stop_serial():
    current_app.controller.exit_serial_mode()
    return jsonify({"status": "button_mode"})


@arm_api.route("/servo/<int:channel>/angle", methods=["POST"])
def set_angle(channel: int):
    data = _json_body()
    current_app.controller.set_angle(channel, _require(data, "angle"))
    return _ok()


@arm_api.route("/servo/<int:channel>/pwm", methods=["POST"])
def set_pwm(channel: int):
    data = _json_body()
    current_app.controller.set_pwm(channel, _require(data, "pulse_us"))
    return _ok()


@arm_api.route("/servo/<int:channel>", methods=["GET"])
def get_angle(channel: int):
    angle = current_app.controller.get_angle(channel)
    return jsonify({"channel": channel, "angle": angle})


@arm_api.route("/servos", methods=["GET"])
def get_all_angles():
    positions = current_app.controller.get_all_angles()
    return jsonify({"servos": [position.to_dict() for position in positions]})


@arm_api.route("/pose", methods=["POST"])
def pose():
    data = _json_body()
    current_app.controller.pose(_require(data, "angles"))
    return _ok()


@arm_api.route("/move", methods=["POST"])
def move():
    data = _json_body()
    current_app.controller.move(_require(data, "duration_ms"), _require(data, "angles"))
    return _ok()
