"""
Jaw crusher part identifier: HTTP service entry point.

Loads layered configuration, wires the classifier, the remote detector, the
logging sink and the live session, then serves the REST API.

Usage:
    python src/main.py --config config/config.yaml

Arguments:
    --config: Path to configuration file
    --host: Override web.host
    --port: Override web.port
"""

import sys
import argparse
import logging
from typing import Dict, Any, Tuple, Optional

import uvicorn

from models.config import Config
from ops.logging import setup_logging
from runtime.context import build_context
from web.app import create_app
from web.services.config_service import ConfigService

VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    """
    try:
        return ConfigService.load_effective_config(config_path)
    except Exception as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def _is_unit(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and 0.0 <= value <= 1.0


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    required_sections = ['camera', 'classifier', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    # Camera
    camera = config.get('camera') or {}
    if 'device_id' in camera:
        if not isinstance(camera['device_id'], (int, str)):
            return False, "camera.device_id must be an integer (index) or string (URL)"
        if isinstance(camera['device_id'], int) and camera['device_id'] < 0:
            return False, "camera.device_id integer must be non-negative"
    if 'resolution' in camera:
        res = camera['resolution']
        if not isinstance(res, list) or len(res) != 2:
            return False, "camera.resolution must be a list of [width, height]"
        if not all(isinstance(x, int) and x > 0 for x in res):
            return False, "camera.resolution values must be positive integers"
    if 'fps' in camera and (not isinstance(camera['fps'], int) or camera['fps'] <= 0):
        return False, "camera.fps must be a positive integer"
    if camera.get('backend', 'opencv') != 'opencv':
        return False, "camera.backend must be: opencv"

    # Classifier
    classifier = config.get('classifier') or {}
    if classifier.get('backend', 'ultralytics') != 'ultralytics':
        return False, "classifier.backend must be: ultralytics"
    if not isinstance(classifier.get('model'), str) or not classifier.get('model'):
        return False, "classifier.model is required"
    top_k = classifier.get('top_k', 7)
    if not isinstance(top_k, int) or top_k <= 0:
        return False, "classifier.top_k must be a positive integer"

    # Detector
    detector = config.get('detector') or {}
    if detector.get('enabled', False):
        if not isinstance(detector.get('model_id'), str) or not detector.get('model_id'):
            return False, "detector.model_id is required when detector.enabled is true"
        if 'jpeg_quality' in detector and not _is_unit(detector['jpeg_quality']):
            return False, "detector.jpeg_quality must be between 0 and 1"

    # Live session
    live = config.get('live') or {}
    for key in ('confidence_threshold', 'min_threshold', 'max_threshold'):
        if key in live and not _is_unit(live[key]):
            return False, f"live.{key} must be between 0 and 1"
    if live.get('min_threshold', 0.3) > live.get('max_threshold', 0.95):
        return False, "live.min_threshold must not exceed live.max_threshold"
    for key in ('interval_ms', 'cooldown_ms', 'max_display'):
        if key in live and (not isinstance(live[key], int) or live[key] <= 0):
            return False, f"live.{key} must be a positive integer"

    # Upload
    upload = config.get('upload') or {}
    if 'confidence_threshold' in upload and not _is_unit(upload['confidence_threshold']):
        return False, "upload.confidence_threshold must be between 0 and 1"
    if upload.get('strategy', 'detect') not in ('detect', 'grid'):
        return False, "upload.strategy must be one of: detect, grid"

    # Grid scan
    grid = config.get('grid_scan') or {}
    for key in ('rows', 'cols'):
        if key in grid and (not isinstance(grid[key], int) or grid[key] <= 0):
            return False, f"grid_scan.{key} must be a positive integer"
    if 'overlap' in grid and not (_is_unit(grid['overlap']) and grid['overlap'] < 1.0):
        return False, "grid_scan.overlap must be in [0, 1)"

    # Labels
    labels = config.get('labels')
    if labels is not None and (not isinstance(labels, list) or not all(isinstance(x, str) for x in labels)):
        return False, "labels must be a list of strings"

    if config['log_level'] not in VALID_LOG_LEVELS:
        return False, f"log_level must be one of: {', '.join(VALID_LOG_LEVELS)}"

    return True, None


def main():
    """Main application function."""
    parser = argparse.ArgumentParser(description='Jaw Crusher Part Identifier')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--host', type=str, default=None,
                        help='Bind address (overrides web.host)')
    parser.add_argument('--port', type=int, default=None,
                        help='Listen port (overrides web.port)')
    args = parser.parse_args()

    raw = load_config(args.config)

    is_valid, error_msg = validate_config(raw)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    config = Config.from_dict(raw)
    setup_logging(config.log_path, config.log_level)
    logging.info("Starting Jaw Crusher Part Identifier")

    if not config.sheet_logger.url:
        logging.warning("Sheet logger URL not configured, detections will not be logged")
    if config.detector.enabled and not config.detector.api_key:
        logging.warning("Detector enabled without an API key, every request will fall back to the classifier")

    ctx = build_context(config)
    host = args.host or config.web.host
    port = args.port or config.web.port
    logging.info(f"Web interface starting on {host}:{port}")

    try:
        uvicorn.run(create_app(ctx), host=host, port=port, log_level="info")
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
    finally:
        logging.info("Jaw Crusher Part Identifier stopped")


if __name__ == "__main__":
    main()
