#!/usr/bin/env python3
"""
Check that the detection API and the sheet logger are reachable.

Sends a small probe image to the detection API and, with --log, one test
row to the sheet logger.

Usage:
    python tools/test_detector_connection.py --config config/config.yaml [--log]
"""

import argparse
import logging
import os
import sys

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src"))

from inference.roboflow_backend import RoboflowDetector
from main import load_config
from models.config import Config
from sinks.sheet_logger import DetectionLog, SheetLogger, SOURCE_UPLOAD


def main():
    """Main function for connectivity testing."""
    parser = argparse.ArgumentParser(description='Test detection API and sheet logger connectivity')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--log', action='store_true',
                        help='Also send one test row to the sheet logger')
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    config = Config.from_dict(load_config(args.config))

    if not config.detector.api_key:
        print("ERROR: No detection API key (set ROBOFLOW_API_KEY or detector.api_key)")
        return 1

    print(f"Testing detection API at {config.detector.endpoint}")
    detector = RoboflowDetector(config.detector)
    try:
        ok = detector.test_connection()
    finally:
        detector.close()
    if not ok:
        print("ERROR: Detection API test failed")
        return 1
    print("Detection API is reachable")

    if args.log:
        sheet_logger = SheetLogger(config.sheet_logger)
        if not sheet_logger.enabled:
            print("ERROR: No sheet logger URL (set SHEET_LOGGER_URL or sheet_logger.url)")
            return 1
        sent = sheet_logger.log(DetectionLog(part="Connection Test", confidence=1.0, source=SOURCE_UPLOAD))
        sheet_logger.close()
        if not sent:
            print("ERROR: Sheet logger request failed")
            return 1
        print("Sheet logger request sent (check the sheet for the test row)")

    return 0


if __name__ == "__main__":
    sys.exit(main())
