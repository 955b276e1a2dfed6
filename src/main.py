"""
Main application for Sight Assist.

Samples the camera periodically, runs object detection, announces scene
changes through speech and answers spoken questions about what is in view.

Usage:
    python src/main.py --config config/config.yaml --listen

Arguments:
    --config: Path to configuration file
    --listen: Start voice recognition immediately
    --no-detect: Do not start the detection loop on startup
    --no-web: Do not start the status/control API
"""

import argparse
import asyncio
import logging
import os
import signal
import sys
import threading
from typing import Any, Dict, Optional, Tuple

import uvicorn
import yaml

from inference.cpu_backend import create_backend_from_config
from models.config import Config
from observation import create_source_from_config
from ops.logging import setup_logging
from pipeline.engine import create_engine_from_config
from runtime.assistant import Assistant
from speech.output import SpeechOutput
from speech.recognition import VoiceListener
from speech.synthesis import Pyttsx3Synthesizer
from storage import DetectionHistoryStore, KeyValueStore
from web.app import create_app


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    """
    try:
        base_path = os.path.join(os.path.dirname(config_path), "default.yaml")
        base_cfg: Dict[str, Any] = {}
        if os.path.exists(base_path):
            with open(base_path, "r") as f:
                base_cfg = yaml.safe_load(f) or {}

        local_overrides_path = os.path.join(os.path.dirname(config_path), "config.yaml")
        local_cfg: Dict[str, Any] = {}
        if os.path.exists(local_overrides_path):
            with open(local_overrides_path, "r") as f:
                local_cfg = yaml.safe_load(f) or {}

        merged = _deep_merge(base_cfg, local_cfg)

        if os.path.exists(config_path) and os.path.abspath(config_path) != os.path.abspath(local_overrides_path):
            with open(config_path, "r") as f:
                explicit_cfg = yaml.safe_load(f) or {}
            merged = _deep_merge(merged, explicit_cfg)

        return merged
    except Exception as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Returns:
        Tuple of (is_valid, error_message)
    """
    required_sections = ['camera', 'detection', 'scheduler', 'storage', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    camera = config.get('camera', {}) or {}
    if 'device_id' not in camera:
        return False, "Missing camera.device_id"
    if not isinstance(camera['device_id'], (int, str)) or isinstance(camera['device_id'], bool):
        return False, "camera.device_id must be an integer (index) or string (URL/path)"
    if isinstance(camera['device_id'], int) and camera['device_id'] < 0:
        return False, "camera.device_id integer must be non-negative"
    if 'resolution' in camera:
        res = camera['resolution']
        if not isinstance(res, list) or len(res) != 2 or not all(_is_positive_int(x) for x in res):
            return False, "camera.resolution must be a list of two positive integers [width, height]"
    if camera.get('rotate', 0) not in (0, 90, 180, 270, None):
        return False, "camera.rotate must be one of: 0, 90, 180, 270"

    detection = config.get('detection', {}) or {}
    if not isinstance(detection.get('model'), str) or not detection.get('model'):
        return False, "detection.model is required"
    conf = detection.get('conf_threshold', 0.3)
    if not isinstance(conf, (int, float)) or not (0 <= conf <= 1):
        return False, "detection.conf_threshold must be between 0 and 1"

    scheduler = config.get('scheduler', {}) or {}
    if not _is_positive_int(scheduler.get('interval_ms', 700)):
        return False, "scheduler.interval_ms must be a positive integer"

    announce = config.get('announce', {}) or {}
    min_interval = announce.get('min_interval_ms', 3000)
    if not isinstance(min_interval, int) or isinstance(min_interval, bool) or min_interval < 0:
        return False, "announce.min_interval_ms must be a non-negative integer"

    storage = config.get('storage', {}) or {}
    if 'local_database_path' not in storage:
        return False, "Missing storage.local_database_path"
    if not isinstance(storage['local_database_path'], str):
        return False, "storage.local_database_path must be a string"
    if 'history_limit' in storage and not _is_positive_int(storage['history_limit']):
        return False, "storage.history_limit must be a positive integer"

    web = config.get('web', {}) or {}
    if 'port' in web and not _is_positive_int(web['port']):
        return False, "web.port must be a positive integer"

    valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
    if config['log_level'] not in valid_log_levels:
        return False, f"log_level must be one of: {', '.join(valid_log_levels)}"

    return True, None


def build_assistant(config: Dict[str, Any]) -> Assistant:
    """
    Create all components from config. Camera and model failures are logged
    and leave the assistant not ready; voice commands keep working.
    """
    cfg = Config.from_dict(config)
    kv_store = KeyValueStore(cfg.storage.local_database_path)
    try:
        kv_store.initialize()
    except Exception as e:
        logging.error(f"Failed to initialize storage, history disabled: {e}")
    history = DetectionHistoryStore(
        kv_store,
        key=cfg.storage.history_key,
        limit=int(cfg.storage.history_limit),
    )

    source = create_source_from_config(config['camera'], source_id="main-camera")
    try:
        source.open()
    except RuntimeError as e:
        logging.error(f"Camera unavailable, detection disabled: {e}")

    detector = create_backend_from_config(config['detection'])
    detector.load()

    engine = create_engine_from_config(config, source=source, detector=detector, history=history)

    speech_cfg = cfg.speech
    locale = speech_cfg.locale
    synthesizer = Pyttsx3Synthesizer(
        rate=int(speech_cfg.rate),
        volume=float(speech_cfg.volume),
    )
    speech = SpeechOutput(synthesizer, locale=locale)
    listener = VoiceListener(
        locale=locale,
        energy_threshold=int(speech_cfg.energy_threshold),
        pause_threshold=float(speech_cfg.pause_threshold),
        phrase_time_limit=speech_cfg.phrase_time_limit,
    )

    assistant = Assistant(engine=engine, speech=speech, listener=listener, history=history)
    assistant.add_person_alert(lambda frame: logging.debug("Person in view"))
    return assistant


async def run_assistant(assistant: Assistant, detect: bool = True, listen: bool = False) -> None:
    """Run until SIGINT/SIGTERM, then release everything."""
    loop = asyncio.get_running_loop()
    assistant.attach_loop(loop)
    stop_event = asyncio.Event()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except (NotImplementedError, RuntimeError):
            pass

    if detect and not assistant.start_detection():
        logging.warning("Detection could not be started (camera or model not ready)")
    if listen:
        assistant.start_listening()

    try:
        await stop_event.wait()
    finally:
        await assistant.aclose()
        logging.info("Sight Assist stopped")


def main():
    """Main application function."""
    parser = argparse.ArgumentParser(description='Sight Assist - camera to speech guidance')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--listen', action='store_true',
                        help='Start voice recognition on startup')
    parser.add_argument('--no-detect', action='store_true',
                        help='Do not start detection on startup')
    parser.add_argument('--no-web', action='store_true',
                        help='Disable the status/control API')
    args = parser.parse_args()

    config = load_config(args.config)

    is_valid, error_msg = validate_config(config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    setup_logging(config['log_path'], config['log_level'])
    logging.info("Starting Sight Assist")

    assistant = build_assistant(config)

    web_cfg = Config.from_dict(config).web
    if web_cfg.enabled and not args.no_web:
        app = create_app(assistant)

        def run_web_app():
            uvicorn.run(
                app,
                host=web_cfg.host,
                port=int(web_cfg.port),
                log_level="warning",
            )

        web_thread = threading.Thread(target=run_web_app, daemon=True)
        web_thread.start()
        logging.info(f"Web interface started on port {web_cfg.port}")

    try:
        asyncio.run(run_assistant(assistant, detect=not args.no_detect, listen=args.listen))
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
    finally:
        assistant.speech.close()
        assistant.history_store.close()


if __name__ == "__main__":
    main()
