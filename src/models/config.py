"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


@dataclass
class CameraConfig:
    """Capture device configuration."""
    device_id: Union[int, str] = 0
    resolution: List[int] = field(default_factory=lambda: [1280, 720])
    fps: int = 30
    buffer_size: int = 1
    max_retries: int = 3
    rotate: int = 0
    flip_horizontal: bool = False
    flip_vertical: bool = False

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CameraConfig":
        """Adapter: Create from config dictionary."""
        return cls(
            device_id=d.get("device_id", 0),
            resolution=d.get("resolution", [1280, 720]),
            fps=d.get("fps", 30),
            buffer_size=d.get("buffer_size", 1),
            max_retries=d.get("max_retries", 3),
            rotate=d.get("rotate", 0) or 0,
            flip_horizontal=d.get("flip_horizontal", False),
            flip_vertical=d.get("flip_vertical", False),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "device_id": self.device_id,
            "resolution": self.resolution,
            "fps": self.fps,
            "buffer_size": self.buffer_size,
            "max_retries": self.max_retries,
            "rotate": self.rotate,
            "flip_horizontal": self.flip_horizontal,
            "flip_vertical": self.flip_vertical,
        }


@dataclass
class DetectionConfig:
    """Detection model configuration."""
    model: str = "yolov8n.pt"
    conf_threshold: float = 0.3
    iou_threshold: float = 0.45
    classes: Optional[List[int]] = None
    class_name_overrides: Optional[Dict[int, str]] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetectionConfig":
        return cls(
            model=d.get("model", "yolov8n.pt"),
            conf_threshold=d.get("conf_threshold", 0.3),
            iou_threshold=d.get("iou_threshold", 0.45),
            classes=d.get("classes"),
            class_name_overrides=d.get("class_name_overrides"),
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "model": self.model,
            "conf_threshold": self.conf_threshold,
            "iou_threshold": self.iou_threshold,
        }
        if self.classes is not None:
            d["classes"] = self.classes
        if self.class_name_overrides is not None:
            d["class_name_overrides"] = self.class_name_overrides
        return d


@dataclass
class SchedulerConfig:
    """Capture/detection loop timing."""
    interval_ms: int = 700

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SchedulerConfig":
        return cls(interval_ms=d.get("interval_ms", 700))

    def to_dict(self) -> Dict[str, Any]:
        return {"interval_ms": self.interval_ms}


@dataclass
class AnnounceConfig:
    """Announcement throttling."""
    min_interval_ms: int = 3000

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "AnnounceConfig":
        return cls(min_interval_ms=d.get("min_interval_ms", 3000))

    def to_dict(self) -> Dict[str, Any]:
        return {"min_interval_ms": self.min_interval_ms}


@dataclass
class SpeechConfig:
    """Speech synthesis and recognition settings."""
    locale: str = "en-US"
    rate: int = 170
    volume: float = 1.0
    energy_threshold: int = 3000
    pause_threshold: float = 0.8
    phrase_time_limit: Optional[float] = 5.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SpeechConfig":
        return cls(
            locale=d.get("locale", "en-US"),
            rate=d.get("rate", 170),
            volume=d.get("volume", 1.0),
            energy_threshold=d.get("energy_threshold", 3000),
            pause_threshold=d.get("pause_threshold", 0.8),
            phrase_time_limit=d.get("phrase_time_limit", 5.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "locale": self.locale,
            "rate": self.rate,
            "volume": self.volume,
            "energy_threshold": self.energy_threshold,
            "pause_threshold": self.pause_threshold,
            "phrase_time_limit": self.phrase_time_limit,
        }


@dataclass
class StorageConfig:
    """Storage configuration."""
    local_database_path: str = "data/sight_assist.sqlite"
    history_key: str = "sightassist:lastDetections"
    history_limit: int = 20

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "StorageConfig":
        return cls(
            local_database_path=d.get("local_database_path", "data/sight_assist.sqlite"),
            history_key=d.get("history_key", "sightassist:lastDetections"),
            history_limit=d.get("history_limit", 20),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "local_database_path": self.local_database_path,
            "history_key": self.history_key,
            "history_limit": self.history_limit,
        }


@dataclass
class WebConfig:
    """Status/control API server."""
    enabled: bool = True
    host: str = "0.0.0.0"
    port: int = 5000

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WebConfig":
        return cls(
            enabled=d.get("enabled", True),
            host=d.get("host", "0.0.0.0"),
            port=d.get("port", 5000),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"enabled": self.enabled, "host": self.host, "port": self.port}


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    camera: CameraConfig = field(default_factory=CameraConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    announce: AnnounceConfig = field(default_factory=AnnounceConfig)
    speech: SpeechConfig = field(default_factory=SpeechConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    web: WebConfig = field(default_factory=WebConfig)
    log_path: str = "logs/sight_assist.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            camera=CameraConfig.from_dict(d.get("camera", {}) or {}),
            detection=DetectionConfig.from_dict(d.get("detection", {}) or {}),
            scheduler=SchedulerConfig.from_dict(d.get("scheduler", {}) or {}),
            announce=AnnounceConfig.from_dict(d.get("announce", {}) or {}),
            speech=SpeechConfig.from_dict(d.get("speech", {}) or {}),
            storage=StorageConfig.from_dict(d.get("storage", {}) or {}),
            web=WebConfig.from_dict(d.get("web", {}) or {}),
            log_path=d.get("log_path", "logs/sight_assist.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary (for saving or passing to existing code)."""
        return {
            "camera": self.camera.to_dict(),
            "detection": self.detection.to_dict(),
            "scheduler": self.scheduler.to_dict(),
            "announce": self.announce.to_dict(),
            "speech": self.speech.to_dict(),
            "storage": self.storage.to_dict(),
            "web": self.web.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
