"""
Editor configuration for Open Photo.

Classes:
    EditorConfig: Tunables for rendering, export and resource loading

Functions:
    load_config: Load an EditorConfig from a JSON file
"""

import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from OP_Libs.constants import (
    DEFAULT_EXPORT_FORMAT,
    DEFAULT_EXPORT_QUALITY,
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_RESOURCE_TIMEOUT,
    DEFAULT_WORKING_HEIGHT,
    DEFAULT_WORKING_WIDTH,
)

logger = logging.getLogger(__name__)


@dataclass
class EditorConfig:
    """Configuration for an editor session.

    Attributes:
        max_working_width: Preview/export canvas width bound (0 = no bound)
        max_working_height: Preview/export canvas height bound (0 = no bound)
        export_format: Encoder used by export (JPEG, PNG, WEBP)
        export_quality: Lossy encoder quality 1-100 (default: 95)
        font_dirs: Extra directories searched for font files
        resource_timeout: Seconds to wait for a font or sticker load
        http_timeout: Seconds to wait for photo store requests
        noise_seed: Fixed seed for the noise filter (None = random per session)
        background_render: Run async previews on a worker thread
    """
    max_working_width: int = DEFAULT_WORKING_WIDTH
    max_working_height: int = DEFAULT_WORKING_HEIGHT
    export_format: str = DEFAULT_EXPORT_FORMAT
    export_quality: int = DEFAULT_EXPORT_QUALITY
    font_dirs: List[str] = field(default_factory=list)
    resource_timeout: float = DEFAULT_RESOURCE_TIMEOUT
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    noise_seed: Optional[int] = None
    background_render: bool = True

    @property
    def working_size(self) -> Optional[Tuple[int, int]]:
        """Working canvas bound, or None to render at full resolution."""
        if self.max_working_width <= 0 or self.max_working_height <= 0:
            return None
        return self.max_working_width, self.max_working_height

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EditorConfig":
        """Create from dictionary, ignoring unknown keys."""
        unknown = sorted(k for k in data if k not in cls.__dataclass_fields__)
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {', '.join(unknown)}")
        filtered = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        if "font_dirs" in filtered:
            filtered["font_dirs"] = [str(p) for p in filtered["font_dirs"] or []]
        return cls(**filtered)


def load_config(config_path: Path) -> EditorConfig:
    """
    Load editor configuration from a JSON file.

    Args:
        config_path: Path to a JSON object with EditorConfig fields

    Returns:
        The parsed EditorConfig

    Raises:
        ValueError: If the file does not contain a JSON object
        OSError: If the file cannot be read
    """
    try:
        payload = json.loads(Path(config_path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid config file {config_path}: {e}") from e

    if not isinstance(payload, dict):
        raise ValueError(f"Config file {config_path} must contain a JSON object")

    return EditorConfig.from_dict(payload)
