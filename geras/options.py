"""
Compression strategies and their option values.

Strategies and presets are plain enums; everything they "know" (titles,
descriptions, the Ghostscript quality tier, default DPI/quality) lives in the
lookup tables below so the command builder never dispatches on the variant
itself.
"""

import enum
from dataclasses import dataclass
from typing import Optional


class Strategy(enum.Enum):
    CLEANUP = "cleanup"
    LOSSY = "lossy"
    RASTERIZE = "rasterize"


class LossyPreset(enum.Enum):
    SMALLEST = "smallest"
    HIGH_QUALITY = "high-quality"
    CUSTOM = "custom"


@dataclass(frozen=True)
class StrategyInfo:
    title: str
    subtitle: str
    output_suffix: str


@dataclass(frozen=True)
class PresetInfo:
    title: str
    description: str
    pdf_settings: Optional[str]
    default_dpi: int
    default_quality: int


STRATEGY_INFO = {
    Strategy.CLEANUP: StrategyInfo("Clean Up", "Clean Up (No Quality Loss)", "compressed"),
    Strategy.LOSSY: StrategyInfo("Make Smaller", "Make Smaller (Keeps Text)", "lossy"),
    Strategy.RASTERIZE: StrategyInfo("Flatten", "Flatten to Images (Text Becomes Image)", "rasterized"),
}

PRESET_INFO = {
    LossyPreset.SMALLEST: PresetInfo(
        "Smallest File",
        "Aggressive downsampling. Best for quick sharing or previews. "
        "Text stays readable, images get softer.",
        "/screen", 72, 40,
    ),
    LossyPreset.HIGH_QUALITY: PresetInfo(
        "High Quality",
        "Light compression that keeps images looking close to the original "
        "while still saving space.",
        None, 225, 85,
    ),
    LossyPreset.CUSTOM: PresetInfo(
        "Custom",
        "Choose your own image sharpness and JPEG quality.",
        None, 150, 75,
    ),
}

# (min, max, step) as offered by the UI
COMPRESSION_LEVEL_RANGE = (1, 9, 1)
LOSSY_DPI_RANGE = (72, 300, 12)
LOSSY_QUALITY_RANGE = (20, 95, 5)
RASTER_DPI_RANGE = (72, 300, 12)
RASTER_QUALITY_RANGE = (30, 95, 5)

# Mono images below this resolution lose text legibility
MIN_MONO_DPI = 300


@dataclass(frozen=True)
class CleanupOptions:
    compression_level: int = 5
    recompress_flate: bool = False
    generate_object_streams: bool = True
    optimize_images: bool = False

    def __post_init__(self):
        lo, hi, _ = COMPRESSION_LEVEL_RANGE
        if not lo <= int(self.compression_level) <= hi:
            raise ValueError(f"compression_level must be between {lo} and {hi}, got {self.compression_level}")


@dataclass(frozen=True)
class LossyOptions:
    preset: LossyPreset = LossyPreset.HIGH_QUALITY
    dpi: int = PRESET_INFO[LossyPreset.HIGH_QUALITY].default_dpi
    jpeg_quality: int = PRESET_INFO[LossyPreset.HIGH_QUALITY].default_quality

    def __post_init__(self):
        if int(self.dpi) <= 0:
            raise ValueError(f"dpi must be positive, got {self.dpi}")
        if not 0 <= int(self.jpeg_quality) <= 100:
            raise ValueError(f"jpeg_quality must be between 0 and 100, got {self.jpeg_quality}")

    @classmethod
    def for_preset(cls, preset):
        info = PRESET_INFO[preset]
        return cls(preset=preset, dpi=info.default_dpi, jpeg_quality=info.default_quality)


@dataclass(frozen=True)
class RasterizeOptions:
    dpi: int = 120
    jpeg_quality: int = 75

    def __post_init__(self):
        if int(self.dpi) <= 0:
            raise ValueError(f"dpi must be positive, got {self.dpi}")
        if not 0 <= int(self.jpeg_quality) <= 100:
            raise ValueError(f"jpeg_quality must be between 0 and 100, got {self.jpeg_quality}")


OPTIONS_TYPE = {
    Strategy.CLEANUP: CleanupOptions,
    Strategy.LOSSY: LossyOptions,
    Strategy.RASTERIZE: RasterizeOptions,
}

CLEANUP_PRESETS = {
    "fast": CleanupOptions(compression_level=3, generate_object_streams=True),
    "balanced": CleanupOptions(compression_level=7, recompress_flate=True, generate_object_streams=True),
    "max": CleanupOptions(compression_level=9, recompress_flate=True,
                          generate_object_streams=True, optimize_images=True),
}
