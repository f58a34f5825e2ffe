import logging
from pathlib import Path
from typing import List, Optional

from .types import ModelInfo

logger = logging.getLogger(__name__)

# Display-only lookups. Order matters: first substring hit wins.
QUANTIZATION_LABELS = [
    ("q8_0", "Q8_0 (8-bit)"),
    ("q6_k", "Q6_K (6-bit)"),
    ("q5_k", "Q5_K (5-bit)"),
    ("q4_k", "Q4_K (4-bit)"),
    ("q3_k", "Q3_K (3-bit)"),
    ("q2_k", "Q2_K (2-bit)"),
    ("q1_k", "Q1_K (1-bit)"),
    ("f16", "F16 (16-bit float)"),
    ("f32", "F32 (32-bit float)"),
]

MODEL_TYPE_LABELS = [
    ("tiny", "Tiny"),
    ("base", "Base"),
    ("small", "Small"),
    ("medium", "Medium"),
    ("large", "Large"),
]


def quantization_level(model_path: Path) -> str:
    if not model_path.exists():
        return "Unknown"
    file_name = model_path.name.lower()
    for needle, label in QUANTIZATION_LABELS:
        if needle in file_name:
            return label
    return "Base (No quantization)"


def model_type(model_path: Path) -> str:
    if not model_path.exists():
        return "Unknown"
    file_name = model_path.name.lower()
    for needle, label in MODEL_TYPE_LABELS:
        if needle in file_name:
            return label
    return "Unknown"


def format_file_size(num_bytes: int) -> str:
    """Converts 1536 -> '1.5 KB'."""
    units = ["B", "KB", "MB", "GB", "TB"]
    size = float(num_bytes)
    order = 0
    while size >= 1024 and order < len(units) - 1:
        order += 1
        size /= 1024
    return f"{size:.2f}".rstrip("0").rstrip(".") + f" {units[order]}"


def scan_models(models_dir: Path, suffix: str, current: Optional[Path] = None) -> List[ModelInfo]:
    """
    Lists model files in models_dir, sorted by file name.
    Entries that cannot be stat'ed are skipped.
    """
    if not models_dir.is_dir():
        logger.warning(f"Models directory not found: {models_dir}")
        return []

    current_name = current.name if current else None
    models = []
    for model_file in sorted(models_dir.glob(f"*{suffix}")):
        try:
            size = model_file.stat().st_size
        except OSError as e:
            logger.warning(f"Error processing model file {model_file}: {e}")
            continue
        models.append(ModelInfo(
            name=model_file.stem,
            file_name=model_file.name,
            file_path=str(model_file),
            size_bytes=size,
            size_formatted=format_file_size(size),
            model_type=model_type(model_file),
            quantization_level=quantization_level(model_file),
            is_current=model_file.name == current_name
        ))
    return models
