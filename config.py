"""
Central configuration for the procurement workflow.

All master-data paths and workflow settings are defined here.
Override via environment variables or by passing a Config instance directly.

Settings priority (highest wins):
  1. config/workflow_settings.json  (admin-editable, persisted)
  2. Environment variables
  3. Hardcoded defaults in this file
"""
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

# Project root (directory containing this file)
PROJECT_ROOT = Path(__file__).parent

# Default data locations (relative to project root)
DEFAULT_SUPPLIERS_CSV = PROJECT_ROOT / "data" / "suppliers.csv"
DEFAULT_MATERIALS_CSV = PROJECT_ROOT / "data" / "raw_materials.csv"


@dataclass
class Config:
    # --- Master data sources ---
    suppliers_csv: Path = field(
        default_factory=lambda: Path(os.getenv("SUPPLIERS_CSV", str(DEFAULT_SUPPLIERS_CSV)))
    )
    materials_csv: Path = field(
        default_factory=lambda: Path(os.getenv("MATERIALS_CSV", str(DEFAULT_MATERIALS_CSV)))
    )

    # --- Purchase orders ---
    currency: str = field(default_factory=lambda: os.getenv("CURRENCY", "INR"))
    require_known_supplier: bool = field(
        default_factory=lambda: os.getenv("REQUIRE_KNOWN_SUPPLIER", "true").lower() != "false"
    )
    # Deliveries within this distance of the ordered quantity count as complete
    # (quantities are floats: KG, metres, pieces).
    quantity_tolerance: float = 1e-9

    def __post_init__(self) -> None:
        """Overlay runtime-tunable settings from workflow_settings.json if present."""
        config_dir = Path(os.getenv("CONFIG_DIR", str(PROJECT_ROOT / "config")))
        settings_file = config_dir / "workflow_settings.json"
        if not settings_file.exists():
            return
        _type_map: dict[str, type] = {
            "suppliers_csv":          Path,
            "materials_csv":          Path,
            "currency":               str,
            "require_known_supplier": bool,
            "quantity_tolerance":     float,
        }
        try:
            with open(settings_file, encoding="utf-8") as f:
                overrides = {k: v for k, v in json.load(f).items() if not k.startswith("_")}
            for key, val in overrides.items():
                if key in _type_map and hasattr(self, key):
                    setattr(self, key, _type_map[key](val))
        except (OSError, ValueError, TypeError) as exc:
            logger.warning("Failed to load workflow_settings.json: %s", exc)
