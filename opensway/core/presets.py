"""
Sway Presets Library - Named parameter sets for common secondary motion
Built-in presets plus user presets stored as YAML files
"""

import copy
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .errors import InvalidParametersError
from .params import ControlParameterSet

logger = logging.getLogger(__name__)

PRESETS_DIR_ENV = 'OPENSWAY_PRESETS_DIR'


# ============================================================================
# Preset Data Structures
# ============================================================================

@dataclass
class SwayPreset:
    """A named, complete parameter set"""

    name: str
    description: str = ""
    parameters: Dict[str, Any] = field(default_factory=dict)
    tags: List[str] = field(default_factory=list)

    def to_params(self) -> ControlParameterSet:
        """Validated parameter set (missing keys take the defaults)"""
        return ControlParameterSet.from_dict(self.parameters)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for YAML serialization"""
        data = {'name': self.name, 'parameters': dict(self.parameters)}
        if self.description:
            data['description'] = self.description
        if self.tags:
            data['tags'] = list(self.tags)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SwayPreset':
        """Create from dictionary; flat files without a ``parameters`` block are accepted"""
        data = dict(data)
        name = str(data.pop('name'))
        description = str(data.pop('description', '') or '')
        tags = list(data.pop('tags', []) or [])
        parameters = data.pop('parameters', None)
        if parameters is None:
            parameters = data
        preset = cls(name=name, description=description, parameters=dict(parameters), tags=tags)
        # Fail early on a broken file rather than at apply time
        preset.to_params()
        return preset


# ============================================================================
# Built-in Presets
# ============================================================================

# Slider values only; the motion mode is picked separately
BUILTIN_PRESETS: Dict[str, Dict[str, Any]] = {
    "custom": {
        "name": "custom",
        "description": "Balanced starting point",
        "parameters": {
            "amplitude": 50, "frequency": 2.0, "chainDelay": 0.1, "noiseAmount": 20,
            "damping": 30, "stiffness": 50, "physicsBlend": 0, "gravity": 0,
        },
        "tags": ["default"],
    },

    "hair": {
        "name": "hair",
        "description": "Light, noisy strands with a little droop",
        "parameters": {
            "amplitude": 30, "frequency": 1.5, "chainDelay": 0.08, "noiseAmount": 35,
            "damping": 40, "stiffness": 20, "physicsBlend": 0, "gravity": 5,
        },
        "tags": ["character", "soft"],
    },

    "rope": {
        "name": "rope",
        "description": "Heavy, slow swing dominated by physics",
        "parameters": {
            "amplitude": 40, "frequency": 0.8, "chainDelay": 0.05, "noiseAmount": 10,
            "damping": 60, "stiffness": 70, "physicsBlend": 80, "gravity": 20,
        },
        "tags": ["prop", "heavy", "physics"],
    },

    "cloth": {
        "name": "cloth",
        "description": "Billowing fabric edge, half physics",
        "parameters": {
            "amplitude": 50, "frequency": 1.0, "chainDelay": 0.12, "noiseAmount": 50,
            "damping": 30, "stiffness": 40, "physicsBlend": 40, "gravity": 3,
        },
        "tags": ["character", "soft", "physics"],
    },

    "tail": {
        "name": "tail",
        "description": "Strong whip-like wave along the chain",
        "parameters": {
            "amplitude": 60, "frequency": 2.0, "chainDelay": 0.1, "noiseAmount": 25,
            "damping": 25, "stiffness": 35, "physicsBlend": 0, "gravity": 0,
        },
        "tags": ["creature"],
    },
}


# ============================================================================
# Preset Manager
# ============================================================================

def default_presets_dir() -> Path:
    env = os.environ.get(PRESETS_DIR_ENV)
    if env:
        return Path(env)
    return Path.home() / '.opensway' / 'presets'


class PresetManager:
    """
    Manages loading and saving sway presets.
    """

    def __init__(self, user_presets_dir: Optional[Path] = None):
        """
        Initialize preset manager.

        Args:
            user_presets_dir: Directory for user presets (default: ~/.opensway/presets,
                or $OPENSWAY_PRESETS_DIR)
        """
        self.user_presets_dir = Path(user_presets_dir) if user_presets_dir else default_presets_dir()

        self._builtin: Dict[str, SwayPreset] = {}
        self._user: Dict[str, SwayPreset] = {}

        self._load_builtin_presets()
        self._load_user_presets()

    def _load_builtin_presets(self) -> None:
        for name, data in BUILTIN_PRESETS.items():
            self._builtin[name] = SwayPreset.from_dict(copy.deepcopy(data))

    def _load_user_presets(self) -> None:
        """Load user-defined presets from YAML files"""
        if not self.user_presets_dir.is_dir():
            return

        for yaml_file in sorted(self.user_presets_dir.glob('*.yaml')):
            try:
                with open(yaml_file, 'r', encoding='utf-8') as f:
                    data = yaml.safe_load(f)

                if not isinstance(data, dict):
                    continue
                if 'presets' in data:
                    # Multiple presets in one file
                    for name, preset_data in data['presets'].items():
                        preset_data = dict(preset_data or {})
                        preset_data['name'] = name
                        self._user[name] = SwayPreset.from_dict(preset_data)
                else:
                    data.setdefault('name', yaml_file.stem)
                    preset = SwayPreset.from_dict(data)
                    self._user[preset.name] = preset
            except (OSError, yaml.YAMLError, KeyError, TypeError, ValueError, AttributeError, InvalidParametersError) as e:
                logger.warning("Could not load preset file %s: %s", yaml_file, e)

    def get(self, name: str) -> Optional[SwayPreset]:
        """
        Get a preset by name.
        User presets override built-in presets with same name.
        """
        return self._user.get(name) or self._builtin.get(name)

    def get_params(self, name: str) -> Optional[ControlParameterSet]:
        preset = self.get(name)
        return preset.to_params() if preset else None

    def exists(self, name: str) -> bool:
        return name in self._user or name in self._builtin

    def is_builtin(self, name: str) -> bool:
        return name in self._builtin and name not in self._user

    def list_all(self) -> List[str]:
        return sorted(set(self._builtin.keys()) | set(self._user.keys()))

    def save_preset(self, preset: SwayPreset, filename: Optional[str] = None) -> Path:
        """
        Save a user preset to YAML file.

        Returns:
            Path to saved file
        """
        preset.to_params()

        filename = filename or f"{preset.name}.yaml"
        if not filename.endswith('.yaml'):
            filename += '.yaml'

        self.user_presets_dir.mkdir(parents=True, exist_ok=True)
        filepath = self.user_presets_dir / filename

        with open(filepath, 'w', encoding='utf-8') as f:
            yaml.safe_dump(preset.to_dict(), f, default_flow_style=False, sort_keys=False)

        self._user[preset.name] = preset
        logger.info("Saved preset '%s' to %s", preset.name, filepath)
        return filepath

    def delete_preset(self, name: str) -> bool:
        """
        Delete a user preset.

        Returns:
            True if deleted, False if not found or is builtin
        """
        if name not in self._user:
            return False

        filepath = self.user_presets_dir / f"{name}.yaml"
        if filepath.exists():
            filepath.unlink()

        del self._user[name]
        return True

    def create_preset(
        self,
        name: str,
        params: ControlParameterSet,
        description: str = "",
        tags: Optional[List[str]] = None
    ) -> SwayPreset:
        return SwayPreset(
            name=name,
            description=description,
            parameters=params.to_dict(),
            tags=list(tags or []),
        )

    def get_preset_info(self, name: str) -> Optional[Dict[str, Any]]:
        """Get detailed info about a preset"""
        preset = self.get(name)
        if not preset:
            return None

        return {
            'name': preset.name,
            'description': preset.description,
            'parameters': preset.to_params().to_dict(),
            'tags': preset.tags,
            'is_builtin': name in self._builtin,
            'is_user': name in self._user,
        }


# ============================================================================
# Global Instance & Convenience Functions
# ============================================================================

_manager: Optional[PresetManager] = None


def get_preset_manager() -> PresetManager:
    """Get or create global preset manager"""
    global _manager
    if _manager is None:
        _manager = PresetManager()
    return _manager


def get_preset(name: str) -> Optional[SwayPreset]:
    return get_preset_manager().get(name)


def list_presets() -> List[str]:
    return get_preset_manager().list_all()
