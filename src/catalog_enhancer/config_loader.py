"""Loads catalog-specific config from Python files in config/.

config/ is gitignored so each deployment can keep its own prompt wording and
seed fields; config.example/ ships with the repo and is used when no override
exists. Uses importlib to load .py files by path.
"""

import importlib.util
import os
import sys
from pathlib import Path
from types import ModuleType


def _find_config_dir(name: str) -> Path:
    """Find the directory holding ``{name}.py``.

    Checks config/ in the source tree, then $PROJECT_ROOT/config, then the
    bundled config.example/.
    """
    repo_root = Path(__file__).parent.parent.parent
    candidates = [repo_root / "config"]
    project_root = os.environ.get("PROJECT_ROOT", "")
    if project_root:
        candidates.append(Path(project_root) / "config")
        candidates.append(Path(project_root) / "config.example")
    candidates.append(repo_root / "config.example")
    for candidate in candidates:
        if (candidate / f"{name}.py").exists():
            return candidate
    return candidates[-1]


def _load_config_module(name: str) -> ModuleType:
    """Load a Python config file by module name.

    Args:
        name: Module name without .py extension (e.g. 'validation_rules')

    Returns:
        The loaded module object.

    Raises:
        FileNotFoundError: If the config file doesn't exist anywhere.
    """
    file_path = _find_config_dir(name) / f"{name}.py"
    if not file_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {file_path}\n"
            f"Copy config.example/ to config/ and adjust the values."
        )
    spec = importlib.util.spec_from_file_location(
        f"catalog_enhancer_config.{name}", str(file_path)
    )
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot load config module: {file_path}")
    module = importlib.util.module_from_spec(spec)
    sys.modules[spec.name] = module
    spec.loader.exec_module(module)
    return module


# ===== Load and re-export validation_rules =====
_vr = _load_config_module("validation_rules")

SUPPORTED_LANGUAGES: list[str] = _vr.SUPPORTED_LANGUAGES
FALLBACK_LANGUAGE: str = _vr.FALLBACK_LANGUAGE
LANGUAGE_NAMES: dict[str, str] = _vr.LANGUAGE_NAMES

DEFAULT_QUALITY_THRESHOLD: int = _vr.DEFAULT_QUALITY_THRESHOLD

DEFAULT_MEDIA_COUNT_MIN: int = _vr.DEFAULT_MEDIA_COUNT_MIN
DEFAULT_MEDIA_COUNT_MAX: int = _vr.DEFAULT_MEDIA_COUNT_MAX
DEFAULT_MEDIA_COUNT_OPTIMAL: int = _vr.DEFAULT_MEDIA_COUNT_OPTIMAL

IMAGE_PROBE_TIMEOUT_SECONDS: float = _vr.IMAGE_PROBE_TIMEOUT_SECONDS
PDF_ASPECT_RATIO: str = _vr.PDF_ASPECT_RATIO

MEDIA_COUNT_FIELD: str = _vr.MEDIA_COUNT_FIELD
MEDIA_ASSET_FIELD_PREFIX: str = _vr.MEDIA_ASSET_FIELD_PREFIX
SUBFIELD_SEPARATOR: str = _vr.SUBFIELD_SEPARATOR

DEFAULT_FIELDS: list[dict] = _vr.DEFAULT_FIELDS


# ===== Load and re-export prompt_templates =====
_pt = _load_config_module("prompt_templates")

QUALITY_SYSTEM_PROMPT: str = _pt.QUALITY_SYSTEM_PROMPT
VALIDATOR_SYSTEM_PROMPT: str = _pt.VALIDATOR_SYSTEM_PROMPT
CONTENT_OPTIMIZER_SYSTEM_PROMPT: str = _pt.CONTENT_OPTIMIZER_SYSTEM_PROMPT

QUALITY_PROMPT: str = _pt.QUALITY_PROMPT
QUALITY_EXAMPLES_BLOCK: str = _pt.QUALITY_EXAMPLES_BLOCK

VALIDATION_PROMPT: str = _pt.VALIDATION_PROMPT
VALIDATION_EXAMPLES_BLOCK: str = _pt.VALIDATION_EXAMPLES_BLOCK
LANGUAGE_CHECK_BLOCK: str = _pt.LANGUAGE_CHECK_BLOCK
LANGUAGE_CHECK_DISABLED_BLOCK: str = _pt.LANGUAGE_CHECK_DISABLED_BLOCK
LANGUAGE_CRITERION: str = _pt.LANGUAGE_CRITERION

ENHANCE_PROMPT: str = _pt.ENHANCE_PROMPT
GENERATE_PROMPT: str = _pt.GENERATE_PROMPT
CONTEXT_BLOCK: str = _pt.CONTEXT_BLOCK
CLAIMS_BLOCK: str = _pt.CLAIMS_BLOCK
NO_EXAMPLES_PLACEHOLDER: str = _pt.NO_EXAMPLES_PLACEHOLDER
