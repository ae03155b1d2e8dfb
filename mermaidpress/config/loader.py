"""YAML config loading with env var expansion."""

import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import MermaidPressConfig


def load_config(cli_path: str | None = None) -> MermaidPressConfig:
    """Load config with resolution order: CLI > project-local > user-global > defaults."""
    config_paths = [
        Path(cli_path) if cli_path else None,
        Path("./mermaidpress.yaml"),
        Path.home() / ".mermaidpress" / "config.yaml",
    ]

    for path in config_paths:
        if path and path.exists():
            try:
                with open(path) as f:
                    raw = yaml.safe_load(f)
                if raw is None:
                    continue
                raw = _expand_env_vars(raw)
                return MermaidPressConfig(**raw)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {path}: {e}") from e
            except ValidationError as e:
                raise ValueError(f"Invalid config in {path}: {e}") from e

    return MermaidPressConfig()


def _expand_env_vars(obj: object) -> object:
    """Recursively expand ${VAR} references in strings."""
    if isinstance(obj, str):
        return re.sub(r"\$\{(\w+)\}", lambda m: os.environ.get(m.group(1), ""), obj)
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


# Default YAML template for `mermaidpress config init`
DEFAULT_CONFIG_TEMPLATE = """\
# mermaidpress.yaml

# Export pipeline
export:
  environment: "backend"       # backend | interactive
  backend: "browser"           # browser | cli (used when environment is backend)
  default_theme: "default"     # default | dark | forest | neutral | base
  default_scale: 2
  pdf_mode: "raster"           # raster | native
  background_color: "#f0f0f0"

# Headless Chromium (Playwright)
browser:
  # executable_path: "/usr/bin/chromium"
  # launch_args: ["--no-sandbox"]
  mermaid_cdn_url: "https://cdn.jsdelivr.net/npm/mermaid@10/dist/mermaid.min.js"
  # mermaid_script_path: "./vendor/mermaid.min.js"
  render_timeout_ms: 10000
  padding: 20

# Mermaid CLI (mmdc)
cli:
  command: "mmdc"
  timeout: 60
  # temp_dir: "/tmp"
  # font_family: "Noto Sans CJK JP"
  # chromium_executable: "${CHROMIUM_PATH}"
  # chromium_args: ["--no-sandbox"]

# Clipboard
clipboard:
  verify: false                # read back and compare after copying

# SVG post-processing
svg:
  strip_declarations: false    # drop <?xml?> and <!DOCTYPE> for office embedding
  inline_styles: false

# HTTP backend
server:
  host: "127.0.0.1"
  port: 8000
  # cors_origins: ["*"]

# Logging
log_level: "info"              # debug | info | warn | error
log_format: "text"             # text | json
"""
