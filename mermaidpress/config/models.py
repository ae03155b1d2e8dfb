from pydantic import BaseModel, Field
from typing import Literal


class ExportSettings(BaseModel):
    environment: Literal["backend", "interactive"] = "backend"
    backend: Literal["browser", "cli"] = "browser"
    default_theme: str = "default"
    default_scale: float = Field(default=2.0, gt=0)
    pdf_mode: Literal["raster", "native"] = "raster"
    background_color: str = "#f0f0f0"


class BrowserConfig(BaseModel):
    executable_path: str | None = None
    launch_args: list[str] = Field(default_factory=list)
    mermaid_cdn_url: str = "https://cdn.jsdelivr.net/npm/mermaid@10/dist/mermaid.min.js"
    mermaid_script_path: str | None = None
    render_timeout_ms: int = Field(default=10000, gt=0)
    padding: int = Field(default=20, ge=0)


class CliConfig(BaseModel):
    command: str = "mmdc"
    timeout: float = Field(default=60.0, gt=0)
    temp_dir: str | None = None
    font_family: str | None = None
    chromium_executable: str | None = None
    chromium_args: list[str] = Field(default_factory=list)
    extra_args: list[str] = Field(default_factory=list)


class ClipboardConfig(BaseModel):
    verify: bool = False


class SvgConfig(BaseModel):
    strip_declarations: bool = False
    inline_styles: bool = False


class ServerConfig(BaseModel):
    host: str = "127.0.0.1"
    port: int = Field(default=8000, gt=0, lt=65536)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])


class MermaidPressConfig(BaseModel):
    export: ExportSettings = Field(default_factory=ExportSettings)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    cli: CliConfig = Field(default_factory=CliConfig)
    clipboard: ClipboardConfig = Field(default_factory=ClipboardConfig)
    svg: SvgConfig = Field(default_factory=SvgConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    log_level: Literal["debug", "info", "warn", "error"] = "info"
    log_format: Literal["text", "json"] = "text"
