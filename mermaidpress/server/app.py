"""HTTP backend: POST markup, get back png/pdf/svg bytes."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field, ValidationError

from mermaidpress.config.models import MermaidPressConfig
from mermaidpress.delivery.files import content_disposition
from mermaidpress.errors import (
    EmptySourceError,
    ExportError,
    SubprocessFailureError,
    UnsupportedFormatError,
)
from mermaidpress.export.exporter import Exporter
from mermaidpress.export.models import ExportFormat, ExportParameters

logger = logging.getLogger(__name__)

_CLIENT_ERRORS = (EmptySourceError, UnsupportedFormatError)


class PngRequest(BaseModel):
    code: str | None = None
    theme: str | None = None
    scale: float | None = Field(default=None, gt=0)


class DocumentRequest(BaseModel):
    code: str | None = None
    theme: str | None = None


def _error(message: str, status_code: int, **extra: object) -> JSONResponse:
    return JSONResponse({"error": message, **extra}, status_code=status_code)


def create_app(
    config: MermaidPressConfig | None = None, exporter: Exporter | None = None
) -> FastAPI:
    """Build the backend app. One Exporter serves every request."""
    config = config or MermaidPressConfig()
    exporter = exporter or Exporter(config)

    app = FastAPI(title="mermaidpress", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.exporter = exporter

    @app.exception_handler(RequestValidationError)
    async def _invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        first = exc.errors()[0] if exc.errors() else {}
        return _error(first.get("msg", "Invalid request body"), status.HTTP_400_BAD_REQUEST)

    async def _export(code: str | None, theme: str | None, scale: float | None, fmt: ExportFormat) -> Response:
        if not code or not code.strip():
            return _error("Mermaid code is required", status.HTTP_400_BAD_REQUEST)
        defaults = exporter.default_parameters()
        try:
            params = ExportParameters(
                theme=theme or defaults.theme,
                scale=scale if scale is not None else defaults.scale,
            )
            artifact = await exporter.export(code, fmt, params)
        except _CLIENT_ERRORS as e:
            return _error(str(e), status.HTTP_400_BAD_REQUEST)
        except ValidationError as e:
            return _error(str(e), status.HTTP_400_BAD_REQUEST)
        except SubprocessFailureError as e:
            logger.error("API Error: %s", e)
            return _error(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR, stderr=e.stderr)
        except ExportError as e:
            logger.error("API Error: %s", e)
            return _error(str(e) or "Internal Server Error", status.HTTP_500_INTERNAL_SERVER_ERROR)
        except Exception as e:
            logger.exception("API Error")
            return _error(str(e) or "Internal Server Error", status.HTTP_500_INTERNAL_SERVER_ERROR)

        return Response(
            content=artifact.data,
            media_type=artifact.content_type,
            headers={"Content-Disposition": content_disposition(artifact)},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/generate-png")
    async def generate_png(body: PngRequest) -> Response:
        return await _export(body.code, body.theme, body.scale, ExportFormat.png)

    @app.post("/api/generate-pdf")
    async def generate_pdf(body: DocumentRequest) -> Response:
        return await _export(body.code, body.theme, None, ExportFormat.pdf)

    @app.post("/api/generate-svg")
    async def generate_svg(body: DocumentRequest) -> Response:
        return await _export(body.code, body.theme, None, ExportFormat.svg)

    return app
