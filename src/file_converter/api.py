from __future__ import annotations

from pathlib import Path

from fastapi import FastAPI, File, Form, HTTPException, Query, UploadFile
from fastapi.responses import Response

from . import __version__
from .compatibility import compatible_targets, resolve_target
from .config import load_config
from .detection import classify, output_filename
from .errors import ConversionError, DecodeError, UnsupportedConversion, UnsupportedTarget
from .models import SourceFile
from .router import convert as convert_source
from .schemas import ErrorDetail, HealthStatus, TargetList, TargetOption
from .settings import get_settings
from .utils import slugify


def status_for(exc: ConversionError) -> int:
    if isinstance(exc, (UnsupportedConversion, UnsupportedTarget)):
        return 415
    if isinstance(exc, DecodeError):
        return 422
    return 500


def create_app(config_path: Path | None = None, *, require_enabled: bool = True) -> FastAPI:
    settings = get_settings()
    config = load_config(config_path or settings.config_path)
    enabled = config.runtime.enable_local_api
    if settings.enable_local_api is not None:
        enabled = settings.enable_local_api
    if require_enabled and not enabled:
        raise RuntimeError("Local API is disabled. Enable it via config.runtime.enable_local_api")
    app = FastAPI(title="Local File Converter", version=__version__)

    @app.get("/health", response_model=HealthStatus)
    async def health() -> HealthStatus:
        return HealthStatus(status="ok", version=__version__)

    @app.get("/targets", response_model=TargetList)
    async def targets(filename: str = Query(...), mime: str = Query("")) -> TargetList:
        category = classify(filename, mime)
        return TargetList(
            filename=filename,
            category=category.value if category else None,
            targets=[
                TargetOption(mime_type=entry.mime_type, label=entry.label)
                for entry in compatible_targets(category)
            ],
        )

    @app.post("/convert")
    async def convert(file: UploadFile = File(...), target: str = Form(...)) -> Response:
        content = await file.read()
        if len(content) > config.max_file_size_bytes:
            raise HTTPException(status_code=413, detail="SIZE_LIMIT")
        name = file.filename or "upload"
        source = SourceFile(name=name, declared_mime_type=file.content_type or "", data=content)
        try:
            target_mime = resolve_target(target)
            output = await convert_source(source, target_mime)
        except ConversionError as exc:
            detail = ErrorDetail(code=exc.code, message=str(exc))
            raise HTTPException(status_code=status_for(exc), detail=detail.model_dump()) from exc
        download = slugify(output_filename(name, target_mime))
        return Response(
            content=output,
            media_type=target_mime,
            headers={"Content-Disposition": f'attachment; filename="{download}"'},
        )

    return app


__all__ = ["create_app", "status_for"]
