from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from devkit.observability import configure_otel, configure_probe_access_log_filter
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, JSONResponse, Response

from provider_directory.config import load_provider_directory_settings
from provider_directory.core.exceptions import ProviderDirectoryError
from provider_directory.core.models import ProviderId
from provider_directory.monitoring.schemas import ProviderIdListRequest
from provider_directory.monitoring.state import refresh_exporter, refresh_metrics
from provider_directory.runtime import ProviderDirectoryRuntime, build_runtime


def success_response(data: object, meta: dict[str, object] | None = None) -> dict[str, object]:
    return {"success": True, "data": data, "meta": meta or {}}


def error_response(code: str, message: str) -> dict[str, object]:
    return {"success": False, "error": {"code": code, "message": message}}


def create_app(runtime: ProviderDirectoryRuntime | None = None) -> FastAPI:
    if runtime is None:
        runtime = build_runtime(load_provider_directory_settings(), metrics=refresh_metrics)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        await runtime.start()
        try:
            yield
        finally:
            await runtime.stop()

    app = FastAPI(title="Provider Directory", version="0.1.0", lifespan=lifespan)
    configure_otel(service_name=runtime.settings.SERVICE_NAME)
    configure_probe_access_log_filter()
    app.state.runtime = runtime
    service = runtime.service

    @app.exception_handler(ProviderDirectoryError)
    async def handle_directory_error(_: Request, exc: ProviderDirectoryError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=error_response(exc.code, exc.public_message))

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
        message = "; ".join(err["msg"] for err in exc.errors())
        return JSONResponse(status_code=422, content=error_response("VALIDATION_ERROR", message))

    @app.get("/healthz")
    async def healthz() -> dict[str, object]:
        return success_response({"status": "ok"})

    @app.get("/readyz")
    async def readyz() -> dict[str, object]:
        return success_response({"status": "ready"})

    @app.get("/metrics")
    async def metrics() -> Response:
        body = refresh_exporter.render(runtime.metrics)
        return Response(content=body, media_type="text/plain; version=0.0.4")

    @app.get("/v1/providers/status")
    async def provider_status() -> dict[str, object]:
        status = await service.status()
        return success_response(status.to_payload())

    @app.get("/v1/providers/all")
    async def download_all_providers() -> FileResponse:
        path = service.current_snapshot_path()
        return FileResponse(path, media_type="application/zip", filename=path.name)

    @app.get("/v1/providers/{location_id}/{institution_id}")
    async def provider_detail(location_id: int, institution_id: int) -> dict[str, object]:
        record = await service.lookup_provider_detail(
            ProviderId(location_id=location_id, institution_id=institution_id)
        )
        return success_response(record.to_detail_payload())

    @app.post("/v1/providers/details")
    async def provider_details(body: ProviderIdListRequest) -> dict[str, object]:
        records = await service.lookup_multiple_provider_details(
            item.to_provider_id() for item in body.providers_ids
        )
        return success_response(
            {"healthcareProvidersDetails": [record.to_detail_payload() for record in records]},
            meta={"count": len(records)},
        )

    @app.post("/internal/refresh")
    async def trigger_refresh() -> dict[str, object]:
        result = await runtime.orchestrator.run_update(wait=False)
        return success_response(
            {"message": result.message, "lastUpdate": result.last_update},
            meta={"providerCount": result.provider_count, "batchCount": result.batch_count},
        )

    return app


app = create_app()
