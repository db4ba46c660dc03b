import mimetypes
from typing import List

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import FileResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException, MultiPartParser

from ..errors import BadRequest, InternalError, StorageUnavailable
from ..models.files import StoredFile, UploadResponse
from ..services.storage import StorageDirectory
from ..services.upload_service import UploadService
from ..utils.logging import logger
from .dependencies import get_storage, get_upload_service

router = APIRouter(tags=["Files"])

DEFAULT_MEDIA_TYPE = "application/octet-stream"


def media_type_for(filename: str) -> str:
    media_type, _ = mimetypes.guess_type(filename)
    return media_type or DEFAULT_MEDIA_TYPE


def _declared_length(request: Request) -> int | None:
    header = request.headers.get("content-length")
    if header is None:
        return None
    try:
        return int(header)
    except ValueError:
        raise BadRequest("parse error")


async def _capped_stream(request: Request, limit: int):
    """Yield the request body, failing once more than ``limit`` bytes arrive."""
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > limit:
            logger.log_error("upload_rejected", {"reason": "body too large", "max_bytes": limit})
            raise BadRequest("parse error")
        yield chunk


@router.post("/upload", response_model=UploadResponse)
async def upload_image(
    request: Request,
    upload_service: UploadService = Depends(get_upload_service),
):
    content_type = request.headers.get("content-type", "")
    if not content_type.lower().startswith("multipart/form-data"):
        logger.log_error("upload_rejected", {"reason": "not multipart", "content_type": content_type})
        raise BadRequest("parse error")

    declared = _declared_length(request)
    if declared is not None and declared > upload_service.max_size_bytes:
        logger.log_error("upload_rejected", {
            "reason": "body too large",
            "content_length": declared,
            "max_bytes": upload_service.max_size_bytes
        })
        raise BadRequest("parse error")

    try:
        form = await MultiPartParser(request.headers, _capped_stream(request, upload_service.max_size_bytes)).parse()
    except (MultiPartException, StarletteHTTPException, ValueError) as exc:
        logger.log_error("upload_rejected", {"reason": "parse error", "error": str(exc)})
        raise BadRequest("parse error") from exc

    try:
        stored = await upload_service.ingest(form.get("image"))
    finally:
        await form.close()

    return UploadResponse(message="Image uploaded successfully", filename=stored.name)


@router.get("/files", response_model=List[StoredFile])
async def list_files(storage: StorageDirectory = Depends(get_storage)):
    try:
        return await run_in_threadpool(storage.list)
    except StorageUnavailable as exc:
        raise InternalError("unable to list files") from exc


@router.get("/download/{filename}")
async def download_file(filename: str, storage: StorageDirectory = Depends(get_storage)):
    path = await run_in_threadpool(storage.resolve, filename)

    logger.log_step("download_started", {"filename": path.name})
    return FileResponse(
        path,
        media_type=media_type_for(path.name),
        headers={"Content-Disposition": f"attachment; filename={path.name}"},
    )
