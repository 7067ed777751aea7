from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Request

from artswap.artifact_store.models import GalleryEntry, RelayCandidate
from artswap.common.error_envelope import error_response, store_unavailable_error
from artswap.common.errors import StoreError
from artswap.gallery.service import GalleryService

router = APIRouter(prefix="/gallery", tags=["gallery"])


def get_gallery_service(request: Request) -> GalleryService:
    return request.app.state.gallery


@router.get("", response_model=List[GalleryEntry])
async def list_gallery(service: GalleryService = Depends(get_gallery_service)):
    try:
        return await service.list_finished()
    except StoreError as exc:
        raise store_unavailable_error(exc, resource_kind="gallery")


@router.get("/{finished_id}/origin", response_model=RelayCandidate)
async def get_origin(finished_id: str, service: GalleryService = Depends(get_gallery_service)):
    try:
        origin = await service.origin_of(finished_id)
    except KeyError:
        raise error_response(
            code="gallery.not_found",
            message=f"Finished drawing {finished_id} not found",
            status_code=404,
            resource_kind="gallery",
            details={"finished_id": finished_id},
        )
    except StoreError as exc:
        raise store_unavailable_error(exc, resource_kind="gallery")
    if origin is None:
        raise error_response(
            code="gallery.origin_not_found",
            message=f"Origin of finished drawing {finished_id} is no longer listed",
            status_code=404,
            resource_kind="gallery",
            details={"finished_id": finished_id},
        )
    return origin
