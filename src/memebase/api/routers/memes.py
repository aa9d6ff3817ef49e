"""Router for meme endpoints."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Header, Query, status
from fastapi.responses import JSONResponse

from ...exceptions.base import ValidationFailedError
from ...models.filters import validate_list_query
from ...models.meme import MemeRecord
from ...repositories.meme_repository import MemeRepository
from ..dependencies import get_repository
from ..models.requests import CreateMemeRequest, UpdateMemeRequest

router = APIRouter()


def envelope(**content: Any) -> Dict[str, Any]:
    return content


def meme_body(meme: MemeRecord) -> Dict[str, Any]:
    return meme.model_dump(mode="json")


@router.get("/memes")
async def list_memes(
    artist: Optional[str] = Query(None),
    title: Optional[str] = Query(None),
    page: Optional[str] = Query(None),
    page_size: Optional[str] = Query(None),
    sort: Optional[str] = Query(None),
    repository: MemeRepository = Depends(get_repository),
) -> Dict[str, Any]:
    """
    List memes, filtered, sorted and paginated.

    Raises:
        ValidationFailedError: If page, page_size or sort are invalid
    """
    query = validate_list_query({
        "artist": artist,
        "title": title,
        "page": page,
        "page_size": page_size,
        "sort": sort,
    })
    memes, metadata = await repository.list(query.criteria, query.sort, query.page)
    return envelope(metadata=metadata.to_dict(), memes=[meme_body(meme) for meme in memes])


@router.post("/memes", status_code=status.HTTP_201_CREATED)
async def create_meme(
    request: CreateMemeRequest,
    repository: MemeRepository = Depends(get_repository),
) -> JSONResponse:
    """Create a meme and point the Location header at it."""
    meme = await repository.create(MemeRecord(**request.model_dump()))
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=envelope(meme=meme_body(meme)),
        headers={"Location": f"/v1/memes/{meme.id}"},
    )


@router.get("/memes/{id}")
async def show_meme(id: str, repository: MemeRepository = Depends(get_repository)) -> Dict[str, Any]:
    meme = await repository.get(id)
    return envelope(meme=meme_body(meme))


@router.patch("/memes/{id}")
async def update_meme(
    id: str,
    request: UpdateMemeRequest,
    expected_version: Optional[str] = Header(None, alias="X-Expected-Version"),
    repository: MemeRepository = Depends(get_repository),
) -> Dict[str, Any]:
    """
    Partially update a meme.

    When ``X-Expected-Version`` is sent, the update is refused with a
    conflict unless it equals the stored version.
    """
    version: Optional[int] = None
    if expected_version is not None:
        try:
            version = int(expected_version)
        except ValueError:
            raise ValidationFailedError({"X-Expected-Version": "must be an integer value"}) from None

    meme = await repository.patch(id, request, expected_version=version)
    return envelope(meme=meme_body(meme))


@router.delete("/memes/{id}")
async def delete_meme(id: str, repository: MemeRepository = Depends(get_repository)) -> Dict[str, Any]:
    await repository.delete(id)
    return envelope(message="meme successfully deleted")


@router.get("/rand")
async def show_random_meme(repository: MemeRepository = Depends(get_repository)) -> Dict[str, Any]:
    meme = await repository.get_random()
    return envelope(meme=meme_body(meme))
