from fastapi import APIRouter, Depends, status
from typing import Optional

from sliceurl.dependencies import (
    get_anonymous_owner, get_client_info, get_current_user_id,
    get_link_manager, get_link_resolver, get_visitor_store
)
from sliceurl.json_utils import api_response
from sliceurl.rate_limit import shorten_limiter
from sliceurl.schemas import LinkCreate, LinkResponse
from sliceurl.services.links import LinkManager, LinkResolver, UNKNOWN_SOURCE
from sliceurl.stores import VisitorStore

router = APIRouter(tags=["links"])


def link_created_response(link):
    return api_response(
        status.HTTP_201_CREATED,
        "Short URL created successfully",
        {"newLink": LinkResponse.model_validate(link).to_response()}
    )

# Создание короткой ссылки
@router.post("/links/shorten", status_code=status.HTTP_201_CREATED, dependencies=[Depends(shorten_limiter)])
async def create_short_link(
    link_data: LinkCreate,
    user_id: str = Depends(get_current_user_id),
    links: LinkManager = Depends(get_link_manager)
):
    """Создает короткую ссылку от имени пользователя"""
    return link_created_response(links.create(link_data.original_url, user_id))

# Анонимное создание короткой ссылки
@router.post("/links/shorten-anonymously", status_code=status.HTTP_201_CREATED, dependencies=[Depends(shorten_limiter)])
async def create_short_link_anonymously(
    link_data: LinkCreate,
    owner_id: str = Depends(get_anonymous_owner),
    links: LinkManager = Depends(get_link_manager)
):
    """Создает короткую ссылку без аутентификации"""
    return link_created_response(links.create(link_data.original_url, owner_id))

# Все ссылки пользователя
@router.get("/links")
async def get_links(
    user_id: str = Depends(get_current_user_id),
    links: LinkManager = Depends(get_link_manager)
):
    return api_response(
        status.HTTP_200_OK,
        "Links retrieved successfully",
        {"links": [LinkResponse.model_validate(link).to_response() for link in links.list(user_id)]}
    )

# Переход по короткой ссылке
@router.get("/links/redirect/{short_id}")
async def handle_short_link_click(
    short_id: str,
    source: Optional[str] = None,
    client_info: dict = Depends(get_client_info),
    resolver: LinkResolver = Depends(get_link_resolver)
):
    """Записывает клик и отдает оригинальный URL для перенаправления"""
    link = resolver.resolve(short_id, client_info.get("user_agent"), source)

    return api_response(status.HTTP_303_SEE_OTHER, "Redirect", {"url": link.original_url})

# Получение ссылки
@router.get("/links/{short_id}")
async def get_single_link(
    short_id: str,
    user_id: str = Depends(get_current_user_id),
    links: LinkManager = Depends(get_link_manager)
):
    link = links.get(short_id, user_id)

    return api_response(
        status.HTTP_200_OK,
        "Link retrieved successfully",
        {"link": LinkResponse.model_validate(link).to_response()}
    )

# Удаление ссылки
@router.delete("/links/{short_id}")
async def delete_link(
    short_id: str,
    user_id: str = Depends(get_current_user_id),
    links: LinkManager = Depends(get_link_manager)
):
    links.delete(short_id, user_id)

    return api_response(status.HTTP_200_OK, "Link deleted successfully")

# Назначение алиаса
@router.patch("/links/{short_id}")
async def change_link_alias(
    short_id: str,
    alias: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
    links: LinkManager = Depends(get_link_manager)
):
    link = links.set_alias(short_id, user_id, alias)

    return api_response(
        status.HTTP_200_OK,
        "Link alias updated successfully",
        {"link": LinkResponse.model_validate(link).to_response()}
    )

# Счетчик посетителей сайта
@router.get("/visit")
async def visitor_count(
    source: Optional[str] = None,
    client_info: dict = Depends(get_client_info),
    visitors: VisitorStore = Depends(get_visitor_store)
):
    source = source.strip() if source and source.strip() else UNKNOWN_SOURCE
    visitors.record_visit(client_info.get("user_agent"), source)

    return api_response(
        status.HTTP_200_OK,
        "Visitor counted successfully",
        {"totalVisitors": visitors.count()}
    )
