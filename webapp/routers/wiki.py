# webapp/routers/wiki.py
from typing import List

from fastapi import APIRouter, Depends, Path

from webapp.dtos import WikiArticleDTO, WikiCategoryDTO
from webapp.dependency import get_retrieval_service

router = APIRouter()

@router.get(
    "/categories",
    response_model=List[WikiCategoryDTO],
    summary="카테고리 목록"
)
async def list_categories(
    retrieval_service = Depends(get_retrieval_service),
) -> List[WikiCategoryDTO]:
    """카테고리별 문서 수"""
    categories = await retrieval_service.get_available_categories()
    return [WikiCategoryDTO.from_domain(category) for category in categories]

@router.get(
    "/category/{category}",
    response_model=List[WikiArticleDTO],
    summary="카테고리별 문서 목록"
)
async def list_articles_by_category(
    category: str = Path(..., description="카테고리 이름"),
    retrieval_service = Depends(get_retrieval_service),
) -> List[WikiArticleDTO]:
    articles = await retrieval_service.get_articles_by_category(category)
    return [WikiArticleDTO.from_domain(article) for article in articles]
