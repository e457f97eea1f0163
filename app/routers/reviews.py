from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from ..core.dependencies import admin_only, get_current_user, get_db
from ..models import User
from ..schemas.common import MessageResponse
from ..schemas.review import ReviewCreate, ReviewResponse
from ..services.review_service import ReviewService


router = APIRouter()


async def get_review_service(db: AsyncSession = Depends(get_db)) -> ReviewService:
    """Dependency function that provides an instance of ReviewService."""
    return ReviewService(db)


@router.get("", response_model=List[ReviewResponse])
async def list_reviews(
    product_id: Optional[int] = Query(None, description="Only reviews of this product"),
    service: ReviewService = Depends(get_review_service),
):
    """Approved reviews, newest first."""
    return await service.find_all(product_id, approved_only=True)


@router.get("/{review_id}", response_model=ReviewResponse)
async def get_review(review_id: int, service: ReviewService = Depends(get_review_service)):
    return await service.find_one(review_id)


@router.post("", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
async def create_review(
    review_data: ReviewCreate,
    current_user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    """
    **Create New Review**

    Users can only review a product once.

    **Request Body:**
    - **product_id**: ID of the product to review (required)
    - **rating**: whole number from 1 to 5 (required)
    - **comment**: plain text, up to 1000 characters (optional)

    The review is flagged as a verified purchase when you have a shipped or
    delivered order containing the product.
    """
    return await service.create_review(current_user, review_data)


@router.put("/{review_id}/approve", response_model=ReviewResponse, dependencies=[admin_only])
async def approve_review(review_id: int, service: ReviewService = Depends(get_review_service)):
    return await service.approve(review_id)


@router.put("/{review_id}/reject", response_model=ReviewResponse, dependencies=[admin_only])
async def reject_review(review_id: int, service: ReviewService = Depends(get_review_service)):
    return await service.reject(review_id)


@router.delete("/{review_id}", response_model=MessageResponse)
async def delete_review(
    review_id: int,
    current_user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    """Delete your own review. Admins can delete any review."""
    await service.remove(review_id, current_user)
    return {"message": "Review deleted successfully"}
