from typing import List

from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import Settings
from ..core.dependencies import get_current_user, get_db, get_file_service, get_settings
from ..models import User
from ..schemas.address import AddressCreate, AddressResponse, AddressUpdate
from ..schemas.common import MessageResponse
from ..schemas.product import ProductResponse
from ..schemas.user import ChangePasswordRequest, ProfileUpdate, UserResponse
from ..services.address_service import AddressService
from ..services.auth_service import AuthService
from ..services.file_service import FileService
from ..services.user_management_service import UserManagementService
from ..services.wishlist_service import WishlistService


router = APIRouter()
user_management_service = UserManagementService()


@router.get("/profile", response_model=UserResponse)
async def get_profile(current_user: User = Depends(get_current_user)):
    return current_user


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Update the signed-in user's name and phone number."""
    return await user_management_service.update_profile(current_user, data, db)


@router.post("/profile/avatar", response_model=UserResponse)
async def upload_avatar(
    avatar: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    file_service: FileService = Depends(get_file_service),
    db: AsyncSession = Depends(get_db),
):
    """
    **Upload Avatar**

    Multipart field `avatar`: JPG, PNG, GIF or WebP. The previous avatar file is removed.
    """
    return await user_management_service.update_avatar(current_user, avatar, file_service, db)


@router.put("/change-password", response_model=MessageResponse)
async def change_password(
    data: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Change password. Every existing session is signed out."""
    await AuthService(db, settings).change_password(current_user, data.current_password, data.new_password)
    return {"message": "Password changed successfully"}


@router.get("/addresses", response_model=List[AddressResponse])
async def get_addresses(current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await AddressService(db).find_all(current_user)


@router.post("/addresses", response_model=List[AddressResponse], status_code=status.HTTP_201_CREATED)
async def add_address(
    data: AddressCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Save an address and return the full address book. A new default replaces the old one."""
    return await AddressService(db).create(current_user, data)


@router.put("/addresses/{address_id}", response_model=AddressResponse)
async def update_address(
    address_id: int,
    data: AddressUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await AddressService(db).update(current_user, address_id, data)


@router.delete("/addresses/{address_id}", response_model=MessageResponse)
async def delete_address(
    address_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await AddressService(db).remove(current_user, address_id)
    return {"message": "Address deleted successfully"}


@router.get("/wishlist", response_model=List[ProductResponse])
async def get_wishlist(current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await WishlistService(db).get_products(current_user)


@router.post("/wishlist/{product_id}", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def add_to_wishlist(
    product_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Save a product. Saving it again is a no-op."""
    return await WishlistService(db).add(current_user, product_id)


@router.delete("/wishlist/{product_id}", response_model=MessageResponse)
async def remove_from_wishlist(
    product_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await WishlistService(db).remove(current_user, product_id)
    return {"message": "Product removed from wishlist successfully"}
