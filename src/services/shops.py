# shop-owner requests: customers apply, admins approve (creating the shop) or reject
from __future__ import annotations

from typing import List, Optional

from db import models
from db.database import Database
from db.models import ShopRequestStatus
from db.shops import ShopRequestStore, ShopStore
from utils.errors import (
    RequestAlreadyProcessed,
    ShopNotFound,
    ShopRequestNotFound,
    ValidationError,
)
from utils.logger import get_logger

_logger = get_logger(__name__)

NAME_LENGTH = (3, 100)
DESCRIPTION_LENGTH = (10, 500)
MAX_REASON = 500


def _check_length(value: str, bounds, field: str) -> str:
    value = (value or "").strip()
    low, high = bounds
    if not low <= len(value) <= high:
        raise ValidationError(
            f"{field.replace('_', ' ')} must be {low} to {high} characters", field=field
        )
    return value


class ShopService:
    """
    A request starts pending and is decided exactly once. Approval creates the
    shop and flips the request inside one transaction.
    """

    def __init__(self, database: Database) -> None:
        self.database = database

    async def create_request(
        self, user_id: int, shop_name: str, description: str
    ) -> models.ShopRequest:
        shop_name = _check_length(shop_name, NAME_LENGTH, "shop_name")
        description = _check_length(description, DESCRIPTION_LENGTH, "description")
        async with self.database.transaction() as conn:
            request = await ShopRequestStore(conn).create(user_id, shop_name, description)
        _logger.info(f"Shop request {request.id} '{shop_name}' submitted by user {user_id}")
        return request

    async def get_request(self, request_id: int) -> models.ShopRequest:
        async with self.database.connect() as conn:
            request = await ShopRequestStore(conn).find_by_id(request_id)
        if request is None:
            raise ShopRequestNotFound(request_id)
        return request

    async def list_requests(
        self, status: Optional[str] = None
    ) -> List[models.ShopRequest]:
        try:
            wanted = ShopRequestStatus(status) if status else None
        except ValueError:
            raise ValidationError(f"unknown request status: {status!r}", field="status") from None
        async with self.database.connect() as conn:
            return await ShopRequestStore(conn).find_all(wanted)

    async def list_user_requests(self, user_id: int) -> List[models.ShopRequest]:
        async with self.database.connect() as conn:
            return await ShopRequestStore(conn).find_by_user(user_id)

    async def approve_request(self, request_id: int) -> models.Shop:
        async with self.database.transaction() as conn:
            requests = ShopRequestStore(conn)
            request = await requests.find_by_id(request_id)
            if request is None:
                raise ShopRequestNotFound(request_id)
            if request.status != ShopRequestStatus.PENDING:
                raise RequestAlreadyProcessed(request_id, request.status.value)

            shop = await ShopStore(conn).create(
                request.user_id, request.shop_name, request.description, request.id
            )
            if not await requests.update_status(
                request_id, ShopRequestStatus.APPROVED, expected=ShopRequestStatus.PENDING
            ):
                raise RequestAlreadyProcessed(request_id, request.status.value)

        _logger.info(f"Shop request {request_id} approved; shop {shop.id} opened")
        return shop

    async def reject_request(self, request_id: int, reason: str = "") -> models.ShopRequest:
        reason = (reason or "").strip()
        if len(reason) > MAX_REASON:
            raise ValidationError(
                f"rejection reason must be at most {MAX_REASON} characters", field="reason"
            )
        async with self.database.transaction() as conn:
            requests = ShopRequestStore(conn)
            request = await requests.find_by_id(request_id)
            if request is None:
                raise ShopRequestNotFound(request_id)
            if request.status != ShopRequestStatus.PENDING:
                raise RequestAlreadyProcessed(request_id, request.status.value)
            if not await requests.update_status(
                request_id,
                ShopRequestStatus.REJECTED,
                reason=reason,
                expected=ShopRequestStatus.PENDING,
            ):
                raise RequestAlreadyProcessed(request_id, request.status.value)
            request = await requests.find_by_id(request_id)

        _logger.info(f"Shop request {request_id} rejected")
        return request

    async def list_shops(self, active: Optional[bool] = None) -> List[models.Shop]:
        async with self.database.connect() as conn:
            return await ShopStore(conn).list_all(active)

    async def get_shop(self, shop_id: int) -> models.Shop:
        async with self.database.connect() as conn:
            shop = await ShopStore(conn).find_by_id(shop_id)
        if shop is None:
            raise ShopNotFound(shop_id)
        return shop

    async def shops_for_user(self, user_id: int) -> List[models.Shop]:
        async with self.database.connect() as conn:
            return await ShopStore(conn).find_by_user(user_id)

    async def set_active(self, shop_id: int, active: bool) -> models.Shop:
        """Activate or deactivate a shop; deactivated shops are kept, not deleted."""
        async with self.database.transaction() as conn:
            shops = ShopStore(conn)
            if not await shops.set_active(shop_id, active):
                raise ShopNotFound(shop_id)
            shop = await shops.find_by_id(shop_id)
        _logger.info(f"Shop {shop_id} {'activated' if active else 'deactivated'}")
        return shop
