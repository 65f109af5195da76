# customer ratings and comments on products
from __future__ import annotations

from typing import List

from db import models
from db.database import Database
from db.feedback import FeedbackStore
from db.products import ProductStore
from utils.errors import FeedbackNotFound, ProductNotFound, ValidationError
from utils.logger import get_logger

_logger = get_logger(__name__)

MIN_RATING = 1
MAX_RATING = 5
MAX_COMMENT = 1000


class FeedbackService:
    def __init__(self, database: Database) -> None:
        self.database = database

    async def give_feedback(
        self, user_id: int, product_id: int, rating: int, comment: str
    ) -> models.Feedback:
        """Record a rating for an existing product. Comment is required."""
        if isinstance(rating, bool) or not isinstance(rating, int):
            raise ValidationError("rating must be a whole number", field="rating")
        if not MIN_RATING <= rating <= MAX_RATING:
            raise ValidationError(
                f"rating must be between {MIN_RATING} and {MAX_RATING}", field="rating"
            )
        comment = (comment or "").strip()
        if not comment:
            raise ValidationError("comment is required", field="comment")
        if len(comment) > MAX_COMMENT:
            raise ValidationError(
                f"comment must be at most {MAX_COMMENT} characters", field="comment"
            )

        async with self.database.transaction() as conn:
            if await ProductStore(conn).get_by_id(product_id) is None:
                raise ProductNotFound(product_id)
            feedback = await FeedbackStore(conn).create(user_id, product_id, rating, comment)
        _logger.info(
            f"Feedback {feedback.id} from user {user_id} on product {product_id}: {rating}/5"
        )
        return feedback

    async def get_feedback(self, feedback_id: int) -> models.Feedback:
        async with self.database.connect() as conn:
            feedback = await FeedbackStore(conn).find_by_id(feedback_id)
        if feedback is None:
            raise FeedbackNotFound(feedback_id)
        return feedback

    async def list_for_product(self, product_id: int) -> List[models.Feedback]:
        async with self.database.connect() as conn:
            return await FeedbackStore(conn).find_by_product(product_id)

    async def list_for_user(self, user_id: int) -> List[models.Feedback]:
        async with self.database.connect() as conn:
            return await FeedbackStore(conn).find_by_user(user_id)

    async def list_all(self) -> List[models.Feedback]:
        async with self.database.connect() as conn:
            return await FeedbackStore(conn).find_all()
