import uuid
from datetime import datetime
from typing import Optional
from shared.core import get_logger
from palma.domain.models import Review
from palma.infrastructure.repositories import Repositories

logger = get_logger(__name__)

class ReviewService:
    def __init__(self, repos: Repositories):
        self.repos = repos

    def get_reviews_for_product(self, product_id: str) -> list[Review]:
        return sorted(
            self.repos.reviews.list_for_product(product_id),
            key=lambda r: r.created_at or datetime.min,
            reverse=True,
        )

    def add_review(self, user_id: str, product_id: str, rating: int, comment: Optional[str] = None) -> bool:
        """Store a review and refresh the product's rating; one review per user and product."""
        if self.repos.reviews.find(user_id, product_id):
            return False
        user = self.repos.users.get(user_id)
        self.repos.reviews.add(Review(
            id=str(uuid.uuid4()),
            product_id=product_id,
            customer_id=user_id,
            customer_name=user.name if user else None,
            rating=rating,
            comment=comment,
            created_at=datetime.utcnow(),
        ))
        self._recompute_rating(product_id)
        return True

    def _recompute_rating(self, product_id: str) -> None:
        reviews = self.repos.reviews.list_for_product(product_id)
        if not reviews or not self.repos.products.get(product_id):
            return
        average = round(sum(r.rating for r in reviews) / len(reviews), 1)
        self.repos.products.update(product_id, rating=average, review_count=len(reviews))
        logger.info(
            "Product rating updated",
            extra={"extra_fields": {"product_id": product_id, "rating": average, "count": len(reviews)}},
        )
