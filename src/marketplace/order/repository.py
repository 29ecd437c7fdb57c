"""Repository for the Order aggregate."""

from marketplace.domain import marketplace
from marketplace.order.order import Order


@marketplace.repository(part_of=Order)
class OrderRepository:
    def find_by_filter(self, buyer_id: str | None = None, enterprise_id: str | None = None) -> list[Order]:
        """Every order matching the given buyer and/or enterprise, newest first."""
        criteria = {}
        if buyer_id:
            criteria["buyer_id"] = str(buyer_id)
        if enterprise_id:
            criteria["enterprise_id"] = str(enterprise_id)

        query = self._dao.query.filter(**criteria) if criteria else self._dao.query
        return query.order_by(["-created_at", "-id"]).limit(None).all().items
