"""Menu queries, starter data, and dish recommendations.

Learn: Recommendations blend two sources:
1. The assistant's picks, matched against available dishes by name
2. The most popular available dishes, to pad the list up to five

If the assistant is unavailable or fails, the list is popular dishes only.
"""

from typing import Any, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from smartdine.ai.assistant import RestaurantAssistant
from smartdine.ai.prompts import MAX_RECOMMENDATIONS, match_menu_items
from smartdine.db.models import MenuItem, Order

logger = structlog.get_logger()


class MenuService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_menu(
        self, category: Optional[str] = None, include_unavailable: bool = False
    ) -> list[MenuItem]:
        """The menu as customers browse it: most popular first."""
        q = select(MenuItem).order_by(MenuItem.popularity.desc(), MenuItem.id)
        if category:
            q = q.where(MenuItem.category == category)
        if not include_unavailable:
            q = q.where(MenuItem.available.is_(True))
        result = await self.db.execute(q)
        return list(result.scalars().all())

    async def get(self, item_id: int) -> Optional[MenuItem]:
        return await self.db.get(MenuItem, item_id)

    async def add_missing(self, dishes: list[dict[str, Any]]) -> int:
        """Insert dishes whose names aren't on the menu yet."""
        result = await self.db.execute(select(MenuItem.name))
        existing = set(result.scalars().all())
        new = [MenuItem(**dish) for dish in dishes if dish["name"] not in existing]
        if new:
            self.db.add_all(new)
            await self.db.commit()
        logger.info("menu.seeded", added=len(new), skipped=len(dishes) - len(new))
        return len(new)

    async def list_available(self) -> list[MenuItem]:
        q = select(MenuItem).where(MenuItem.available.is_(True)).order_by(MenuItem.id)
        result = await self.db.execute(q)
        return list(result.scalars().all())

    async def popular(
        self, limit: int = MAX_RECOMMENDATIONS, exclude_ids: Optional[set[int]] = None
    ) -> list[MenuItem]:
        q = (
            select(MenuItem)
            .where(MenuItem.available.is_(True))
            .order_by(MenuItem.popularity.desc(), MenuItem.id)
        )
        if exclude_ids:
            q = q.where(MenuItem.id.not_in(exclude_ids))
        result = await self.db.execute(q.limit(limit))
        return list(result.scalars().all())

    async def order_history_names(self, user_id: str, orders: int = 10) -> list[str]:
        """Dish names from the user's most recent orders, newest first."""
        q = (
            select(Order)
            .where(Order.user_id == user_id)
            .order_by(Order.created_at.desc())
            .limit(orders)
        )
        result = await self.db.execute(q)
        return [
            line["name"]
            for order in result.scalars().all()
            for line in order.items
            if line.get("name")
        ]

    # ─── Recommendations ──────────────────────────────────

    async def recommend(
        self, user_id: Optional[str], assistant: RestaurantAssistant
    ) -> tuple[list[MenuItem], str]:
        """Up to five dishes and where they came from ("ai" or "popular")."""
        menu = await self.list_available()
        history = await self.order_history_names(user_id) if user_id else []

        names = await assistant.recommend(history, menu)
        picks = match_menu_items(names, menu)
        source = "ai" if picks else "popular"

        if len(picks) < MAX_RECOMMENDATIONS:
            picked_ids = {item.id for item in picks}
            picks += await self.popular(
                MAX_RECOMMENDATIONS - len(picks), exclude_ids=picked_ids
            )

        logger.info(
            "menu.recommended",
            user_id=user_id,
            source=source,
            count=len(picks),
        )
        return picks[:MAX_RECOMMENDATIONS], source
