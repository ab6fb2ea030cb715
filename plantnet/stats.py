from decimal import Decimal

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from plantnet.models import Order, OrderStatus, Plant, User


def admin_stats(db: Session) -> dict:
    total_users = db.scalar(select(func.count()).select_from(User))
    total_plants = db.scalar(select(func.count()).select_from(Plant))

    total_orders, revenue = db.execute(
        select(
            func.count(Order.id),
            func.coalesce(
                func.sum(
                    case(
                        (Order.status == OrderStatus.DELIVERED, Order.price * Order.quantity),
                        else_=0,
                    )
                ),
                0,
            ),
        )
    ).one()

    return {
        "totalUsers": total_users or 0,
        "totalPlants": total_plants or 0,
        "totalOrders": total_orders or 0,
        "revenue": float(Decimal(str(revenue)).quantize(Decimal("0.01"))),
    }
