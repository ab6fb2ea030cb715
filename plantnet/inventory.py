import logging

from sqlalchemy import case, select, update
from sqlalchemy.orm import Session

from plantnet.errors import InsufficientStock, NotFound
from plantnet.models import Plant

logger = logging.getLogger(__name__)


def adjust_quantity(db: Session, plant_id: str, delta: int) -> bool:
    """Add ``delta`` to a plant's stock in a single UPDATE.

    Stock is clamped at zero: a decrement larger than what is left sets the
    quantity to 0 and is logged as an oversell. Returns False when the plant
    no longer exists. The caller owns the transaction.
    """
    if delta < 0:
        current = db.execute(
            select(Plant.quantity).where(Plant.id == plant_id)
        ).scalar_one_or_none()
        if current is not None and current + delta < 0:
            logger.warning(
                "Oversold plant %s: stock %s, decrement %s; clamping at 0",
                plant_id, current, -delta,
            )

    new_quantity = Plant.quantity + delta
    result = db.execute(
        update(Plant)
        .where(Plant.id == plant_id)
        .values(quantity=case((new_quantity < 0, 0), else_=new_quantity))
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        logger.warning("Inventory adjustment of %s skipped: plant %s not found", delta, plant_id)
        return False
    return True


def ensure_in_stock(db: Session, plant_id: str, quantity: int) -> Plant:
    plant = db.get(Plant, plant_id)
    if plant is None:
        raise NotFound(f"Plant {plant_id} not found")
    if plant.quantity < quantity:
        raise InsufficientStock(
            f"Only {plant.quantity} of {plant.name} left in stock, {quantity} requested"
        )
    return plant
