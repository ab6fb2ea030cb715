from plantnet.inventory import adjust_quantity
from plantnet.models import Plant


def test_adjust_quantity_applies_signed_delta(session_factory, make_plant):
    plant_id = make_plant(quantity=5)
    db = session_factory()

    assert adjust_quantity(db, plant_id, -2) is True
    db.commit()
    assert db.get(Plant, plant_id).quantity == 3

    assert adjust_quantity(db, plant_id, 4) is True
    db.commit()
    db.expire_all()
    assert db.get(Plant, plant_id).quantity == 7
    db.close()


def test_decrement_is_clamped_at_zero(session_factory, make_plant, caplog):
    plant_id = make_plant(quantity=1)
    db = session_factory()

    assert adjust_quantity(db, plant_id, -3) is True
    db.commit()

    assert db.get(Plant, plant_id).quantity == 0
    assert "Oversold plant" in caplog.text
    db.close()


def test_missing_plant_is_reported(session_factory):
    db = session_factory()

    assert adjust_quantity(db, "gone", 1) is False
    db.close()
