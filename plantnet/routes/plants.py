from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from plantnet.auth import verify_token
from plantnet.database import get_db
from plantnet.errors import NotFound
from plantnet.models import Plant
from plantnet.schemas import PlantIn, PlantOut, PlantUpdate

router = APIRouter(tags=["plants"])


def _get_plant(db: Session, plant_id: str) -> Plant:
    plant = db.get(Plant, plant_id)
    if plant is None:
        raise NotFound(f"Plant {plant_id} not found")
    return plant


@router.post("/plants", response_model=PlantOut, status_code=201)
def create_plant(request: PlantIn, db: Session = Depends(get_db)):
    plant = Plant(
        **request.model_dump(exclude={"seller"}),
        seller=request.seller.model_dump(),
        seller_email=request.seller.email,
    )
    db.add(plant)
    db.commit()
    db.refresh(plant)
    return plant


@router.get("/plants", response_model=List[PlantOut])
def list_plants(db: Session = Depends(get_db)):
    return db.query(Plant).all()


@router.get("/plants/{plant_id}", response_model=PlantOut)
def get_plant(plant_id: str, db: Session = Depends(get_db)):
    return _get_plant(db, plant_id)


@router.get("/my-inventory/{email}", response_model=List[PlantOut])
def seller_inventory(email: str, db: Session = Depends(get_db)):
    return db.query(Plant).filter_by(seller_email=email).all()


@router.patch("/plants/{plant_id}", response_model=PlantOut)
def update_plant(
    plant_id: str,
    request: PlantUpdate,
    db: Session = Depends(get_db),
    email: str = Depends(verify_token)
):
    plant = _get_plant(db, plant_id)
    for key, value in request.model_dump(exclude_unset=True).items():
        setattr(plant, key, value)
    db.commit()
    db.refresh(plant)
    return plant


@router.delete("/plants/{plant_id}")
def delete_plant(plant_id: str, db: Session = Depends(get_db)):
    deleted = db.query(Plant).filter_by(id=plant_id).delete()
    db.commit()
    return {"deletedCount": deleted}
