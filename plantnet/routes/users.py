from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from plantnet.auth import verify_token
from plantnet.database import get_db
from plantnet.errors import NotFound
from plantnet.models import User, utcnow
from plantnet.schemas import UserIn, UserOut, UserUpdate

router = APIRouter(tags=["users"])


def _get_user(db: Session, email: str) -> User:
    user = db.query(User).filter_by(email=email).first()
    if user is None:
        raise NotFound(f"User {email} not found")
    return user


@router.post("/users/{email}", response_model=UserOut)
def save_user(email: str, request: UserIn, db: Session = Depends(get_db)):
    user = db.query(User).filter_by(email=email).first()
    if user is None:
        user = User(email=email, role="customer")
        db.add(user)
    for key, value in request.model_dump(exclude_unset=True).items():
        setattr(user, key, value)
    user.timestamp = utcnow()
    db.commit()
    db.refresh(user)
    return user


@router.patch("/users/update/{email}", response_model=UserOut)
def update_user(
    email: str,
    request: UserUpdate,
    db: Session = Depends(get_db),
    auth=Depends(verify_token)
):
    user = _get_user(db, email)
    for key, value in request.model_dump(exclude_unset=True).items():
        setattr(user, key, value)
    # Any pending role request is resolved by this update
    user.status = None
    user.timestamp = utcnow()
    db.commit()
    db.refresh(user)
    return user


@router.get("/users", response_model=List[UserOut])
def list_users(db: Session = Depends(get_db), auth=Depends(verify_token)):
    return db.query(User).all()


@router.get("/users/role/{email}")
def get_user_role(email: str, db: Session = Depends(get_db)):
    return {"role": _get_user(db, email).role}


@router.get("/users/{email}", response_model=UserOut)
def get_user(email: str, db: Session = Depends(get_db)):
    return _get_user(db, email)
