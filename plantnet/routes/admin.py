from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from plantnet.auth import verify_token
from plantnet.database import get_db
from plantnet.schemas import AdminStats
from plantnet.stats import admin_stats

router = APIRouter(tags=["admin"])


@router.get("/admin-stat", response_model=AdminStats)
def get_admin_stats(db: Session = Depends(get_db), auth=Depends(verify_token)):
    return admin_stats(db)
