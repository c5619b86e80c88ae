from datetime import date
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from .. import messages, report_service, schemas
from ..database import get_db

router = APIRouter(prefix="/api/reports", tags=["Reports"])


@router.get("/revenue/monthly", response_model=schemas.ApiResponse[List[schemas.RevenueResponse]])
def monthly_revenue(year: Optional[int] = Query(None), db: Session = Depends(get_db)):
    """Doanh thu theo tháng"""
    year = year or date.today().year
    return {"data": report_service.monthly_revenue(db, year), "message": messages.REPORT_LOADED}


@router.get("/revenue/quarterly", response_model=schemas.ApiResponse[List[schemas.RevenueResponse]])
def quarterly_revenue(year: Optional[int] = Query(None), db: Session = Depends(get_db)):
    """Doanh thu theo quý"""
    year = year or date.today().year
    return {"data": report_service.quarterly_revenue(db, year), "message": messages.REPORT_LOADED}


@router.get("/revenue/yearly", response_model=schemas.ApiResponse[List[schemas.RevenueResponse]])
def yearly_revenue(db: Session = Depends(get_db)):
    """Doanh thu theo năm"""
    return {"data": report_service.yearly_revenue(db), "message": messages.REPORT_LOADED}


@router.get("/rooms/top", response_model=schemas.ApiResponse[List[schemas.TopRoomResponse]])
def top_rooms(limit: int = Query(5, ge=1, le=50), db: Session = Depends(get_db)):
    """Phòng có doanh thu cao nhất"""
    return {"data": report_service.top_rooms(db, limit), "message": messages.REPORT_LOADED}
