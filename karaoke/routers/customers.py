from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from .. import messages, models, schemas
from ..database import get_db, transaction
from ..exceptions import ConflictError, NotFoundError

router = APIRouter(prefix="/api/customers", tags=["Customers"])


@router.post("", response_model=schemas.ApiResponse[schemas.CustomerResponse], status_code=status.HTTP_201_CREATED)
def create_customer(customer: schemas.CustomerCreate, db: Session = Depends(get_db)):
    """Tạo khách hàng"""
    with transaction(db, "create customer"):
        if db.query(models.Customer).filter(models.Customer.phone_number == customer.phone_number).first():
            raise ConflictError(messages.CUSTOMER_PHONE_EXISTS)
        db_customer = models.Customer(**customer.model_dump())
        db.add(db_customer)

    db.refresh(db_customer)
    return {"data": db_customer, "message": messages.CUSTOMER_CREATED}


@router.get("", response_model=schemas.ApiResponse[List[schemas.CustomerResponse]])
def get_customers(db: Session = Depends(get_db)):
    """Danh sách khách hàng"""
    customers = db.query(models.Customer).order_by(models.Customer.name).all()
    return {"data": customers, "message": messages.CUSTOMERS_LOADED}


@router.get("/{customer_id}", response_model=schemas.ApiResponse[schemas.CustomerResponse])
def get_customer(customer_id: int, db: Session = Depends(get_db)):
    """Thông tin khách hàng"""
    customer = db.query(models.Customer).filter(models.Customer.id == customer_id).first()

    if not customer:
        raise NotFoundError(messages.CUSTOMER_NOT_FOUND)

    return {"data": customer, "message": messages.CUSTOMER_FOUND}
