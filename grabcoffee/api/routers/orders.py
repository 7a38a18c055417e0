# grabcoffee/api/routers/orders.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from grabcoffee.data.database import get_db
from grabcoffee.domain.schemas import OrderOut
from grabcoffee.services.order_service import OrderService

router = APIRouter(prefix="/api/orders", tags=["orders"])


def get_service(db: Session):
    return OrderService(db)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(order_id: int, db: Session = Depends(get_db)):
    """
    Zamowienie po id wiersza, razem z pozostalymi napojami z tej samej grupy.
    """
    svc = get_service(db)
    try:
        return svc.get_order(order_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
