import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from shared.exceptions import InsufficientStock, InvalidRequest, InvalidStatus, OrderNotFound, ProductNotFound
from shared.messaging import OrderEventPublisher, get_event_publisher

from .dependencies import get_order_workflow
from .schemas import OrderCreate, OrderResponse, StatusUpdate
from .service import OrderWorkflow

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])
public_router = APIRouter()  # For any public endpoints (e.g. health check)

@public_router.get("/health")
async def health_check(publisher: OrderEventPublisher = Depends(get_event_publisher)):
    return {"service": "order", "status": "running", "events": publisher.enabled}


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(payload: OrderCreate, workflow: OrderWorkflow = Depends(get_order_workflow)):
    try:
        return await workflow.place_order(payload.items, customer_email=payload.customer_email)
    except (InvalidRequest, ProductNotFound, InsufficientStock) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.exception("order.create_failed")
        raise HTTPException(status_code=500, detail="Failed to create order.")


@router.get("", response_model=list[OrderResponse])
async def list_orders(workflow: OrderWorkflow = Depends(get_order_workflow)):
    try:
        return await workflow.list_orders()
    except Exception:
        logger.exception("order.list_failed")
        raise HTTPException(status_code=500, detail="Failed to fetch orders.")


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: int, workflow: OrderWorkflow = Depends(get_order_workflow)):
    try:
        return await workflow.get_order(order_id)
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception:
        logger.exception("order.fetch_failed", order_id=order_id)
        raise HTTPException(status_code=500, detail="Failed to fetch order.")


@router.patch("/{order_id}", response_model=OrderResponse)
async def update_order_status(
    order_id: int, payload: StatusUpdate, workflow: OrderWorkflow = Depends(get_order_workflow)
):
    try:
        return await workflow.update_status(order_id, payload.status)
    except InvalidStatus as e:
        raise HTTPException(status_code=400, detail=str(e))
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception:
        logger.exception("order.update_failed", order_id=order_id)
        raise HTTPException(status_code=500, detail="Failed to update order.")
