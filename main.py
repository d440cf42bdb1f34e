import uvicorn

from shared.config.settings import PORT
from services.order_service.main import order_app

app = order_app

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=PORT)
