import logging

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from src.endpoints.metrics.order.order_statistics import router as order_statistics_router
from src.service.config import get_service_config

logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


app = FastAPI(
    title="Order Statistics Service",
    version="0.1.0",
    description="Histograms, quantiles, goodness-of-fit and quantization of data columns",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(order_statistics_router, tags=["Order Statistics"])


@app.get("/")
async def root():
    return {"message": "Welcome to the Order Statistics Service"}


@app.get("/q/metrics")
async def metrics(request: Request):
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


# Readiness probe
@app.get("/q/health/ready")
async def readiness_probe():
    return JSONResponse(content={"status": "ready"}, status_code=200)


# Liveness probe endpoint
@app.get("/q/health/live")
async def liveness_probe():
    return JSONResponse(content={"status": "live"}, status_code=200)


if __name__ == "__main__":
    config = get_service_config()
    logger.info(
        f"Starting order statistics service on port {config['http_port']} "
        f"(intervals={config['number_of_intervals']}, "
        f"definition={config['quantile_definition'].display_name})"
    )
    uvicorn.run(app=app, host="0.0.0.0", port=config["http_port"])
