import logging
from typing import Any, Dict, List, Optional, Union

import pandas as pd
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field
from scipy.stats import kstwobign

from src.service.constants import NUMBER_OF_INTERVALS_PARAMETER, QUANTILE_DEFINITION_PARAMETER
from src.service.data.shared_model_store import get_shared_model_store
from src.service.order_statistics import OrderStatistics, assess_column_name
from src.service.payloads.metrics.base_metric_request import BaseMetricRequest
from src.service.prometheus.shared_prometheus_publisher import get_shared_prometheus_publisher

router = APIRouter()
logger = logging.getLogger(__name__)

DEFAULT_ALPHA = 0.05


def get_model_store():
    """Get the shared model store instance."""
    return get_shared_model_store()


def get_prometheus_publisher():
    """Get the shared prometheus publisher instance."""
    return get_shared_prometheus_publisher()


class ModelId(BaseModel):
    modelId: str


class QuantilesRequest(BaseMetricRequest):
    number_of_intervals: Optional[int] = Field(default=None, alias="numberOfIntervals")
    quantile_definition: Optional[Union[int, str]] = Field(default=None, alias="quantileDefinition")


class KSTestRequest(BaseMetricRequest):
    threshold_delta: Optional[float] = Field(default=None, alias="thresholdDelta")


class AssessRequest(BaseMetricRequest):
    pass


def _build_order_statistics(request: BaseMetricRequest) -> OrderStatistics:
    if not request.columns:
        raise HTTPException(status_code=400, detail="columns is required - specify which variables to analyze")
    if not request.data:
        raise HTTPException(status_code=400, detail="data is required - provide the values of each column")

    stats = OrderStatistics()
    for column in request.columns:
        stats.add_column(column)
    return stats


def _get_model(model_id: str):
    model = get_model_store().get(model_id)
    if model is None:
        raise HTTPException(status_code=404, detail=f"No order statistics model found for model: {model_id}")
    return model


@router.post("/metrics/order/quantiles")
async def compute_quantiles(request: QuantilesRequest) -> Dict[str, Any]:
    """Learn the histograms and derive the quantiles of the requested columns, then store the model."""
    try:
        logger.info(f"Computing quantiles for model: {request.model_id}")
        stats = _build_order_statistics(request)

        if request.number_of_intervals is not None:
            stats.set_parameter(NUMBER_OF_INTERVALS_PARAMETER, request.number_of_intervals)
        if request.quantile_definition is not None:
            stats.set_parameter(QUANTILE_DEFINITION_PARAMETER, request.quantile_definition)

        result = stats.fit(request.to_dataframe(), request.value_types)
        diagnostics = [d.to_dict() for d in result.diagnostics]

        if not result.model.quantiles:
            raise HTTPException(
                status_code=400,
                detail={"message": "None of the requested columns could be processed", "diagnostics": diagnostics},
            )

        get_model_store().put(request.model_id, result.model)

        return {
            "status": "success",
            "modelId": request.model_id,
            **result.model.to_dict(),
            "diagnostics": diagnostics,
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error computing quantiles: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error computing quantiles: {str(e)}")


@router.post("/metrics/order/kstest")
async def compute_kstest(request: KSTestRequest) -> Dict[str, Any]:
    """Test the requested columns against the quantiles of a stored model."""
    try:
        logger.info(f"Computing quantile goodness-of-fit for model: {request.model_id}")
        stats = _build_order_statistics(request)
        model = _get_model(request.model_id)

        report = stats.test(request.to_dataframe(), model, request.value_types)
        alpha = request.threshold_delta if request.threshold_delta else DEFAULT_ALPHA

        results = {}
        for variable, fit in report.results.items():
            # Asymptotic distribution of sqrt(n) * D_n
            p_value = float(kstwobign.sf(fit.statistic))
            results[variable] = {
                "maximum_distance": fit.maximum_distance,
                "statistic": fit.statistic,
                "p_value": p_value,
                "drift_detected": bool(p_value < alpha),
                "cardinality": fit.cardinality,
            }

        get_prometheus_publisher().publish_goodness_of_fit(request.model_id, report.results)

        return {
            "status": "success",
            "value": max((r["statistic"] for r in results.values()), default=None),
            "drift_detected": any(r["drift_detected"] for r in results.values()),
            "alpha": alpha,
            "feature_results": results,
            "diagnostics": [d.to_dict() for d in report.diagnostics],
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error computing quantile goodness-of-fit: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error computing metric: {str(e)}")


@router.post("/metrics/order/assess")
async def assess(request: AssessRequest) -> Dict[str, Any]:
    """Assign every row of the requested columns to a quantile bucket of a stored model."""
    try:
        logger.info(f"Assessing quantile buckets for model: {request.model_id}")
        stats = _build_order_statistics(request)
        model = _get_model(request.model_id)

        result = stats.assess(request.to_dataframe(), model, request.value_types)

        buckets: Dict[str, List[Optional[int]]] = {}
        for variable in result.assessed:
            series = result.data[assess_column_name(variable)]
            buckets[variable] = [None if pd.isna(v) else int(v) for v in series]

        return {
            "status": "success",
            "labels": list(model.labels),
            "buckets": buckets,
            "diagnostics": [d.to_dict() for d in result.diagnostics],
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error assessing quantile buckets: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error assessing quantile buckets: {str(e)}")


@router.get("/metrics/order/definition")
async def get_order_statistics_definition() -> Dict[str, str]:
    """Provide a general definition of the order statistics metrics."""
    description = """Order statistics summarize a variable by its quantiles: N+1 breakpoints splitting
    the observations into N intervals of equal probability, computed from the cumulative histogram
    of the variable with either the nearest-rank or the averaged-steps inverse CDF.

    New data is compared to the quantile model with a one-sample Kolmogorov-Smirnov statistic,
    sqrt(n) times the maximum distance between the empirical CDF and the step CDF of the model,
    and every observation can be assigned to the quantile interval that contains it.

    For more information, see the following:
    1. https://en.wikipedia.org/wiki/Quantile
    2. https://en.wikipedia.org/wiki/Kolmogorov%E2%80%93Smirnov_test
    """

    return {
        "name": "Order Statistics",
        "description": description,
    }


@router.get("/metrics/order/models")
async def list_models() -> Dict[str, List[Dict[str, Any]]]:
    """List the stored order statistics models."""
    try:
        store = get_model_store()
        models = []
        for model_id in store.list_models():
            model = store.get(model_id)
            if model is None:
                continue
            summary = model.to_dict()
            models.append({
                "modelId": model_id,
                "variables": list(model.quantiles.keys()),
                "numberOfIntervals": summary["numberOfIntervals"],
                "quantileDefinition": summary["quantileDefinition"],
            })
        return {"models": models}

    except Exception as e:
        logger.error(f"Error listing order statistics models: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error listing models: {str(e)}")


@router.delete("/metrics/order/model")
async def delete_model(model: ModelId) -> Dict[str, str]:
    """Delete a stored order statistics model and its published metrics."""
    try:
        logger.info(f"Deleting order statistics model: {model.modelId}")
        if not get_model_store().delete(model.modelId):
            raise HTTPException(status_code=404, detail=f"No order statistics model found for model: {model.modelId}")

        get_prometheus_publisher().remove_model(model.modelId)
        return {"status": "success", "message": f"Model {model.modelId} deleted"}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error deleting order statistics model: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error deleting model: {str(e)}")
