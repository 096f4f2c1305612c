# main.py

"""
FastAPI application for the chat visualization engine.
Turns finished AI chat responses into chart descriptors and Plotly figures.
"""

from fastapi import FastAPI, HTTPException, Depends, Header, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, HTMLResponse
from pydantic import ValidationError
from typing import Optional, Dict, Any, List
import uvicorn
import json
import logging
import time
from datetime import datetime

from response_extractor.extractor import extract_data_from_response
from visualization.chart_templates import VisualizationData
from visualization.generator import generate_visualizations
from visualization.pipeline import collect_response
from visualization.renderer import renderer as viz_renderer
from config import APP_CONFIG, LOG_CONFIG


# Configure logging
_handlers: List[logging.Handler] = [logging.StreamHandler()]
if LOG_CONFIG["file"]:
    _handlers.append(logging.FileHandler(LOG_CONFIG["file"]))

logging.basicConfig(
    level=getattr(logging, LOG_CONFIG["level"]),
    format=LOG_CONFIG["format"],
    handlers=_handlers
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Chat Visualization Engine",
    description="Heuristic extraction of metrics, tables, lists and time series from AI responses, with deterministic chart selection",
    version=APP_CONFIG["version"],
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if APP_CONFIG["debug"] else [
        "http://localhost:3000",
        "http://localhost:8000"
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Execution-Time"]
)


# Dependency for API key validation
async def verify_api_key(x_api_key: Optional[str] = Header(None, alias="X-API-Key")) -> bool:
    """Authentication gate. Open when no API_KEY is configured."""
    expected = APP_CONFIG["api_key"]
    if not expected:
        return True

    if not x_api_key:
        raise HTTPException(
            status_code=401,
            detail="API key required. Use X-API-Key header."
        )

    if x_api_key != expected:
        raise HTTPException(status_code=401, detail="Invalid API key")

    return True


# Middleware to add request ID and timing
@app.middleware("http")
async def add_process_time_header(request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Execution-Time"] = str(round(process_time * 1000, 2))
    response.headers["X-Request-ID"] = f"req_{int(start_time * 1000)}"
    return response


# Root endpoint
@app.get("/", response_class=HTMLResponse)
async def root():
    """Welcome page with API documentation."""
    html_content = """
    <!DOCTYPE html>
    <html>
    <head>
        <title>Chat Visualization Engine</title>
        <style>
            body { font-family: Arial, sans-serif; margin: 40px; line-height: 1.6; }
            .container { max-width: 800px; margin: 0 auto; }
            .header { background: #f4f4f4; padding: 20px; border-radius: 5px; }
            .endpoint { background: #f9f9f9; padding: 15px; margin: 10px 0; border-left: 4px solid #007bff; }
            .method { display: inline-block; padding: 3px 8px; border-radius: 3px; color: white; font-weight: bold; }
            .get { background: #28a745; }
            .post { background: #007bff; }
            code { background: #eee; padding: 2px 5px; border-radius: 3px; }
        </style>
    </head>
    <body>
        <div class="container">
            <div class="header">
                <h1>Chat Visualization Engine</h1>
                <p>Turns AI chat responses into charts</p>
                <p><strong>Detects:</strong> key metrics, markdown tables, bulleted/numbered lists, time series</p>
            </div>

            <h2>API Endpoints</h2>

            <div class="endpoint">
                <span class="method get">GET</span> <code>/health</code>
                <p>Service health check</p>
            </div>

            <div class="endpoint">
                <span class="method post">POST</span> <code>/extract</code>
                <p>Extract metrics, tables, lists and time series from text</p>
                <p><strong>Body:</strong> <code>{"text": "Churn Rate: 12.5%"}</code></p>
            </div>

            <div class="endpoint">
                <span class="method post">POST</span> <code>/visualize</code>
                <p>Generate chart descriptors from a complete response or a list of streamed chunks</p>
                <p><strong>Body:</strong> <code>{"text": "...", "context": "..."}</code> or <code>{"chunks": ["...", "..."]}</code></p>
            </div>

            <div class="endpoint">
                <span class="method post">POST</span> <code>/render</code>
                <p>Render one chart descriptor as a Plotly figure</p>
            </div>

            <h2>Authentication</h2>
            <p>When <code>API_KEY</code> is configured, send it in the <code>X-API-Key</code> header.</p>

            <h2>Documentation</h2>
            <p>
                <a href="/docs">Interactive Swagger UI</a> |
                <a href="/redoc">ReDoc Documentation</a> |
                <a href="/openapi.json">OpenAPI Spec</a>
            </p>
        </div>
    </body>
    </html>
    """
    return HTMLResponse(content=html_content)


@app.get("/health")
async def health_check():
    """Health check: runs a tiny sample through every component."""
    health_status = {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": APP_CONFIG["version"],
        "components": {}
    }

    sample = "| Month | Revenue |\n|---|---|\n| Jan | 100 |\n| Feb | 120 |\nChurn Rate: 2.5%"

    try:
        extracted = extract_data_from_response(sample)
        health_status["components"]["extractor"] = {
            "status": "healthy" if extracted.tables and extracted.metrics else "degraded",
            "sample_tables": len(extracted.tables),
            "sample_metrics": len(extracted.metrics)
        }
    except Exception as e:
        health_status["components"]["extractor"] = {
            "status": "unhealthy",
            "error": str(e)
        }
        extracted = None

    try:
        visualizations = generate_visualizations(extracted) if extracted else []
        if visualizations:
            viz_renderer.render(visualizations[-1])
        health_status["components"]["renderer"] = {
            "status": "healthy" if visualizations else "degraded",
            "sample_visualizations": len(visualizations)
        }
    except Exception as e:
        health_status["components"]["renderer"] = {
            "status": "unhealthy",
            "error": str(e)
        }

    # Overall status
    if all(comp["status"] == "healthy" for comp in health_status["components"].values()):
        health_status["status"] = "healthy"
    elif any(comp["status"] == "unhealthy" for comp in health_status["components"].values()):
        health_status["status"] = "unhealthy"
    else:
        health_status["status"] = "degraded"

    return health_status


def _response_text(payload: Dict[str, Any]) -> str:
    """Complete response text from either "text" or streamed "chunks"."""
    text = payload.get("text")
    chunks = payload.get("chunks")

    if text is None and chunks is None:
        raise HTTPException(status_code=400, detail="Either 'text' or 'chunks' is required")

    if text is not None:
        if not isinstance(text, str):
            raise HTTPException(status_code=400, detail="'text' must be a string")
        return text

    if not isinstance(chunks, list) or not all(isinstance(c, str) or c is None for c in chunks):
        raise HTTPException(status_code=400, detail="'chunks' must be a list of strings")
    return collect_response(chunks)


@app.post("/extract")
async def extract(
    payload: Dict[str, Any],
    authenticated: bool = Depends(verify_api_key)
):
    """
    Extract structured signals from a response.

    Example payload:
    {"text": "Churn Rate: 12.5%\\nRevenue: $2.5K"}
    """
    text = _response_text(payload)
    extracted = extract_data_from_response(text)
    logger.info(
        f"Extracted from {len(text)} chars: {len(extracted.metrics)} metrics, "
        f"{len(extracted.tables)} tables, {len(extracted.lists)} lists, "
        f"{len(extracted.time_series)} time points"
    )
    return extracted.model_dump(mode="json", by_alias=True, exclude_none=True)


@app.post("/visualize")
async def visualize(
    payload: Dict[str, Any],
    render: bool = Query(False, description="Also render Plotly figures"),
    authenticated: bool = Depends(verify_api_key)
):
    """
    End-to-end: response text -> extracted data -> chart descriptors.

    Example payload:
    {
        "text": "| Region | Customers |\\n|---|---|\\n| East | 10 |\\n| West | 20 |",
        "context": "customer breakdown"
    }
    """
    start_time = time.time()
    text = _response_text(payload)
    context = payload.get("context") or ""
    if not isinstance(context, str):
        raise HTTPException(status_code=400, detail="'context' must be a string")

    extracted = extract_data_from_response(text)
    visualizations = generate_visualizations(extracted, context)

    result = {
        "success": True,
        "visualizations": [viz.to_dict() for viz in visualizations],
        "count": len(visualizations),
        "metadata": {
            "text_length": len(text),
            "metrics": len(extracted.metrics),
            "tables": len(extracted.tables),
            "lists": len(extracted.lists),
            "time_points": len(extracted.time_series),
            "execution_time_ms": round((time.time() - start_time) * 1000, 2)
        }
    }

    if render:
        rendered = []
        for viz in visualizations:
            try:
                rendered.append(viz_renderer.render(viz))
            except ValueError as e:
                logger.warning(f"Skipping render of {viz.id}: {e}")
        result["rendered"] = rendered

    logger.info(f"Generated {len(visualizations)} visualizations from {len(text)} chars")
    return result


@app.post("/render")
async def render_visualization(
    payload: Dict[str, Any],
    include_image: bool = Query(False, description="Include base64 PNG (requires kaleido)"),
    authenticated: bool = Depends(verify_api_key)
):
    """Render one chart descriptor as a Plotly figure or metric cards."""
    try:
        viz = VisualizationData.model_validate(payload)
    except ValidationError as e:
        raise HTTPException(
            status_code=422,
            detail={"message": "Invalid visualization descriptor", "errors": json.loads(e.json(include_url=False))}
        )

    try:
        return viz_renderer.render(viz, include_image=include_image)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


# Exception handlers
@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc):
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": exc.detail,
            "path": request.url.path,
            "method": request.method,
            "request_id": request.headers.get("X-Request-ID", "unknown")
        }
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request, exc):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)

    error_detail = str(exc) if APP_CONFIG["debug"] else "Internal server error"

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": error_detail,
            "path": request.url.path,
            "method": request.method,
            "request_id": request.headers.get("X-Request-ID", "unknown")
        }
    )


# Startup and shutdown events
@app.on_event("startup")
async def startup_event():
    logger.info(f"Starting {APP_CONFIG['name']} v{APP_CONFIG['version']}...")
    logger.info(f"API key gate: {'enabled' if APP_CONFIG['api_key'] else 'disabled'}")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info(f"Shutting down {APP_CONFIG['name']}")


# Main entry point
if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=APP_CONFIG["host"],
        port=APP_CONFIG["port"],
        reload=APP_CONFIG["debug"],
        log_level="debug" if APP_CONFIG["debug"] else "info",
        access_log=True
    )
