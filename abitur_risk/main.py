"""FastAPI application for the Abitur Risk Analyzer."""

import logging
import traceback
from io import BytesIO
from typing import Any, Dict

from fastapi import Body, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from abitur_risk import config
from abitur_risk.engine import run_risk_engine
from abitur_risk.exports import report_to_csv, report_to_excel
from abitur_risk.models import parse_profile
from abitur_risk.report_models import RiskReport

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="Abitur Risk Analyzer", version="1.0.0")

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Override default exception handlers to return JSON (register specific handlers first)
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler_json(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions and return JSON."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail}
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler_json(request: Request, exc: RequestValidationError):
    """Handle validation errors and return JSON."""
    return JSONResponse(
        status_code=422,
        content={"detail": jsonable_errors(exc)}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions and return JSON."""
    logger.exception("Unhandled error on %s", request.url.path)
    error_detail = str(exc)
    if config.DEBUG:
        error_detail = f"{str(exc)}\n\n{traceback.format_exc()}"

    return JSONResponse(
        status_code=500,
        content={
            "detail": f"Internal server error: {error_detail}",
            "type": type(exc).__name__
        }
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    """Validation errors with the non-serializable context stripped."""
    return [
        {key: value for key, value in error.items() if key in ('type', 'loc', 'msg')}
        for error in exc.errors()
    ]


@app.get("/health")
async def health_check():
    """Health check endpoint to test server connectivity."""
    return JSONResponse(content={"status": "ok", "message": "Server is running"})


def load_profile(payload: Dict[str, Any]):
    """Validate a request body into a profile, as a 422 on failure."""
    try:
        return parse_profile(payload)
    except ValidationError as e:
        raise HTTPException(
            status_code=422,
            detail=e.errors(include_url=False, include_context=False)
        )


@app.post("/report", response_model=RiskReport)
async def create_report(payload: Dict[str, Any] = Body(...)):
    """Run the risk engine on one student profile."""
    return run_risk_engine(load_profile(payload))


@app.post("/report.csv")
async def download_csv(payload: Dict[str, Any] = Body(...)):
    """Findings of the risk report as CSV."""
    profile = load_profile(payload)
    report = run_risk_engine(profile)
    return StreamingResponse(
        iter([report_to_csv(report)]),
        media_type="text/csv",
        headers={
            "Content-Disposition": f"attachment; filename=abitur_risk_{profile.graduation_year}.csv"
        }
    )


@app.post("/report.xlsx")
async def download_excel(payload: Dict[str, Any] = Body(...)):
    """Findings and subject annotations as an Excel workbook."""
    profile = load_profile(payload)
    report = run_risk_engine(profile)
    output = BytesIO(report_to_excel(report))

    return StreamingResponse(
        output,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={
            "Content-Disposition": f"attachment; filename=abitur_risk_{profile.graduation_year}.xlsx"
        }
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
