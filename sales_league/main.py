import logging
from contextlib import asynccontextmanager
from typing import Optional, List

import gspread
import requests
from fastapi import FastAPI, Depends, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sales_league import sheets_client
from sales_league.database import init_db
from sales_league.leaderboard import list_employees, EmployeeItem
from sales_league.metrics import CompanyRow, InvoiceRow, MetricsResult, compute_metrics
from sales_league.routers import achievements as achievements_router
from sales_league.routers import leaderboard as leaderboard_router
from sales_league.routers.deps import get_companies, get_invoices

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(title="Sales League", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(achievements_router.router, prefix="/api")
app.include_router(leaderboard_router.router, prefix="/api")


# --- Error Handlers ---
@app.exception_handler(sheets_client.SheetsError)
@app.exception_handler(requests.exceptions.RequestException)
@app.exception_handler(gspread.exceptions.GSpreadException)
async def data_source_error_handler(request: Request, exc: Exception):
    logger.error("Data source error on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"error": str(exc) or "Internal server error"})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s", request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": str(exc) or "Internal server error"})


# --- API Endpoints ---
@app.get("/")
def read_root():
    return {"status": "Sales League is running!"}


@app.get("/api/employees", tags=["Employees"])
def get_employees(companies: List[CompanyRow] = Depends(get_companies)):
    employees: List[EmployeeItem] = list_employees(companies)
    return {"employees": employees}


@app.get("/api/metrics", response_model=MetricsResult, tags=["Metrics"])
def get_metrics(
    user_id: Optional[str] = None,
    companies: List[CompanyRow] = Depends(get_companies),
    invoices: List[InvoiceRow] = Depends(get_invoices),
):
    if not user_id:
        raise HTTPException(status_code=400, detail="user_id is required")
    return compute_metrics(companies, invoices, user_id)
