from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from invoice_workflow.core.config import settings
from invoice_workflow.core.database import engine, Base
from invoice_workflow.core.exceptions import AppException
from invoice_workflow.core.logging import log, setup_logging
from invoice_workflow.api.rest import api_router
from invoice_workflow.api.graphql.router import graphql_router

setup_logging(settings.log_level, settings.log_format, settings.log_dir)

# Create database tables
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Invoice Workflow API",
    description="Invoice approval and payment workflow with REST and GraphQL",
    version="1.0.0",
)


@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    """Handle application exceptions."""
    if exc.status_code >= 500:
        log.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, **exc.details},
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    log.exception("Unhandled exception")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


app.include_router(api_router, prefix="/api")
app.include_router(graphql_router, prefix="/graphql")


@app.get("/")
def root():
    return {"message": "Invoice Workflow API", "version": "1.0.0"}


@app.get("/health")
def health():
    return {"status": "healthy"}
