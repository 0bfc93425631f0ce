"""FastAPI application entry point."""

from fastapi import FastAPI

from .routes import plans

app = FastAPI(
    title="Migration Plan API",
    description="API for compiling migration scripts into object plans",
    version="1.0.0",
)

app.include_router(plans.router, prefix="/api/plans", tags=["plans"])


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
