import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rideledger import __version__
from rideledger.config import settings

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="RideLedger API",
    description="Receipt capture and VAT tooling for Romanian rideshare drivers",
    version=__version__
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/")
async def root():
    return {
        "message": "RideLedger API",
        "version": __version__,
        "status": "running"
    }

@app.get("/health")
async def health_check():
    return {"status": "healthy"}

# Import routers
from rideledger.routers import companies, documents, vat

# Include routers
app.include_router(documents.router)
app.include_router(vat.router)
app.include_router(companies.router)
