"""
Membership Portal - FastAPI Application Entry Point
"""

import logging

from fastapi import FastAPI, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.database import get_db
from app.models import Member, Organization, School
from app.routers import lookup, member_import, members, organizations, schools

# Initialize FastAPI app
settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Membership Portal",
    description="Member lookup and bulk membership import",
    version="0.1.0",
    debug=settings.debug,
)

# Include routers (bulk import before members so /bulk* is not taken as a member id)
app.include_router(member_import.router)
app.include_router(members.router)
app.include_router(organizations.router)
app.include_router(schools.router)
app.include_router(lookup.router)


@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    """
    Health check endpoint that also verifies database connection.
    """
    try:
        # Test database connection
        result = db.execute(text("SELECT 1"))
        result.fetchone()
        db_status = "connected"
    except SQLAlchemyError as e:
        db_status = f"error: {str(e)}"

    return {
        "status": "healthy",
        "database": db_status,
        "debug": settings.debug,
    }


@app.get("/api/stats")
def get_stats(db: Session = Depends(get_db)):
    """
    Get database statistics.
    """
    return {
        "organizations": db.query(Organization).count(),
        "schools": db.query(School).count(),
        "members": db.query(Member).count(),
    }
