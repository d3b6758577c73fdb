import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from internship_allocation.api.v1.allocation.router import router as allocation_router
from internship_allocation.api.v1.allocation_plans.router import router as allocation_plans_router
from internship_allocation.api.v1.allocation_reports.router import router as allocation_reports_router
from internship_allocation.api.v1.credit_hours.router import router as credit_hours_router
from internship_allocation.api.v1.teacher_assignments.router import router as teacher_assignments_router
from internship_allocation.core.config import settings


def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="Internship Allocation Backend")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(allocation_plans_router)
    app.include_router(allocation_router)
    app.include_router(allocation_reports_router)
    app.include_router(teacher_assignments_router)
    app.include_router(credit_hours_router)

    return app


app = create_app()
