# routes.py
from fastapi import FastAPI
from controller.lead_controller import lead_router


def register_routes(app: FastAPI) -> None:
    """Register & Access control controllers here."""
    app.include_router(lead_router)
