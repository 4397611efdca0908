from .wizard import router as wizard_router

__all__ = ["wizard_router"]
