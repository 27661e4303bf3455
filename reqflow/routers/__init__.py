"""
routers/ — FastAPI route modules.

Each file contains a thin APIRouter. All workflow logic lives in
services/. Routers resolve the actor, call one service operation,
and shape the response.
"""
