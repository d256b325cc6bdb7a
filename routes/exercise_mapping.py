"""
Exercise mapping API routes.

Resolve free-text exercise names, manage user mappings and corrections,
inspect unmapped names and statistics, back up and restore learned state.
"""

from typing import Any
from fastapi import APIRouter, Body, Depends, Response
from fastapi.responses import JSONResponse
import structlog

from models.exercise_mapping import (
    UserMapping,
    UnmappedObservation,
    MappingStatistics,
    ResolutionResult,
    BatchResolution,
    WorkoutResolution,
    ResolveRequest,
    BatchResolveRequest,
    WorkoutResolveRequest,
    UserMappingCreate,
    CorrectionCreate,
    ImportResponse,
)
from services.exercise_mapping_service import (
    ExerciseMappingService,
    get_exercise_mapping_service,
)
from exceptions import AppError
from exceptions.errors import (
    ExerciseNotFoundError,
    UserMappingNotFoundError,
    InvalidMappingImportError,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/exercise-mapping", tags=["Exercise Mapping"])


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# RESOLUTION ROUTES
# ===================

@router.post("/resolve", response_model=ResolutionResult)
async def resolve_exercise(
    data: ResolveRequest,
    service: ExerciseMappingService = Depends(get_exercise_mapping_service)
):
    """
    Resolve one exercise name.

    Always returns a result; check needs_review before trusting it.
    """
    return service.resolve(data.query, data.context)


@router.post("/resolve/batch", response_model=BatchResolution)
async def resolve_exercises(
    data: BatchResolveRequest,
    service: ExerciseMappingService = Depends(get_exercise_mapping_service)
):
    """Resolve several exercise names; results keep input order."""
    return service.resolve_batch(data.queries, data.context)


@router.post("/resolve/workout", response_model=WorkoutResolution)
async def resolve_workout(
    data: WorkoutResolveRequest,
    service: ExerciseMappingService = Depends(get_exercise_mapping_service)
):
    """Extract exercise names from a workout and resolve each of them."""
    return service.resolve_workout(data.title, data.description)


# ===================
# USER MAPPING ROUTES
# ===================

@router.get("/mappings", response_model=list[UserMapping])
async def list_user_mappings(
    service: ExerciseMappingService = Depends(get_exercise_mapping_service)
):
    """List user mappings, most used first."""
    try:
        return service.list_user_mappings()

    except Exception as e:
        return handle_error(e)


@router.post("/mappings", response_model=UserMapping, status_code=201)
async def create_user_mapping(
    data: UserMappingCreate,
    service: ExerciseMappingService = Depends(get_exercise_mapping_service)
):
    """
    Create or replace a user mapping.

    Raises:
        404: Exercise id not in catalog
        422: Validation error
    """
    try:
        if not service.create_user_mapping(data.query, data.exercise_id, data.confidence, data.source):
            raise ExerciseNotFoundError(data.exercise_id)
        return service.get_user_mapping(data.query)

    except ExerciseNotFoundError as e:
        return handle_error(e)
    except Exception as e:
        return handle_error(e)


@router.delete("/mappings/{query}", status_code=204)
async def delete_user_mapping(
    query: str,
    service: ExerciseMappingService = Depends(get_exercise_mapping_service)
):
    """
    Remove a user mapping.

    Raises:
        404: No mapping for this query
    """
    try:
        if not service.remove_user_mapping(query):
            raise UserMappingNotFoundError(query)
        return Response(status_code=204)

    except UserMappingNotFoundError as e:
        return handle_error(e)
    except Exception as e:
        return handle_error(e)


@router.post("/corrections", response_model=UserMapping)
async def create_correction(
    data: CorrectionCreate,
    service: ExerciseMappingService = Depends(get_exercise_mapping_service)
):
    """
    Record a user correction.

    Future resolutions of this query return the corrected exercise.

    Raises:
        404: Exercise id not in catalog
    """
    try:
        if not service.learn_from_correction(data.query, data.exercise_id):
            raise ExerciseNotFoundError(data.exercise_id)
        return service.get_user_mapping(data.query)

    except ExerciseNotFoundError as e:
        return handle_error(e)
    except Exception as e:
        return handle_error(e)


# ===================
# INSIGHT ROUTES
# ===================

@router.get("/unmapped", response_model=list[UnmappedObservation])
async def list_unmapped(
    service: ExerciseMappingService = Depends(get_exercise_mapping_service)
):
    """List names that could not be resolved, most frequent first."""
    try:
        return service.list_unmapped()

    except Exception as e:
        return handle_error(e)


@router.get("/statistics", response_model=MappingStatistics)
async def get_statistics(
    service: ExerciseMappingService = Depends(get_exercise_mapping_service)
):
    """Resolution counters."""
    try:
        return service.get_statistics()

    except Exception as e:
        return handle_error(e)


# ===================
# BACKUP ROUTES
# ===================

@router.get("/export")
async def export_mappings(
    service: ExerciseMappingService = Depends(get_exercise_mapping_service)
):
    """Export all learned state as one JSON document."""
    try:
        return Response(
            content=service.export_all(),
            media_type="application/json"
        )

    except Exception as e:
        return handle_error(e)


@router.post("/import", response_model=ImportResponse)
async def import_mappings(
    payload: dict[str, Any] = Body(...),
    service: ExerciseMappingService = Depends(get_exercise_mapping_service)
):
    """
    Restore learned state from an export document.

    Families present in the document replace current data.

    Raises:
        422: Malformed document (nothing is changed)
    """
    try:
        if not service.import_all(payload):
            raise InvalidMappingImportError("Import document is not a valid mapping export")
        return ImportResponse(imported=True)

    except InvalidMappingImportError as e:
        return handle_error(e)
    except Exception as e:
        return handle_error(e)


@router.delete("/data", status_code=204)
async def clear_mapping_data(
    service: ExerciseMappingService = Depends(get_exercise_mapping_service)
):
    """Delete all user mappings, unmapped names and statistics."""
    try:
        service.clear_all_data()
        return Response(status_code=204)

    except Exception as e:
        return handle_error(e)
