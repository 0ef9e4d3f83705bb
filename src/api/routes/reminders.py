"""
Reminder management endpoints.
"""

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import (
    CurrentUser,
    get_current_user,
    get_process_due_use_case,
    get_reminders,
    require_admin,
)
from src.application.dto.requests import (
    CreateReminderRequest,
    FollowUpReminderRequest,
    UpdateReminderRequest,
)
from src.application.dto.responses import (
    ErrorResponse,
    ReminderListResponse,
    ReminderResponse,
    ReminderStatsResponse,
    SweepResultResponse,
)
from src.application.use_cases import ProcessScheduledRemindersUseCase
from src.config import get_logger
from src.core.entities.reminder import RelatedType, ReminderStatus, ReminderType
from src.core.entities.reminder_query import (
    PageRequest,
    ReminderFilters,
    SortField,
    SortOrder,
)
from src.core.services import ReminderOptions, ReminderService, ReminderUpdate

logger = get_logger(__name__)

router = APIRouter(
    prefix="/api/reminders",
    tags=["reminders"],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
    },
)


@router.post(
    "",
    response_model=ReminderResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_reminder(
    request: CreateReminderRequest,
    user: CurrentUser = Depends(get_current_user),
    service: ReminderService = Depends(get_reminders),
) -> ReminderResponse:
    """Create a new reminder."""
    created = await service.create_reminder(
        owner=user.user_id,
        related_id=request.related_id,
        related_type=request.related_type,
        reminder_type=request.reminder_type,
        title=request.title,
        description=request.description,
        scheduled_date=request.scheduled_date,
        options=ReminderOptions(
            frequency=request.frequency,
            max_reminders=request.max_reminders,
            recurring=request.recurring,
        ),
    )
    return ReminderResponse.from_entity(created)


@router.post(
    "/follow-up",
    response_model=ReminderResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
async def schedule_follow_up(
    request: FollowUpReminderRequest,
    user: CurrentUser = Depends(get_current_user),
    service: ReminderService = Depends(get_reminders),
) -> ReminderResponse:
    """Start a follow-up series for a calculation sent to a client."""
    created = await service.schedule_follow_up_reminders(
        calculation_id=request.calculation_id,
        owner=user.user_id,
        options=ReminderOptions(
            frequency=request.frequency,
            max_reminders=request.max_reminders,
        ),
    )
    return ReminderResponse.from_entity(created)


@router.get("", response_model=ReminderListResponse)
async def list_reminders(
    status_filter: ReminderStatus | None = Query(default=None, alias="status"),
    related_type: RelatedType | None = None,
    reminder_type: ReminderType | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1),
    sort_by: SortField = SortField.SCHEDULED_DATE,
    sort_order: SortOrder = SortOrder.ASC,
    user: CurrentUser = Depends(get_current_user),
    service: ReminderService = Depends(get_reminders),
) -> ReminderListResponse:
    """List the caller's reminders with filters, sorting and pagination."""
    result = await service.get_reminders_for_user(
        owner=user.user_id,
        filters=ReminderFilters(
            status=status_filter,
            related_type=related_type,
            reminder_type=reminder_type,
        ),
        page=PageRequest(page=page, limit=limit, sort_by=sort_by, sort_order=sort_order),
    )
    return ReminderListResponse.from_page(result)


@router.get("/stats/summary", response_model=ReminderStatsResponse)
async def reminder_stats(
    user: CurrentUser = Depends(get_current_user),
    service: ReminderService = Depends(get_reminders),
) -> ReminderStatsResponse:
    """Dashboard statistics for the caller."""
    stats = await service.get_statistics(user.user_id)
    return ReminderStatsResponse.from_stats(stats)


@router.post(
    "/process-due",
    response_model=SweepResultResponse,
    responses={403: {"model": ErrorResponse}},
)
async def process_due_reminders(
    user: CurrentUser = Depends(require_admin),
    use_case: ProcessScheduledRemindersUseCase = Depends(get_process_due_use_case),
) -> SweepResultResponse:
    """Run the due-sweep now (administrators only)."""
    logger.info("manual_sweep_requested", user_id=user.user_id)
    result = await use_case.execute()
    return SweepResultResponse.from_result(result)


@router.get(
    "/{reminder_id}",
    response_model=ReminderResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_reminder(
    reminder_id: int,
    user: CurrentUser = Depends(get_current_user),
    service: ReminderService = Depends(get_reminders),
) -> ReminderResponse:
    """Get a reminder by ID."""
    reminder = await service.get_reminder(reminder_id, user.user_id)
    return ReminderResponse.from_entity(reminder)


@router.put(
    "/{reminder_id}",
    response_model=ReminderResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def update_reminder(
    reminder_id: int,
    request: UpdateReminderRequest,
    user: CurrentUser = Depends(get_current_user),
    service: ReminderService = Depends(get_reminders),
) -> ReminderResponse:
    """Edit a PENDING reminder."""
    updated = await service.update_reminder(
        reminder_id,
        user.user_id,
        ReminderUpdate(**request.model_dump(exclude_unset=True)),
    )
    return ReminderResponse.from_entity(updated)


@router.put(
    "/{reminder_id}/complete",
    response_model=ReminderResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def complete_reminder(
    reminder_id: int,
    user: CurrentUser = Depends(get_current_user),
    service: ReminderService = Depends(get_reminders),
) -> ReminderResponse:
    """Mark a reminder as completed."""
    completed = await service.complete_reminder(reminder_id, user.user_id)
    return ReminderResponse.from_entity(completed)


@router.delete(
    "/{reminder_id}",
    response_model=ReminderResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def cancel_reminder(
    reminder_id: int,
    user: CurrentUser = Depends(get_current_user),
    service: ReminderService = Depends(get_reminders),
) -> ReminderResponse:
    """Cancel a reminder. Cancelled reminders are kept, not deleted."""
    cancelled = await service.cancel_reminder(reminder_id, user.user_id)
    return ReminderResponse.from_entity(cancelled)
