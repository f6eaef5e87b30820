"""FastAPI application factory."""

import asyncio
import contextlib
import logging
from datetime import date, datetime, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fastapi import (
    FastAPI,
    HTTPException,
    Request,
    Response,
    WebSocket,
    WebSocketDisconnect,
    status,
)
from fastapi.responses import JSONResponse

from nutrition_log.api.admin import router as admin_router
from nutrition_log.api.models import EntryBatchIn, ProfileUpdate
from nutrition_log.app_logging import configure_logging
from nutrition_log.containers import AppContainer
from nutrition_log.domain.entries import BatchResult, DailyMacros, MacroTotals
from nutrition_log.domain.profiles import UserProfile
from nutrition_log.errors import PersistenceError
from nutrition_log.services.aggregation import (
    GoalProgress,
    TrendSummary,
    entries_on_day,
    goal_progress,
    sum_macros,
    summarize_trend,
    trend,
)
from nutrition_log.services.notifications import Snapshot

MAX_TREND_DAYS = 366


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    app = FastAPI()
    app.state.container = container

    app.include_router(admin_router)

    @app.exception_handler(PersistenceError)
    async def persistence_error_handler(
        request: Request, exc: PersistenceError
    ) -> JSONResponse:
        logger.exception("Storage failure on %s", request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": str(exc), "dismissible": True},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/users/{user_id}/entries")
    async def list_entries(
        user_id: str,
        request: Request,
        day: date | None = None,
        tz: str | None = None,
    ) -> dict[str, object]:
        """Return the user's entries, optionally bucketed to one day."""
        state_container: AppContainer = request.app.state.container
        entries = state_container.entry_store.list_entries(user_id)
        if day is not None:
            entries = entries_on_day(entries, day, _resolve_tz(state_container, tz))
        return {"entries": [entry.to_dict() for entry in entries]}

    @app.post("/users/{user_id}/entries")
    async def add_entries(
        user_id: str, batch: EntryBatchIn, request: Request
    ) -> JSONResponse:
        """Log one or more food items."""
        state_container: AppContainer = request.app.state.container
        store = state_container.entry_store
        entries = [
            store.new_entry(
                name=item.name,
                portion=item.portion,
                calories=item.calories,
                protein=item.protein,
                carbs=item.carbs,
                fat=item.fat,
                timestamp=item.timestamp,
            )
            for item in batch.items
        ]
        result = await store.add_many(user_id, entries)
        status_code = (
            status.HTTP_201_CREATED if result.complete else status.HTTP_207_MULTI_STATUS
        )
        return JSONResponse(status_code=status_code, content=_serialize_batch(result))

    @app.delete(
        "/users/{user_id}/entries/{entry_id}",
        status_code=status.HTTP_204_NO_CONTENT,
    )
    async def remove_entry(user_id: str, entry_id: str, request: Request) -> Response:
        """Delete an entry; unknown ids are ignored."""
        state_container: AppContainer = request.app.state.container
        await state_container.entry_store.remove(user_id, entry_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.get("/users/{user_id}/macros")
    async def day_macros(
        user_id: str,
        request: Request,
        day: date | None = None,
        tz: str | None = None,
    ) -> dict[str, object]:
        """Return one day's totals and progress toward goals."""
        state_container: AppContainer = request.app.state.container
        zone = _resolve_tz(state_container, tz)
        target_day = day or datetime.now(tz=zone).date()
        entries = entries_on_day(
            state_container.entry_store.list_entries(user_id), target_day, zone
        )
        totals = sum_macros(entries)
        goals = state_container.profile_store.get_goals(user_id)
        return {
            "day": target_day.isoformat(),
            "totals": _serialize_totals(totals),
            "goals": goals.to_dict(),
            "progress": [
                _serialize_progress(item) for item in goal_progress(totals, goals)
            ],
        }

    @app.get("/users/{user_id}/trend")
    async def macro_trend(
        user_id: str,
        start: date,
        end: date,
        request: Request,
        tz: str | None = None,
    ) -> dict[str, object]:
        """Return a gap-free daily series for a date range."""
        if end < start:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="end must not be before start",
            )
        if (end - start).days + 1 > MAX_TREND_DAYS:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"range must not exceed {MAX_TREND_DAYS} days",
            )
        state_container: AppContainer = request.app.state.container
        zone = _resolve_tz(state_container, tz)
        daily = trend(
            state_container.entry_store.list_entries(user_id), start, end, zone
        )
        return {
            "daily": [_serialize_daily(item) for item in daily],
            "summary": _serialize_summary(summarize_trend(daily)),
        }

    @app.get("/users/{user_id}/profile")
    async def get_profile(user_id: str, request: Request) -> dict[str, object]:
        """Return the profile; 404 means onboarding is required."""
        state_container: AppContainer = request.app.state.container
        profile = state_container.profile_store.get(user_id)
        if profile is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found"
            )
        return _serialize_profile(profile)

    @app.patch("/users/{user_id}/profile")
    async def update_profile(
        user_id: str, update: ProfileUpdate, request: Request
    ) -> dict[str, object]:
        """Merge fields into the profile, creating it when absent."""
        state_container: AppContainer = request.app.state.container
        partial = update.model_dump(
            by_alias=True, exclude_unset=True, exclude_none=True
        )
        profile = state_container.profile_store.update(user_id, partial)
        return _serialize_profile(profile)

    @app.websocket("/users/{user_id}/entries/stream")
    async def stream_entries(websocket: WebSocket, user_id: str) -> None:
        """Push every entry snapshot for the user until the client disconnects."""
        state_container: AppContainer = websocket.app.state.container
        await websocket.accept()
        snapshots: asyncio.Queue[Snapshot] = asyncio.Queue()
        try:
            subscription = await state_container.notification_bus.subscribe(
                user_id, snapshots.put_nowait
            )
        except PersistenceError:
            logger.exception("Failed to open entry stream: user_id=%s", user_id)
            await websocket.close(code=1011)
            return

        async def pump() -> None:
            while True:
                snapshot = await snapshots.get()
                await websocket.send_json(
                    {"entries": [entry.to_dict() for entry in snapshot]}
                )

        sender = asyncio.create_task(pump())
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            logger.info("Entry stream closed: user_id=%s", user_id)
        finally:
            subscription.unsubscribe()
            sender.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sender

    return app


def _resolve_tz(container: AppContainer, name: str | None) -> tzinfo:
    try:
        return ZoneInfo(name or container.settings.default_timezone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown timezone: {name}",
        ) from exc


def _serialize_totals(totals: MacroTotals) -> dict[str, float]:
    return {
        "calories": totals.calories,
        "protein": totals.protein,
        "carbs": totals.carbs,
        "fat": totals.fat,
    }


def _serialize_progress(progress: GoalProgress) -> dict[str, object]:
    return {
        "macro": progress.macro,
        "consumed": progress.consumed,
        "goal": progress.goal,
        "remaining": progress.remaining,
        "percent": progress.percent,
    }


def _serialize_daily(daily: DailyMacros) -> dict[str, object]:
    return {
        "day": daily.day.isoformat(),
        "entry_count": daily.entry_count,
        "totals": _serialize_totals(daily.totals),
    }


def _serialize_summary(summary: TrendSummary) -> dict[str, object]:
    return {
        "days": summary.days,
        "logged_days": summary.logged_days,
        "totals": _serialize_totals(summary.totals),
        "average": _serialize_totals(summary.average),
    }


def _serialize_batch(result: BatchResult) -> dict[str, object]:
    return {
        "complete": result.complete,
        "added": [entry.to_dict() for entry in result.added],
        "failed": [
            {"index": failure.index, "name": failure.entry.name, "error": failure.error}
            for failure in result.failed
        ],
    }


def _serialize_profile(profile: UserProfile) -> dict[str, object]:
    return {"user_id": profile.user_id, **profile.attributes}
