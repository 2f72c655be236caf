from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/health", summary="Health check")
async def health_check(request: Request) -> dict[str, str]:
    """Return service health and whether payments are configured."""
    app_settings = getattr(request.app.state, "settings", None)
    payments = "unknown"
    if app_settings is not None:
        payments = "configured" if app_settings.payments_configured else "disabled"
    return {"status": "ok", "payments": payments}
