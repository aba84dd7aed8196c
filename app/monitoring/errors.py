from app.db.session import SessionLocal
from app.db.repositories.error_repository import ErrorRepository
from app.monitoring.context import get_request_context
from app.monitoring.logger import log
from app.monitoring.slack_alerts import send_slack_alert


async def record_error(component: str, function: str, message: str, details: dict = None, stacktrace: str = None, request_id: str = None, severity: str = "ERROR", alert: bool = True):
    ctx = get_request_context()
    request_id = request_id or ctx.get("request_id")
    try:
        async with SessionLocal() as db:
            repo = ErrorRepository(db)
            await repo.create(
                request_id=request_id,
                client_id=ctx.get("client_id"),
                provider_id=ctx.get("provider_id"),
                component=component,
                function=function,
                severity=severity,
                message=message,
                details=details,
                stacktrace=stacktrace,
            )
    except Exception as e:
        log("ERROR", f"Failed to persist ErrorLog: {e}", component="errors", request_id=request_id)
    # Always log
    log(severity, message, component=component, request_id=request_id, details=details)
    if alert and severity in ("ERROR", "CRITICAL"):
        try:
            await send_slack_alert(message=message, context={"details": details}, severity=severity, module=component, request_id=request_id)
        except Exception as e:
            log("ERROR", f"Failed to send Slack alert for error: {e}", component="errors", request_id=request_id)
