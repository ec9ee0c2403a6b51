from fastapi import HTTPException, Request, status

from pushrelay.notifications.service import DispatchService


def get_dispatch_service(request: Request) -> DispatchService:
  """Return the process-wide dispatch service created at startup."""
  service = getattr(request.app.state, "dispatch_service", None)
  if service is None:
    raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Dispatch service is not initialized")
  return service
