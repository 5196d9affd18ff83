from pydantic import BaseModel


class HealthCheckResponse(BaseModel):
    status: str = "healthy"
    environment: str
    database: str = "ok"
