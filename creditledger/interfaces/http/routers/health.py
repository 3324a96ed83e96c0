from fastapi import APIRouter, Depends
from sqlalchemy import text

from creditledger import __version__
from creditledger.core.container import ApplicationContainer
from creditledger.interfaces.http.deps import get_container
from creditledger.schemas import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health(container: ApplicationContainer = Depends(get_container)) -> HealthResponse:
    async with container.database.engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    return HealthResponse(version=__version__)
