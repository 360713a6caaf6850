"""FastAPI dependencies for service injection."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from almox.db import get_session
from almox.services.codes.service import CodeService


async def get_code_service(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CodeService:
    """Get a CodeService instance with the current session."""
    return CodeService(session)


CodeServiceDep = Annotated[CodeService, Depends(get_code_service)]
