"""SQLAlchemy Reseller Directory Repository Implementation"""

from typing import Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.directory_repository import DirectoryRepository
from src.domain.directory import Client, Reseller


class SqlAlchemyDirectoryRepository(DirectoryRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_reseller(self, reseller_id: str) -> Optional[Reseller]:
        statement = select(Reseller).where(Reseller.id == reseller_id)
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def get_client(self, client_id: str) -> Optional[Client]:
        statement = select(Client).where(Client.id == client_id)
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()
