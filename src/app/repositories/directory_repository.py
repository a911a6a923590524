"""Reseller Directory Repository Interface"""

from abc import ABC, abstractmethod
from typing import Optional
from src.domain.directory import Client, Reseller


class DirectoryRepository(ABC):

    @abstractmethod
    async def get_reseller(self, reseller_id: str) -> Optional[Reseller]:
        pass

    @abstractmethod
    async def get_client(self, client_id: str) -> Optional[Client]:
        pass
