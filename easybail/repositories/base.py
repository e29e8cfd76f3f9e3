from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from easybail.schemas.automation import AutomationCreate, AutomationInDB


class AutomationRepository(ABC):
    """Abstract Base Class for automation storage backends.

    All operations may raise RepositoryError; update and delete raise
    AutomationNotFound for unknown ids.
    """

    @abstractmethod
    async def list(self) -> List[AutomationInDB]:
        """Returns every automation, newest first."""
        pass

    @abstractmethod
    async def get_by_id(self, automation_id: str) -> Optional[AutomationInDB]:
        """Returns the automation or None when it does not exist."""
        pass

    @abstractmethod
    async def create(self, data: AutomationCreate) -> AutomationInDB:
        """Persists a new automation."""
        pass

    @abstractmethod
    async def update(self, automation_id: str, changes: Dict[str, Any]) -> AutomationInDB:
        """Applies a partial update and returns the stored automation."""
        pass

    @abstractmethod
    async def delete(self, automation_id: str) -> None:
        """Deletes an automation."""
        pass
