from easybail.repositories.base import AutomationRepository
from easybail.repositories.automations import SqlAlchemyAutomationRepository

__all__ = ["AutomationRepository", "SqlAlchemyAutomationRepository"]
