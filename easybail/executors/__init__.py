from easybail.executors.base import ActionOutcome, BaseActionExecutor

__all__ = ["ActionOutcome", "BaseActionExecutor"]
