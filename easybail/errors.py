"""Exception hierarchy shared by the scheduler, repositories and executors."""


class EasyBailError(Exception):
    """Base class for all service errors."""


class InvalidFrequency(EasyBailError, ValueError):
    """Raised when a frequency value is not one of the supported enum members."""

    def __init__(self, frequency):
        self.frequency = frequency
        super().__init__(f"Invalid frequency: {frequency!r}")


class RepositoryError(EasyBailError):
    """Backing store failure (network, storage, constraint)."""


class AutomationNotFound(RepositoryError, LookupError):
    def __init__(self, automation_id: str):
        self.automation_id = automation_id
        super().__init__(f"Automation not found: {automation_id}")


class ExecutorFailure(EasyBailError):
    """The side effect of an automation could not be performed."""


class TemplateNotFound(ExecutorFailure):
    def __init__(self, template_id: str):
        self.template_id = template_id
        super().__init__(f"Email template not found: {template_id}")


class MailDeliveryError(ExecutorFailure):
    """The mail relay rejected a message or could not be reached."""


class TemplateRenderError(ExecutorFailure):
    """An email template has invalid syntax."""
