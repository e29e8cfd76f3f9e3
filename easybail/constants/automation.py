from enum import Enum
from typing import Dict


class AutomationType(str, Enum):
    RECEIPT = "receipt"
    RENT_REVIEW = "rent_review"
    INSURANCE = "insurance"
    MAINTENANCE = "maintenance"
    REMINDER = "reminder"  # payment reminder
    NOTICE = "notice"


class Frequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class ExecutionStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    SKIPPED = "skipped"


# Types whose side effect is addressed to the tenant of a property
PROPERTY_REQUIRED_TYPES = frozenset({
    AutomationType.RECEIPT,
    AutomationType.RENT_REVIEW,
    AutomationType.NOTICE,
})


def describe_type(automation_type: AutomationType) -> str:
    labels: Dict[AutomationType, str] = {
        AutomationType.RECEIPT: "Rent receipt generation",
        AutomationType.RENT_REVIEW: "Rent review",
        AutomationType.INSURANCE: "Insurance reminder",
        AutomationType.MAINTENANCE: "Maintenance reminder",
        AutomationType.REMINDER: "Payment reminder",
        AutomationType.NOTICE: "Notice reminder",
    }
    return labels[AutomationType(automation_type)]
