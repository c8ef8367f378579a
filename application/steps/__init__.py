from application.steps.base import Step, StepFactory
from application.steps.organizer import Organizer

__all__ = ["Step", "StepFactory", "Organizer"]
