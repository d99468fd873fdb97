"""deploy-notifier: Slack notifications for commits shipped in a Heroku release."""

__version__ = "0.1.0"

from .errors import NotifierError, PipelineError
from .pipeline import DeployEvent, PipelineResult, run_pipeline

__all__ = [
    "DeployEvent",
    "NotifierError",
    "PipelineError",
    "PipelineResult",
    "run_pipeline",
    "__version__",
]
