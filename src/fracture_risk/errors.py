class PipelineError(Exception):
    """Base class for failures that abort a pipeline run."""

    stage = "pipeline"

    def __init__(self, message: str, stage: str | None = None):
        super().__init__(message)
        if stage is not None:
            self.stage = stage


class MissingDataError(PipelineError):
    """A gap in a column that cannot be filled."""

    stage = "cleaning"


class SchemaMismatchError(PipelineError):
    """An expected column is absent or holds unexpected values."""

    stage = "validation"


class InsufficientSampleError(PipelineError):
    """Not enough rows of a class to draw the requested sample."""

    stage = "balancing"


class ModelFitError(PipelineError):
    """The classifier failed to fit or converge."""

    stage = "training"
