import sys

from fracture_risk.errors import PipelineError
from fracture_risk.pipeline import PipelineRunner


def main() -> None:
    """Run the full fracture prediction pipeline."""
    runner = PipelineRunner("config/default.yaml")
    try:
        runner.run()
    except PipelineError:
        sys.exit(1)


if __name__ == "__main__":
    main()
