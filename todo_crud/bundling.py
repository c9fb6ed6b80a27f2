from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from aws_cdk import BundlingOptions, aws_lambda


FUNCTIONS_DIR = Path(__file__).parent / 'functions'
TODO_ENTRY = FUNCTIONS_DIR / 'todo'

# The AWS SDK as shipped in the Lambda Python runtime
RUNTIME_MODULES = (
    'boto3', 'botocore', 's3transfer', 'jmespath', 'python-dateutil', 'six', 'urllib3',
)


@dataclass(frozen=True)
class FunctionBundling:
    """Packaging shared by every function built from one handler directory.

    The lock file is installed with ``--no-deps`` so it has to pin the whole
    dependency closure. Distributions listed in ``external_modules`` are
    filtered out of it before installing and are loaded from the runtime.
    """

    entry: Path = TODO_ENTRY
    lock_file: str = 'requirements.txt'
    external_modules: Sequence[str] = RUNTIME_MODULES

    def __post_init__(self):
        if not Path(self.entry).is_dir():
            raise FileNotFoundError(f'handler directory not found: {self.entry}')
        if not (Path(self.entry) / self.lock_file).is_file():
            raise FileNotFoundError(f'lock file not found: {Path(self.entry) / self.lock_file}')

    def exclude_pattern(self) -> str:
        names = '|'.join(name.replace('.', r'\.') for name in self.external_modules)
        return f'^({names})([^A-Za-z0-9_.-]|$)'

    def command(self) -> list:
        steps = []
        if self.external_modules:
            steps.append(
                f"(grep -viE '{self.exclude_pattern()}' {self.lock_file} || true)"
                f' > /tmp/requirements.txt'
            )
        else:
            steps.append(f'cp {self.lock_file} /tmp/requirements.txt')
        steps.append(
            'if [ -s /tmp/requirements.txt ]; then '
            'pip install --no-deps -r /tmp/requirements.txt -t /asset-output; fi'
        )
        steps.append('cp -au . /asset-output')
        return ['bash', '-c', ' && '.join(steps)]

    def code(self, runtime: aws_lambda.Runtime) -> aws_lambda.Code:
        return aws_lambda.Code.from_asset(
            str(self.entry),
            bundling=BundlingOptions(
                image=runtime.bundling_image,
                command=self.command(),
            ),
        )
