# config/resolvers.py
from pathlib import Path
from typing import Optional, Union

from platformdirs import user_log_dir

APP = "silentverify"
REPORT_SUFFIX = ".confidence.json"


def default_log_dir() -> Path:
    p = Path(user_log_dir(APP))
    p.mkdir(parents=True, exist_ok=True)
    return p


def resolve_policy_path(policy_path: Union[str, Path], project_dir: Optional[Union[str, Path]] = None) -> Path:
    """Absolute paths are kept; relative ones are taken against ``project_dir`` when given."""
    p = Path(policy_path).expanduser()
    if not p.is_absolute() and project_dir:
        p = Path(project_dir).expanduser() / p
    return p


def default_report_path(input_path: Union[str, Path]) -> Path:
    """findings.json -> findings.confidence.json next to the input."""
    p = Path(input_path)
    return p.with_name(p.stem + REPORT_SUFFIX)
