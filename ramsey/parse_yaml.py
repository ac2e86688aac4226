#!/usr/bin/env python3
"""
Reading linear-quadratic policy problems from YAML.

A problem file is rewritten (``^`` becomes ``**``, ``;`` is dropped, a
trailing ``@`` joins two lines), old key names are renamed, the result is
checked against ``ramsey/schema/lq.yaml`` with cerberus, and an
`LQProblem` is built from it.
"""

import os
import re
import warnings
from functools import lru_cache
from typing import IO, Dict, List, Tuple, Union

import yaml
from cerberus import Validator

from .logging_config import get_logger
from .problem import LQProblem
from .resource_utils import open_text

logger = get_logger("parser")

warnings.formatwarning = lambda message, category, filename, lineno, line=None: f'{category.__name__}: {message}\n'

# old name -> current name, applied at every nesting level
DEPRECATED_KEYS = {
    'covariances': 'covariance',
    'discount_factor': 'discount',
    'backward': 'predetermined',
}


class ValidationError(Exception):
    """A problem file does not match the schema."""


def _flatten_errors(errors, prefix='') -> List[str]:
    lines = []
    for field, details in errors.items():
        path = f'{prefix}.{field}' if prefix else str(field)
        for detail in details:
            if isinstance(detail, dict):
                lines.extend(_flatten_errors(detail, path))
            else:
                lines.append(f'{path}: {detail}')
    return lines


def validate_data(data: Dict, validator: Validator) -> None:
    """
    Check `data` against the schema held by `validator`.

    Raises:
        ValidationError: listing one offending field per line, with nested
            fields written as dotted paths (e.g. 'calibration.parameters').
    """
    if not validator.validate(data):
        raise ValidationError("Problem file does not match the schema:\n"
                              + '\n'.join(_flatten_errors(validator.errors)))


def update_deprecated_keys(data):
    """Rename deprecated keys in place, warning once per occurrence."""
    if isinstance(data, dict):
        for old, new in DEPRECATED_KEYS.items():
            if old in data:
                warnings.warn(f"'{old}' is deprecated and has been replaced with '{new}'. "
                              "Please update your YAML files.", DeprecationWarning)
                data[new] = data.pop(old)
        for value in data.values():
            update_deprecated_keys(value)
    elif isinstance(data, list):
        for item in data:
            update_deprecated_keys(item)
    return data


def load_schema(schema_name: str) -> Dict:
    """Load the packaged schema ramsey/schema/<schema_name>.yaml."""
    with open_text(f"schema/{schema_name}.yaml") as f:
        return yaml.safe_load(f)


@lru_cache(maxsize=None)
def get_validator(schema_name: str = 'lq') -> Validator:
    return Validator(load_schema(schema_name))


def preprocess(txt: str, sub_list: List[Tuple[str, str]]) -> str:
    for old, new in sub_list:
        txt = txt.replace(old, new)
    return re.sub(r"@ ?\n", " ", txt)


def read_yaml(yaml_file: Union[str, os.PathLike, IO[str]],
              sub_list: List[Tuple[str, str]] = [('^', '**'), (';', '')]) -> LQProblem:
    """
    Read a policy problem from a YAML file.

    Args:
        yaml_file: Path to the file, or an open text stream
        sub_list: Text substitutions applied before parsing

    Returns:
        An LQProblem

    Raises:
        ValidationError: If the file does not match the schema
        ValueError: If the problem itself is inconsistent
        NotImplementedError: For discretionary policy problems
    """
    if isinstance(yaml_file, (str, os.PathLike)):
        logger.info(f"Reading problem from {os.fspath(yaml_file)}")
        with open(yaml_file) as f:
            txt = f.read()
    else:
        logger.info("Reading problem from stream")
        txt = yaml_file.read()

    problem_yaml = update_deprecated_keys(yaml.safe_load(preprocess(txt, sub_list)))

    try:
        validate_data(problem_yaml, get_validator())
    except ValidationError as e:
        logger.error(str(e))
        raise

    kind = problem_yaml['declarations'].get('type', 'lq')
    logger.debug(f"Problem type: {kind}")
    if kind == 'discretion':
        raise NotImplementedError('Only commitment policy problems are supported')

    try:
        return LQProblem.read(problem_yaml)
    except ValueError as e:
        logger.error(f"Invalid problem {problem_yaml['declarations']['name']!r}: {e}")
        raise
