# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

from .logger import DummyLogger, LogFormat, Logger
from .utils import DottableDict, convert_dottable, load_yaml_config, merge_options

__all__ = [
    "Logger",
    "DummyLogger",
    "LogFormat",
    "convert_dottable",
    "DottableDict",
    "load_yaml_config",
    "merge_options",
]
