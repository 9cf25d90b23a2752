# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

import os
from typing import Union

from yaml import safe_load


class DottableDict(dict):
    """A wrapper to dictionary to make possible to key as property."""

    def __init__(self, *args, **kwargs):
        dict.__init__(self, *args, **kwargs)
        self.__dict__ = self


def convert_dottable(natural_dict: dict) -> DottableDict:
    """Convert a dictionary to DottableDict.

    Args:
        natural_dict (dict): Dictionary to convert to DottableDict.

    Returns:
        DottableDict: Dottable object.
    """
    dottable_dict = DottableDict(natural_dict)
    for k, v in natural_dict.items():
        if type(v) is dict:
            v = convert_dottable(v)
            dottable_dict[k] = v
        elif type(v) is list:
            dottable_dict[k] = [convert_dottable(item) if type(item) is dict else item for item in v]
    return dottable_dict


def merge_options(config: dict, options: Union[dict, None]) -> dict:
    """Override configuration values with user options.

    Nested dictionaries are merged key by key, any other value replaces the configured one.

    Args:
        config (dict): Loaded configuration.
        options (dict): Options to apply on top of the configuration.

    Returns:
        dict: A new merged dictionary.
    """
    merged = dict(config)
    for key, value in (options or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_options(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_yaml_config(path: str) -> DottableDict:
    """Load a yaml file into a DottableDict.

    Args:
        path (str): Path of the yaml file, "~" is expanded.

    Returns:
        DottableDict: Dottable configuration.
    """
    with open(os.path.expanduser(path)) as fp:
        return convert_dottable(safe_load(fp) or {})
