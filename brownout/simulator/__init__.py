# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

from .core import Env

__all__ = ["Env"]
