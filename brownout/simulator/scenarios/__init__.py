# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

from .abs_business_engine import AbsBusinessEngine

__all__ = ["AbsBusinessEngine"]
