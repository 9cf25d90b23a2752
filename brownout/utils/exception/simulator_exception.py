# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.


from .base_exception import BrownoutException
from .error_code import ERROR_CODE


class BusinessEngineNotFoundError(BrownoutException):
    """Exception then the simulator cannot find specified business engine module."""

    def __init__(self):
        super().__init__(2200, ERROR_CODE[2200])


class NoHostForDimmerError(BrownoutException, ZeroDivisionError):
    """Exception when the dimmer value is requested for an empty host list.

    The dimmer value is the share of non-overloaded hosts, it is undefined without any host.
    """

    def __init__(self):
        super().__init__(2300, ERROR_CODE[2300])


class InvalidMigrationTargetError(BrownoutException):
    """Exception when a migration plan entry points to a missing or unreachable host."""

    def __init__(self, msg: str = None):
        super().__init__(2301, msg)


class InvalidConfigError(BrownoutException):
    """Exception when the scenario configuration cannot be used to build a datacenter."""

    def __init__(self, msg: str = None):
        super().__init__(2302, msg)
