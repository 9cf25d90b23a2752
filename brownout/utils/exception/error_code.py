# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.


ERROR_CODE = {
    # Error code table for the brownout simulator.
    1000: "Brownout Internal Error",

    # simulator
    2200: "Cannot find specified business engine",

    # power datacenter scenario
    2300: "Cannot compute the dimmer value of a datacenter without hosts",
    2301: "Invalid migration target host",
    2302: "Invalid power datacenter configuration",
}
