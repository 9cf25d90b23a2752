# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

from collections.abc import Mapping


class DocableDict(Mapping):
    """Read-only metrics dictionary that carries the description of its keys.

    Args:
        doc (str): Description of the metrics, available as ``__doc__`` of the instance.
        kwargs (dict): Metric items to store.

    Examples:

        .. code-block:: python

            metrics = env.metrics

            print(metrics.__doc__)
            print(metrics["total_energy_consumption"])
    """

    def __init__(self, doc: str, **kwargs):
        self._metrics = dict(kwargs)
        self.__doc__ = doc

    def __getitem__(self, key):
        return self._metrics[key]

    def __iter__(self):
        return iter(self._metrics)

    def __len__(self):
        return len(self._metrics)

    def __repr__(self):
        return repr(self._metrics)
