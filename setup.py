# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

# isort: skip_file

from setuptools import find_packages, setup

from brownout import __version__


setup(
    name="pybrownout",
    version=__version__,
    description="Power aware datacenter simulator with a brownout dimmer",
    long_description="Event driven simulator of a power aware datacenter that throttles optional "
                     "workload components on overloaded hosts and migrates VMs between hosts.",
    long_description_content_type="text/plain",
    license="MIT License",
    platforms=["Windows", "Linux", "macOS"],
    keywords=[
        "brownout",
        "cloud-computing",
        "energy-efficiency",
        "simulator",
        "vm-migration",
    ],
    classifiers=[
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Natural Language :: English",
        "Operating System :: MacOS",
        "Operating System :: Microsoft :: Windows",
        "Operating System :: POSIX",
        "Operating System :: Unix",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Topic :: Scientific/Engineering",
    ],
    python_requires=">=3.7",
    install_requires=[
        "numpy",
        "PyYAML",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    package_data={
        "brownout.simulator.scenarios.power_datacenter": ["topologies/*/*.yml"],
    },
    zip_safe=False,
)
