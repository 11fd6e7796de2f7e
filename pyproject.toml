[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "epon_ipact"
version = "0.1.0"
description = "Discrete-event simulation of an Ethernet PON with IPACT dynamic bandwidth allocation"
requires-python = ">=3.10"
dependencies = []
keywords = ["epon", "pon", "ipact", "dba", "simulation", "discrete-event", "optical-network"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Telecommunications Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
    "Topic :: Scientific/Engineering",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
epon-ipact = "epon_ipact.network:main"

[tool.hatch.build.targets.wheel]
packages = ["epon_ipact"]

[tool.pytest.ini_options]
addopts = "-ra"
