[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "zrtpkit"
version = "0.1.0"
description = "ZRTP message construction, parsing and validation with RTP/RTCP types and clock helpers"
requires-python = ">=3.10"
keywords = ["zrtp", "rtp", "rtcp", "srtp", "voip", "key-agreement"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Internet Phone",
    "Topic :: Security :: Cryptography",
    "Topic :: Software Development :: Libraries :: Python Modules",
]
dependencies = [
    "cryptography",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["zrtpkit"]

[tool.pytest.ini_options]
addopts = "-ra"
