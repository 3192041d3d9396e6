[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "anet"
version = "0.1.0"
description = "Toolkit for the ANet VPN: identities, access control, client configuration, DNS and route management"
requires-python = ">=3.11"
dependencies = [
    "cryptography",
]
keywords = ["vpn", "routing", "dns", "ed25519", "access-control", "wsgi"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Operating System :: MacOS",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["anet"]

[tool.hatch.build.targets.sdist]
include = ["anet", "tests", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
warn_redundant_casts = true
check_untyped_defs = true
