[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "hcxkit"
version = "1.0.0"
description = "Inspect, filter, split and convert WPA handshake records in hccapx, john and wkp formats"
requires-python = ">=3.10"
dependencies = []
keywords = ["wpa", "hccapx", "handshake", "eapol", "pmk", "wlan", "hashcat", "john"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Information Technology",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security",
    "Topic :: System :: Networking",
    "Topic :: Utilities",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
hcxkit-wkp2hcx = "hcxkit.wkp:main"
hcxkit-pmk2hcx = "hcxkit.pmkhash:main"
hcxkit-john2hcx = "hcxkit.johnformat:main"
hcxkit-mnc = "hcxkit.noncefix:main"
hcxkit-info = "hcxkit.hcxinfo:main"
hcxkit-hcx2ssid = "hcxkit.hcx2ssid:main"

[tool.hatch.build.targets.wheel]
packages = ["hcxkit"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
