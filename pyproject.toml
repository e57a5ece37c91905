[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pumpctl"
version = "1.0.0"
description = "Device models and control logic for a pump and TEC driver board: ADS1220 ADC, TPS546D24A regulator, DRV8412 bridge, fans, NTC sensing, PID control and a serial tuning protocol."
requires-python = ">=3.10"
dependencies = []
keywords = [
    "ads1220",
    "tps546d24a",
    "drv8412",
    "pmbus",
    "pid",
    "kalman",
    "ntc",
    "thermistor",
    "ring-buffer",
    "serial-protocol",
    "embedded",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Hardware :: Hardware Drivers",
    "Topic :: Scientific/Engineering",
]

[project.optional-dependencies]
test = [
    "pytest",
    "hypothesis",
]

[tool.hatch.build.targets.wheel]
packages = ["pumpctl"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
