[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "scanodom"
version = "0.1.0"
description = "LiDAR point cloud preprocessing, timestamp handling and odometry pipeline building blocks"
requires-python = ">=3.10"
keywords = ["lidar", "point cloud", "odometry", "imu", "preprocessing", "voxel grid"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Image Processing",
]
dependencies = [
    "numpy",
    "scipy",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["scanodom"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 120
target-version = "py310"
