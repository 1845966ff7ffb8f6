"""LiDAR pipeline building blocks: configuration, timestamp handling, point cloud preprocessing and odometry runners."""

__version__ = "0.1.0"