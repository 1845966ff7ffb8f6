# scanodom

Building blocks for LiDAR(-inertial) odometry pipelines in Python:
typed JSON configuration, point timestamp normalisation, point cloud
preprocessing, PointCloud2-style message conversion, and a threaded runner
that feeds an odometry estimator.

## Installation

```
pip install .
```

To run the test suite:

```
pip install .[test]
pytest
```

## Modules

- `scanodom.config`: `Config` reads a JSON file (`//` and `/* */` comments
  allowed) and gives typed access to parameters grouped by module:
  `param`, `param_or`, `param_cast` (raises `ParamNotFoundError`), their
  `_nested` variants, `override_param` and `save`. `ParamKind` selects the
  type (bool, int, float, string, lists, 2/3/4-vectors, quaternion, isometry,
  list of isometries). Poses are stored as `[x, y, z, qx, qy, qz, qw]`.
  `GlobalConfig.instance(config_path)` loads `<config_path>/config.json`
  once; `GlobalConfig.get_config_path(name)` resolves the path of another
  configuration file; `GlobalConfig.reset()` forgets the shared instance.
- `scanodom.transforms`: conversions between `[x, y, z, w]` quaternions,
  3x3 rotation matrices, 4x4 isometries and flat 7-value pose lists.
- `scanodom.formatting`: `convert_to_string` renders values for log messages
  (`vec(...)`, `quat(...)`, `se3(...)`, `[a,b,...]`).
- `scanodom.callback_slot`: `CallbackSlot` holds several callbacks by id and
  calls every registered one.
- `scanodom.log`: `create_module_logger` returns a per-module logger that
  writes to stdout and to a shared `RingBufferHandler`
  (`get_ringbuffer_sink`); when the default logger is more verbose than INFO
  it also writes to `scanodom_<module>.log` in the temporary directory.
- `scanodom.concurrent`: `ConcurrentVector`, a lock-protected FIFO queue with
  blocking `pop_wait` / `get_all_and_clear_wait`, an end-of-data signal and
  an optional size limit (`DataStorePolicy.upto`).
- `scanodom.interpolation`: `InterpolationHelper.find(stamp)` returns an
  `InterpolationSearch` with the stamped values just before and after a time
  (`SUCCESS`, `WAITING` or `FAILURE`), using linear or binary search.
- `scanodom.trajectory`: `TrajectoryManager` chains odometry poses onto the
  latest world-frame anchor.
- `scanodom.frames`: the `RawPoints` and `PreprocessedFrame` dataclasses
  (points are `(N, 4)` homogeneous arrays).
- `scanodom.time_keeper`: `TimeKeeper.process` makes per-point times relative
  to the first point, converts absolute (and nanosecond) times, and fills in
  pseudo times from an estimated scan duration when a scan has none.
  `validate_imu_stamp` rejects IMU samples that go back in time.
- `scanodom.preprocess`: `CloudPreprocessor` does voxel-grid or random-grid
  downsampling, distance filtering, time sorting, optional statistical
  outlier removal and k-nearest-neighbour search. The individual steps are
  available as `voxelgrid_sampling`, `randomgrid_sampling`,
  `remove_outliers` and `find_neighbors`. `CloudPreprocessorParams.from_config()`
  reads the parameters through `GlobalConfig`.
- `scanodom.data_validator`: `DataValidator` logs warnings about missing
  data, timestamp rewinds, time gaps and non-finite points.
- `scanodom.cloud_converter`: `extract_raw_points` decodes a `PointCloud2`
  (x/y/z, time, intensity and rgba fields) into `RawPoints`;
  `frame_to_pointcloud2` packs points and optional times as float32 records.
- `scanodom.estimation_frame`: `EstimationFrame` with LiDAR/IMU poses,
  velocity and IMU bias; `set_T_world_sensor` keeps both poses consistent.
- `scanodom.initial_state`: `NaiveInitialStateEstimation` aligns the mean
  accelerometer reading with gravity (or uses a pose set with
  `set_init_state`).
- `scanodom.odometry_callbacks`: process-wide `CallbackSlot`s in
  `OdometryEstimationCallbacks` and `IMUStateInitializationCallbacks`.
- `scanodom.odometry_base`: `OdometryEstimationBase`, the estimator interface.
- `scanodom.async_odometry`: `AsyncOdometryEstimation` runs an estimator on a
  worker thread and holds frames back until IMU data covers their scan end.

## Example

```python
import numpy as np
from scanodom.frames import RawPoints
from scanodom.time_keeper import TimeKeeper
from scanodom.preprocess import CloudPreprocessor, CloudPreprocessorParams

rng = np.random.default_rng(0)
points = np.hstack([rng.uniform(-20, 20, (5000, 3)), np.ones((5000, 1))])
raw = RawPoints(stamp=100.0, points=points)

TimeKeeper().process(raw)  # fills in per-point times when they are missing

preprocessor = CloudPreprocessor(CloudPreprocessorParams(), seed=0)
frame = preprocessor.preprocess(raw)
print(len(frame), frame.k_neighbors)
```

Running an estimator in the background:

```python
from scanodom.async_odometry import AsyncOdometryEstimation
from scanodom.odometry_base import OdometryEstimationBase

with AsyncOdometryEstimation(OdometryEstimationBase(), enable_imu=False) as odom:
    odom.insert_frame(frame)
    odom.join()
    results, marginalized = odom.get_results()
```

## What the package does not do

- There is no scan-matching odometry estimator. `OdometryEstimationBase`
  only forwards its inputs to `OdometryEstimationCallbacks` and returns no
  estimate; an actual estimator is written by subclassing it.
- There is no factor-graph optimisation, no IMU preintegration and no
  deskewing of points.
- There is no command-line program and no connection to a robotics
  middleware; `PointCloud2` is a plain dataclass filled in by the caller.